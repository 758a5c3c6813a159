"""pii-sanitize — mask detected PII entities and remap their spans."""

from .sanitizer import Sanitizer, SanitizerConfig, mask
from .normalizer import normalize_entities, resolve_overlaps, validate_entities
from .reconstructor import reconstruct
from .policies import replacement_for
from .azure_source import AzureLanguageSource
from .presidio_source import PresidioSource
from .config import create_sanitizer, load_config, load_from_yaml
from .types import Entity, EntitySource, MaskResult, OffsetUnit, Policy, Span
from .errors import (
    ConfigurationError, InvalidInput, InvalidPolicy, MalformedEntity,
    SanitizeError, UpstreamDetectionFailure,
)

__all__ = [
    "Sanitizer", "SanitizerConfig", "mask",
    "normalize_entities", "resolve_overlaps", "validate_entities",
    "reconstruct", "replacement_for",
    "AzureLanguageSource", "PresidioSource",
    "create_sanitizer", "load_config", "load_from_yaml",
    "Entity", "EntitySource", "MaskResult", "OffsetUnit", "Policy", "Span",
    "SanitizeError", "InvalidInput", "InvalidPolicy", "MalformedEntity",
    "UpstreamDetectionFailure", "ConfigurationError",
]
__version__ = "0.1.0"
