"""Sanitizer — the main API.  Detect, normalize, mask, remap spans.

Usage:
    from pii_sanitize import Sanitizer, AzureLanguageSource

    source = AzureLanguageSource(endpoint, key)
    sanitizer = Sanitizer(source)     # reusable, thread-safe

    result = sanitizer.sanitize("Call 0601020304 now", policy="pseudo")
    print(result.anonymized)          # "Call [PhoneNumber] now"
    print(result.spans)               # [Span(start=5, end=18)]

When entities come from somewhere else, skip detection:

    from pii_sanitize import mask

    result = mask(text, [{"category": "Person", "offset": 0, "length": 5}], "hash")
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .errors import ConfigurationError, InvalidInput
from .normalizer import normalize_entities, resolve_overlaps, validate_entities
from .reconstructor import reconstruct
from .types import Entity, EntitySource, MaskResult, OffsetUnit, Policy
from .units import UnitText

logger = logging.getLogger(__name__)

# "auto", or a BCP-47-ish tag: en, fr, pt-BR, zh-Hans
_LANGUAGE_RE = re.compile(r"[A-Za-z]{2,3}(?:-[A-Za-z0-9]{2,8})*")


def mask(
    text: str,
    entities: Iterable[Entity | Mapping[str, Any]],
    policy: Policy | str | None,
    unit: OffsetUnit | str | None = OffsetUnit.UTF16,
    *,
    hash_key: bytes | None = None,
) -> MaskResult:
    """Mask ``entities`` in ``text``.  Pure; no detection, no filtering.

    Malformed and overlapping entities are dropped.  An empty text is
    returned as-is without looking at the entities.
    """
    policy = Policy.parse(policy)
    unit = OffsetUnit.parse(unit)
    if not text:
        return MaskResult(anonymized=text)

    source = UnitText(text, unit)
    normalized = normalize_entities(source, entities)
    anonymized, spans = reconstruct(source, normalized, policy, hash_key=hash_key)
    return MaskResult(anonymized=anonymized, spans=spans, entities=normalized)


@dataclass
class SanitizerConfig:
    """Configuration for the Sanitizer."""
    default_policy: str = "redact"
    default_language: str = "auto"
    # Categories to never mask (e.g. "DateTime")
    skip_categories: set[str] = field(default_factory=set)
    # Allow-list: snippet values that should NEVER be masked
    allow_list: set[str] = field(default_factory=set)
    min_confidence: float = 0.0       # drop entities scored below this
    # Secret for the hash policy (HMAC-SHA256); None → plain SHA-256
    hash_key: str | None = None


class Sanitizer:
    """Request-level pipeline around ``mask``.

    1. Validate the request (text, policy, language)
    2. Ask the entity source for entities
    3. Filter by category / allow-list / confidence
    4. Normalize and reconstruct
    """

    def __init__(
        self,
        source: EntitySource | None,
        config: SanitizerConfig | None = None,
    ) -> None:
        self.source = source
        self.config = config or SanitizerConfig()

    def sanitize(
        self,
        text: Any,
        policy: Policy | str | None = None,
        language: str | None = None,
    ) -> MaskResult:
        """Detect and mask PII in ``text``.

        Raises InvalidInput / InvalidPolicy before calling the entity source,
        and lets UpstreamDetectionFailure from the source propagate.
        """
        text = _require_text(text)
        policy = Policy.parse(policy if policy is not None else self.config.default_policy)
        language = _require_language(language if language is not None else self.config.default_language)

        if self.source is None:
            raise ConfigurationError("No entity source configured.")
        raw = self.source.detect(text, language)
        logger.debug(f"Entity source returned {len(raw)} entities (language={language})")
        return self._mask(text, raw, policy, self.source.offset_unit)

    def mask_entities(
        self,
        text: Any,
        entities: Any,
        policy: Policy | str | None = None,
        unit: OffsetUnit | str | None = None,
    ) -> MaskResult:
        """Mask caller-supplied entities, with the same validation and filters."""
        text = _require_text(text)
        policy = Policy.parse(policy if policy is not None else self.config.default_policy)
        unit = OffsetUnit.parse(unit)
        if not isinstance(entities, list):
            raise InvalidInput("'entities' must be a list")
        return self._mask(text, entities, policy, unit)

    def _mask(
        self,
        text: str,
        entities: Iterable[Entity | Mapping[str, Any]],
        policy: Policy,
        unit: OffsetUnit,
    ) -> MaskResult:
        source = UnitText(text, unit)
        valid = validate_entities(source, entities)

        # --- Filter ---
        filtered: list[Entity] = []
        for e in valid:
            if e.category in self.config.skip_categories:
                continue
            if (e.confidence_score is not None
                    and e.confidence_score < self.config.min_confidence):
                continue
            if self.config.allow_list and source.slice(e.offset, e.end) in self.config.allow_list:
                continue
            filtered.append(e)

        normalized = resolve_overlaps(filtered)
        key = self.config.hash_key.encode("utf-8") if self.config.hash_key else None
        anonymized, spans = reconstruct(source, normalized, policy, hash_key=key)
        logger.info(
            f"Masked {len(normalized)} of {len(valid)} valid entities with policy {policy.value}"
        )
        return MaskResult(anonymized=anonymized, spans=spans, entities=normalized)


def _require_text(text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("Missing or empty 'text'.")
    return text


def _require_language(language: Any) -> str:
    if language == "auto":
        return language
    if not isinstance(language, str) or not _LANGUAGE_RE.fullmatch(language):
        raise InvalidInput("Invalid 'language': expected 'auto' or a language code")
    return language
