"""YAML/dict config loader for pii-sanitize.

Supports loading from a YAML file or a plain dict (for embedding in a
larger service config).

Example YAML:

    pii_sanitize:
      source: azure              # "azure" or "presidio"
      default_policy: redact
      default_language: auto
      min_confidence: 0.0
      skip_categories:
        - DateTime
      allow_list:
        - support@example.com
      hash_key: ...              # blank → $PII_SANITIZE_HASH_KEY; HMAC for "hash"
      azure:
        endpoint: https://my-lang.cognitiveservices.azure.com
        key: ...                 # blank → $LANGUAGE_KEY
        timeout: 10
        domain: phi              # optional
      presidio:
        language: en
        score_threshold: 0.35
        models:                  # lang code → spaCy model
          fr: fr_core_news_sm
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError, InvalidPolicy
from .sanitizer import Sanitizer, SanitizerConfig
from .types import EntitySource, Policy


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline).

    Raises ConfigurationError for a config that isn't a mapping, or for
    numbers that don't parse.
    """
    data = _section(data, "config")
    # Support nested under "pii_sanitize" key or flat
    if "pii_sanitize" in data:
        data = _section(data["pii_sanitize"], "pii_sanitize")

    azure = _section(data.get("azure"), "azure")
    hash_key = data.get("hash_key") or os.environ.get("PII_SANITIZE_HASH_KEY")
    presidio = _section(data.get("presidio"), "presidio")
    return {
        "source": data.get("source", "azure"),
        "default_policy": data.get("default_policy", "redact"),
        "default_language": data.get("default_language", "auto"),
        "min_confidence": _number(data.get("min_confidence", 0.0), "min_confidence"),
        "skip_categories": set(data.get("skip_categories") or []),
        "allow_list": set(data.get("allow_list") or []),
        "hash_key": str(hash_key) if hash_key else None,
        "azure_endpoint": azure.get("endpoint") or os.environ.get("LANGUAGE_ENDPOINT"),
        "azure_key": azure.get("key") or os.environ.get("LANGUAGE_KEY"),
        "azure_timeout": _number(azure.get("timeout", 10.0), "azure.timeout"),
        "azure_domain": azure.get("domain"),
        "presidio_language": presidio.get("language", "en"),
        "presidio_score_threshold": _number(presidio.get("score_threshold", 0.35),
                                            "presidio.score_threshold"),
        "presidio_entities": presidio.get("entities"),
        "presidio_models": _section(presidio.get("models"), "presidio.models"),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    return load_config(data)


def _section(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Config section {name!r} must be a mapping")
    return value


def _number(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config value {name!r} must be a number") from e


def create_sanitizer(
    config: dict[str, Any] | None = None,
    *,
    with_source: bool = True,
) -> Sanitizer:
    """Create a fully configured Sanitizer from a config dict.

    With ``with_source=False`` no entity source is built; the result can only
    mask caller-supplied entities.
    """
    # Accept either a raw config or one already normalized by load_config
    cfg = config if config is not None and "azure_key" in config else load_config(config)

    try:
        Policy.parse(cfg["default_policy"])
    except InvalidPolicy as e:
        raise ConfigurationError(f"Bad default_policy: {e.message}") from e

    source = _build_source(cfg) if with_source else None
    return Sanitizer(source, SanitizerConfig(
        default_policy=cfg["default_policy"],
        default_language=cfg["default_language"],
        skip_categories=cfg["skip_categories"],
        allow_list=cfg["allow_list"],
        min_confidence=cfg["min_confidence"],
        hash_key=cfg["hash_key"],
    ))


def _build_source(cfg: dict[str, Any]) -> EntitySource:
    if cfg["source"] == "azure":
        from .azure_source import AzureLanguageSource
        return AzureLanguageSource(
            cfg["azure_endpoint"],
            cfg["azure_key"],
            timeout=cfg["azure_timeout"],
            domain=cfg["azure_domain"],
        )
    if cfg["source"] == "presidio":
        from .presidio_source import PresidioSource
        return PresidioSource(
            language=cfg["presidio_language"],
            entities=cfg["presidio_entities"],
            score_threshold=cfg["presidio_score_threshold"],
            models=cfg["presidio_models"],
        )
    raise ConfigurationError(f"Unknown entity source {cfg['source']!r}")
