"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

from .errors import InvalidInput, InvalidPolicy, MalformedEntity


class Policy(str, Enum):
    """Masking policy applied to every entity of a request."""
    REDACT = "redact"
    PSEUDO = "pseudo"
    HASH = "hash"

    @classmethod
    def parse(cls, value: Policy | str | None) -> Policy:
        """Exact-match a policy string.  ``None`` means the default (redact)."""
        if value is None:
            return cls.REDACT
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for policy in cls:
                if policy.value == value:
                    return policy
        raise InvalidPolicy(
            f"Unknown policy {value!r}; expected one of: "
            + ", ".join(p.value for p in cls)
        )


class OffsetUnit(str, Enum):
    """Indexing unit of entity offsets and output spans."""
    UTF16 = "utf16"           # UTF-16 code units (Azure, JavaScript)
    CODEPOINT = "codepoint"   # Python str indices (Presidio)

    @classmethod
    def parse(cls, value: OffsetUnit | str | None) -> OffsetUnit:
        if value is None:
            return cls.UTF16
        try:
            return cls(value)
        except ValueError:
            raise InvalidInput(
                f"Unknown offset unit {value!r}; expected 'utf16' or 'codepoint'"
            ) from None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class Entity:
    """A detected sensitive span in the *original* text."""
    category: str                   # e.g. "PhoneNumber", "Person"
    offset: int
    length: int
    text: str | None = None         # snippet the detector matched, if known
    confidence_score: float | None = None
    subcategory: str | None = None

    @property
    def end(self) -> int:
        return self.offset + self.length

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Entity:
        """Build an Entity from a detector record (camelCase keys).

        Raises MalformedEntity on missing keys or wrong types; range checks
        against the text happen in the normalizer.
        """
        if not isinstance(data, Mapping):
            raise MalformedEntity(f"entity record is a {type(data).__name__}, not an object")

        category = data.get("category")
        offset = data.get("offset")
        length = data.get("length")
        if not isinstance(category, str) or not category:
            raise MalformedEntity("entity has no category")
        if not _is_int(offset) or not _is_int(length):
            raise MalformedEntity(f"{category} entity has non-integer offset/length")

        text = data.get("text")
        score = data.get("confidenceScore")
        subcategory = data.get("subcategory")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            score = None
        return cls(
            category=category,
            offset=offset,
            length=length,
            text=text if isinstance(text, str) else None,
            confidence_score=float(score) if score is not None else None,
            subcategory=subcategory if isinstance(subcategory, str) and subcategory else None,
        )

    def to_echo(self) -> dict[str, Any]:
        """Response echo: position and labels only, never the snippet."""
        echo: dict[str, Any] = {"category": self.category}
        if self.subcategory is not None:
            echo["subcategory"] = self.subcategory
        echo["offset"] = self.offset
        echo["length"] = self.length
        if self.confidence_score is not None:
            echo["confidenceScore"] = self.confidence_score
        return echo


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open ``[start, end)`` range in the *anonymized* text."""
    start: int
    end: int

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(slots=True)
class MaskResult:
    """Result of masking one text."""
    anonymized: str
    spans: list[Span] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)   # normalized, in span order

    def to_dict(self) -> dict[str, Any]:
        return {
            "anonymized": self.anonymized,
            "spans": [s.to_dict() for s in self.spans],
            "entities": [e.to_echo() for e in self.entities],
        }


class EntitySource(Protocol):
    """Anything that can detect entities in a text (Azure, Presidio, ...)."""

    offset_unit: OffsetUnit

    def detect(self, text: str, language: str = "auto") -> list[Mapping[str, Any]]:
        ...
