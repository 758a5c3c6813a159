"""Exception hierarchy.

Every error the pipeline raises carries the HTTP status the server answers
with, plus an optional ``details`` dict.  Messages and details never include
entity snippets.
"""

from __future__ import annotations
from typing import Any


class SanitizeError(Exception):
    """Base class for all pii-sanitize errors."""

    status: int = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInput(SanitizeError):
    """Empty/blank text, bad language code, unparseable request body."""
    status = 400


class InvalidPolicy(SanitizeError):
    """Policy string is not one of redact | pseudo | hash."""
    status = 400


class MalformedEntity(SanitizeError):
    """A single entity failed validation.

    Raised while validating entities and caught by the normalizer, which
    drops the entity.  Never surfaces as a request failure.
    """
    status = 422


class UpstreamDetectionFailure(SanitizeError):
    """The entity source failed or answered with an error."""
    status = 502


class ConfigurationError(SanitizeError):
    """Missing endpoint/key or an unknown entity source."""
    status = 500
