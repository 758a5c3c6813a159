"""Entity source backed by the Azure AI Language PII endpoint (REST v3.1).

Offsets are requested in UTF-16 code units (``stringIndexType=Utf16CodeUnit``)
so they line up with what a JavaScript client sees.  Any failure (transport,
HTTP status, document-level error) raises UpstreamDetectionFailure: a failed
detection must never look like "no PII found".
"""

from __future__ import annotations
import logging
from typing import Any

import requests

from .errors import ConfigurationError, UpstreamDetectionFailure
from .types import OffsetUnit

logger = logging.getLogger(__name__)

API_PATH = "/text/analytics/v3.1/entities/recognition/pii"
DOCUMENT_ID = "1"


def build_documents(text: str, language: str = "auto") -> dict[str, Any]:
    """Request payload; ``language`` is omitted when "auto" so the service detects it."""
    doc: dict[str, Any] = {"id": DOCUMENT_ID, "text": text}
    if language and language != "auto":
        doc["language"] = language
    return {"documents": [doc]}


class AzureLanguageSource:
    """Calls ``{endpoint}/text/analytics/v3.1/entities/recognition/pii``."""

    offset_unit = OffsetUnit.UTF16

    def __init__(
        self,
        endpoint: str | None,
        key: str | None,
        *,
        timeout: float = 10.0,
        domain: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not endpoint or not key:
            raise ConfigurationError("Server is missing LANGUAGE_ENDPOINT / LANGUAGE_KEY config.")
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.domain = domain              # e.g. "phi"
        self._key = key
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self.endpoint + API_PATH

    def detect(self, text: str, language: str = "auto") -> list[dict[str, Any]]:
        """Return the raw entity records of the single submitted document."""
        params = {"stringIndexType": "Utf16CodeUnit"}
        if self.domain:
            params["domain"] = self.domain

        try:
            resp = self._session.post(
                self.url,
                params=params,
                headers={
                    "Ocp-Apim-Subscription-Key": self._key,
                    "Content-Type": "application/json",
                },
                json=build_documents(text, language),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"PII API request failed: {type(e).__name__}")
            raise UpstreamDetectionFailure(
                "Upstream PII API unreachable", details={"reason": type(e).__name__},
            ) from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            logger.error(f"PII API error (status {resp.status_code}): {data}")
            raise UpstreamDetectionFailure(
                "Upstream PII API error",
                details=data if isinstance(data, dict) else {"status": resp.status_code},
            )
        if not isinstance(data, dict):
            raise UpstreamDetectionFailure(
                "Upstream PII API returned a non-JSON body", details={"status": resp.status_code},
            )

        errors = data.get("errors") or []
        if errors:
            logger.error(f"PII API document error: {errors}")
            raise UpstreamDetectionFailure("Upstream PII API error", details={"errors": errors})

        for doc in data.get("documents") or []:
            if isinstance(doc, dict) and doc.get("id") == DOCUMENT_ID:
                for warning in doc.get("warnings") or []:
                    logger.warning(f"PII API warning: {warning}")
                entities = doc.get("entities")
                return entities if isinstance(entities, list) else []

        raise UpstreamDetectionFailure(
            "Upstream PII API response has no result for the document",
            details={"modelVersion": data.get("modelVersion")},
        )
