"""Local entity source — Presidio NER, for running without the Azure service.

Uses spaCy under the hood.  Presidio reports Python ``str`` offsets, so this
source works in code points.

Each language needs its own spaCy model.  Only languages with a model are
accepted; anything else is rejected before Presidio is touched:

    PresidioSource(language="en", models={"fr": "fr_core_news_sm"})
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any

from .errors import InvalidInput, UpstreamDetectionFailure
from .types import OffsetUnit

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

# Presidio entity type → category label in the Azure vocabulary
CATEGORY_MAP = {
    "PERSON": "Person",
    "PHONE_NUMBER": "PhoneNumber",
    "EMAIL_ADDRESS": "Email",
    "LOCATION": "Address",
    "ORGANIZATION": "Organization",
    "CREDIT_CARD": "CreditCardNumber",
    "IBAN_CODE": "InternationalBankingAccountNumber",
    "IP_ADDRESS": "IPAddress",
    "URL": "URL",
    "DATE_TIME": "DateTime",
    "US_SSN": "USSocialSecurityNumber",
}

# Default entity types to detect (Presidio's full set is much larger)
DEFAULT_ENTITIES = list(CATEGORY_MAP)


def default_model(language: str) -> str:
    """spaCy's small pipeline for ``language`` (English is the only "web" one)."""
    if language == "en":
        return "en_core_web_sm"
    return f"{language}_core_news_sm"


class PresidioSource:
    """Presidio analyzer wrapped as an entity source.

    The analyzer engine is built lazily on first use, one per language.
    """

    offset_unit = OffsetUnit.CODEPOINT

    def __init__(
        self,
        *,
        language: str = "en",
        entities: list[str] | None = None,
        score_threshold: float = 0.35,
        models: dict[str, str] | None = None,
    ) -> None:
        self.language = language          # used when the request says "auto"
        self.entities = entities or DEFAULT_ENTITIES
        self.score_threshold = score_threshold
        # lang code → spaCy model name
        self.models = dict(models or {})
        self.models.setdefault(language, default_model(language))
        self._engines: dict[str, AnalyzerEngine] = {}

    def _get_engine(self, language: str) -> AnalyzerEngine:
        model = self.models.get(language)
        if model is None:
            raise InvalidInput(
                f"Language {language!r} is not configured for the Presidio source",
                details={"supported": sorted(self.models)},
            )
        if language not in self._engines:
            from presidio_analyzer import AnalyzerEngine
            from presidio_analyzer.nlp_engine import NlpEngineProvider

            try:
                provider = NlpEngineProvider(nlp_configuration={
                    "nlp_engine_name": "spacy",
                    "models": [{"lang_code": language, "model_name": model}],
                })
                engine = AnalyzerEngine(
                    nlp_engine=provider.create_engine(), supported_languages=[language],
                )
            except (OSError, ValueError, SystemExit) as e:
                # spaCy's model download exits instead of raising
                raise UpstreamDetectionFailure(
                    "Presidio model could not be loaded",
                    details={"model": model, "reason": str(e) or type(e).__name__},
                ) from e
            self._engines[language] = engine
        return self._engines[language]

    def detect(self, text: str, language: str = "auto") -> list[dict[str, Any]]:
        lang = self.language if language == "auto" else language.split("-")[0].lower()
        engine = self._get_engine(lang)
        try:
            results = engine.analyze(
                text=text,
                language=lang,
                entities=self.entities,
                score_threshold=self.score_threshold,
            )
        except (OSError, ValueError) as e:
            raise UpstreamDetectionFailure(
                "Presidio analysis failed", details={"reason": str(e)},
            ) from e

        return [
            {
                "category": CATEGORY_MAP.get(r.entity_type, r.entity_type),
                "offset": r.start,
                "length": r.end - r.start,
                "confidenceScore": r.score,
            }
            for r in sorted(results, key=lambda r: r.start)
        ]
