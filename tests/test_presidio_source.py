"""Tests for the Presidio entity source, with a stand-in analyzer engine."""

import sys
import types
from dataclasses import dataclass

import pytest

from pii_sanitize import Sanitizer
from pii_sanitize.errors import InvalidInput, UpstreamDetectionFailure
from pii_sanitize.presidio_source import PresidioSource, default_model
from pii_sanitize.types import OffsetUnit


@dataclass
class Result:
    entity_type: str
    start: int
    end: int
    score: float


class FakeEngine:
    def __init__(self, results=None, exc=None):
        self.results = results or []
        self.exc = exc
        self.calls = []

    def analyze(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return self.results


def _source(engine, language="en"):
    source = PresidioSource(language=language)
    source._engines[language] = engine
    return source


@pytest.fixture
def presidio_modules(monkeypatch):
    """Replace presidio_analyzer in sys.modules; records provider configs."""
    built = []

    class NlpEngineProvider:
        fail_with = None

        def __init__(self, nlp_configuration):
            built.append(nlp_configuration)

        def create_engine(self):
            if NlpEngineProvider.fail_with is not None:
                raise NlpEngineProvider.fail_with
            return "nlp-engine"

    class AnalyzerEngine(FakeEngine):
        def __init__(self, nlp_engine, supported_languages):
            super().__init__()
            self.supported_languages = supported_languages

    analyzer = types.ModuleType("presidio_analyzer")
    analyzer.AnalyzerEngine = AnalyzerEngine
    nlp_engine = types.ModuleType("presidio_analyzer.nlp_engine")
    nlp_engine.NlpEngineProvider = NlpEngineProvider
    analyzer.nlp_engine = nlp_engine
    monkeypatch.setitem(sys.modules, "presidio_analyzer", analyzer)
    monkeypatch.setitem(sys.modules, "presidio_analyzer.nlp_engine", nlp_engine)
    return types.SimpleNamespace(built=built, provider=NlpEngineProvider)


def test_offset_unit_is_codepoint():
    assert PresidioSource.offset_unit is OffsetUnit.CODEPOINT


def test_results_converted_to_records():
    engine = FakeEngine([Result("PHONE_NUMBER", 5, 15, 0.75), Result("PERSON", 0, 4, 0.85)])
    records = _source(engine).detect("Call 0601020304 now")
    assert records == [
        {"category": "Person", "offset": 0, "length": 4, "confidenceScore": 0.85},
        {"category": "PhoneNumber", "offset": 5, "length": 10, "confidenceScore": 0.75},
    ]


def test_unknown_type_kept_as_is():
    engine = FakeEngine([Result("MEDICAL_LICENSE", 0, 3, 0.5)])
    assert _source(engine).detect("abc")[0]["category"] == "MEDICAL_LICENSE"


def test_auto_uses_configured_language():
    engine = FakeEngine()
    _source(engine, "fr").detect("Bonjour", "auto")
    assert engine.calls[0]["language"] == "fr"


def test_region_subtag_stripped():
    source = PresidioSource(language="en", models={"pt": "pt_core_news_sm"})
    engine = FakeEngine()
    source._engines["pt"] = engine
    source.detect("Olá", "pt-BR")
    assert engine.calls[0]["language"] == "pt"


def test_analysis_failure_is_upstream_failure():
    with pytest.raises(UpstreamDetectionFailure):
        _source(FakeEngine(exc=OSError("model not installed"))).detect("text")


# ── Model selection ──────────────────────────────────────────────────

def test_default_model_names():
    assert default_model("en") == "en_core_web_sm"
    assert default_model("fr") == "fr_core_news_sm"
    assert default_model("pt") == "pt_core_news_sm"


def test_configured_language_gets_a_model():
    assert PresidioSource(language="fr").models == {"fr": "fr_core_news_sm"}
    source = PresidioSource(models={"de": "de_core_news_lg"})
    assert source.models == {"en": "en_core_web_sm", "de": "de_core_news_lg"}


def test_engine_built_with_language_model(presidio_modules):
    source = PresidioSource(language="en", models={"fr": "fr_core_news_sm"})
    source.detect("Bonjour Marie", "fr-CA")
    assert presidio_modules.built == [{
        "nlp_engine_name": "spacy",
        "models": [{"lang_code": "fr", "model_name": "fr_core_news_sm"}],
    }]
    assert source._engines["fr"].supported_languages == ["fr"]


def test_engine_built_once_per_language(presidio_modules):
    source = PresidioSource(language="en")
    source.detect("Hello", "auto")
    source.detect("Hello again", "en")
    assert len(presidio_modules.built) == 1


def test_unconfigured_language_rejected(presidio_modules):
    source = PresidioSource(language="en")
    with pytest.raises(InvalidInput) as exc_info:
        source.detect("Guten Tag", "de")
    assert exc_info.value.details == {"supported": ["en"]}
    assert presidio_modules.built == []


def test_model_download_exit_is_upstream_failure(presidio_modules):
    presidio_modules.provider.fail_with = SystemExit(1)
    source = PresidioSource(language="en")
    with pytest.raises(UpstreamDetectionFailure) as exc_info:
        source.detect("Hello")
    assert exc_info.value.details["model"] == "en_core_web_sm"
    assert source._engines == {}


def test_missing_model_is_upstream_failure(presidio_modules):
    presidio_modules.provider.fail_with = OSError("[E050] Can't find model")
    with pytest.raises(UpstreamDetectionFailure):
        PresidioSource(language="en").detect("Hello")


def test_codepoint_offsets_through_sanitizer():
    # Presidio counts the emoji as one character
    engine = FakeEngine([Result("PERSON", 5, 8, 0.9)])
    result = Sanitizer(_source(engine)).sanitize("Hi 😀 Bob", policy="pseudo")
    assert result.anonymized == "Hi 😀 [Person]"
    assert result.spans[0].start == 5
