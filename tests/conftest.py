"""Shared fixtures: a scripted entity source standing in for the detector."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from pii_sanitize.types import OffsetUnit


class FakeSource:
    """Entity source that returns canned records and remembers its calls."""

    def __init__(self, entities=None, *, error=None, offset_unit=OffsetUnit.UTF16):
        self.entities = entities or []
        self.error = error
        self.offset_unit = offset_unit
        self.calls = []

    def detect(self, text, language="auto"):
        self.calls.append((text, language))
        if self.error is not None:
            raise self.error
        return list(self.entities)


@pytest.fixture
def phone_source():
    return FakeSource([
        {"category": "PhoneNumber", "offset": 5, "length": 10,
         "text": "0601020304", "confidenceScore": 0.8},
    ])
