"""Text addressed in a detector's offset unit.

Python ``str`` indexes by code point, but the Azure Language API (and any
JavaScript client) counts UTF-16 code units.  Characters outside the BMP,
most emoji for instance, take two UTF-16 units and one code point, so
slicing with the wrong unit shifts every later span.  All slicing of the
original text goes through ``UnitText`` so offsets and the output spans are
always in the same unit.

    >>> t = UnitText("Hi 😀 Bob", OffsetUnit.UTF16)
    >>> len(t), t.slice(6, 9)
    (9, 'Bob')
"""

from __future__ import annotations

from .types import OffsetUnit

# Lone surrogates can arrive through JSON ("\ud83d"); carry them through.
_CODEC = "utf-16-le"
_ERRORS = "surrogatepass"


def unit_length(s: str, unit: OffsetUnit) -> int:
    """Length of ``s`` counted in ``unit``."""
    if unit is OffsetUnit.UTF16:
        return len(s.encode(_CODEC, _ERRORS)) // 2
    return len(s)


class UnitText:
    """Immutable view of a text that slices in a fixed offset unit."""

    __slots__ = ("text", "unit", "_data")

    def __init__(self, text: str, unit: OffsetUnit = OffsetUnit.UTF16) -> None:
        self.text = text
        self.unit = unit
        self._data: bytes | str = text.encode(_CODEC, _ERRORS) if unit is OffsetUnit.UTF16 else text

    def __len__(self) -> int:
        if self.unit is OffsetUnit.UTF16:
            return len(self._data) // 2
        return len(self._data)

    def slice(self, start: int, end: int) -> str:
        """Return the text between ``start`` and ``end`` (in units)."""
        if self.unit is OffsetUnit.UTF16:
            return self._data[2 * start:2 * end].decode(_CODEC, _ERRORS)
        return self._data[start:end]

    def is_boundary(self, pos: int) -> bool:
        """True if ``pos`` is a valid cut point (never inside a surrogate pair)."""
        if pos < 0 or pos > len(self):
            return False
        if self.unit is not OffsetUnit.UTF16 or pos == 0 or pos == len(self):
            return True
        return not (_is_high(self._code_unit(pos - 1)) and _is_low(self._code_unit(pos)))

    def _code_unit(self, pos: int) -> int:
        return int.from_bytes(self._data[2 * pos:2 * pos + 2], "little")


def _is_high(unit: int) -> bool:
    return 0xD800 <= unit <= 0xDBFF


def _is_low(unit: int) -> bool:
    return 0xDC00 <= unit <= 0xDFFF
