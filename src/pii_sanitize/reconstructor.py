"""Text reconstructor — splice replacements into the text, track output spans.

One forward pass: copy the unchanged text up to each entity, append its
replacement, and record where the replacement landed in the *output*.
Output positions are counted in the same unit as the input offsets.
"""

from __future__ import annotations
from typing import Sequence

from .policies import replacement_for
from .types import Entity, OffsetUnit, Policy, Span
from .units import UnitText, unit_length


def reconstruct(
    text: str | UnitText,
    entities: Sequence[Entity],
    policy: Policy,
    unit: OffsetUnit = OffsetUnit.UTF16,
    *,
    hash_key: bytes | None = None,
) -> tuple[str, list[Span]]:
    """Return ``(anonymized_text, spans)``.

    ``entities`` must already be normalized (sorted, non-overlapping, in
    range).  With no entities the text comes back unchanged.
    """
    source = text if isinstance(text, UnitText) else UnitText(text, unit)
    if not entities:
        return source.text, []

    parts: list[str] = []
    spans: list[Span] = []
    cursor = 0
    out_len = 0
    for entity in entities:
        # Unchanged chunk: same length in the output as in the input.
        parts.append(source.slice(cursor, entity.offset))
        out_len += entity.offset - cursor

        snippet = source.slice(entity.offset, entity.end)
        replacement = replacement_for(entity, snippet, policy, hash_key=hash_key)
        start = out_len
        parts.append(replacement)
        out_len += unit_length(replacement, source.unit)
        spans.append(Span(start, out_len))

        cursor = entity.end

    parts.append(source.slice(cursor, len(source)))
    return "".join(parts), spans
