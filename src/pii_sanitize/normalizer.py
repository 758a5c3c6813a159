"""Entity normalizer — validate, sort, and drop overlapping entities.

Detector output is untrusted: records can be malformed, out of order, or
overlap each other.  A single bad record is dropped and logged; it never
fails the request.
"""

from __future__ import annotations
import logging
from typing import Any, Iterable, Mapping

from .errors import MalformedEntity
from .types import Entity, OffsetUnit
from .units import UnitText

logger = logging.getLogger(__name__)


def check_entity(entity: Entity, source: UnitText) -> None:
    """Raise MalformedEntity if ``entity`` does not fit ``source``."""
    if entity.offset < 0:
        raise MalformedEntity(f"{entity.category} entity has negative offset")
    if entity.length <= 0:
        raise MalformedEntity(f"{entity.category} entity has non-positive length")
    if entity.end > len(source):
        raise MalformedEntity(f"{entity.category} entity runs past the end of the text")
    if not (source.is_boundary(entity.offset) and source.is_boundary(entity.end)):
        raise MalformedEntity(f"{entity.category} entity splits a surrogate pair")
    if entity.text is not None and source.slice(entity.offset, entity.end) != entity.text:
        raise MalformedEntity(f"{entity.category} entity snippet does not match the text")


def validate_entities(
    text: str | UnitText,
    entities: Iterable[Entity | Mapping[str, Any]],
    unit: OffsetUnit = OffsetUnit.UTF16,
) -> list[Entity]:
    """Coerce detector records to Entities and keep only the valid ones.

    Input order is preserved.
    """
    source = text if isinstance(text, UnitText) else UnitText(text, unit)
    valid: list[Entity] = []
    for raw in entities:
        try:
            entity = raw if isinstance(raw, Entity) else Entity.from_dict(raw)
            check_entity(entity, source)
        except MalformedEntity as e:
            # Positions only: the snippet must never reach the logs.
            logger.warning(
                f"Dropping malformed entity (offset={_field(raw, 'offset')}, "
                f"length={_field(raw, 'length')}): {e.message}"
            )
            continue
        valid.append(entity)
    return valid


def resolve_overlaps(entities: Iterable[Entity]) -> list[Entity]:
    """Return a new, strictly increasing, non-overlapping list.

    Sorted by offset, longer entity first on equal offsets; a greedy sweep
    keeps each entity that starts at or after the end of the last kept one.
    """
    ranked = sorted(entities, key=lambda e: (e.offset, -e.length))
    kept: list[Entity] = []
    last_end = 0
    for entity in ranked:
        if entity.offset < last_end:
            logger.debug(
                f"Dropping overlapping {entity.category} entity at offset {entity.offset}"
            )
            continue
        kept.append(entity)
        last_end = entity.end
    return kept


def normalize_entities(
    text: str | UnitText,
    entities: Iterable[Entity | Mapping[str, Any]],
    unit: OffsetUnit = OffsetUnit.UTF16,
) -> list[Entity]:
    """Validate then resolve overlaps.  Pure function of its inputs."""
    return resolve_overlaps(validate_entities(text, entities, unit))


def _field(raw: Any, key: str) -> Any:
    if isinstance(raw, Entity):
        return getattr(raw, key)
    if isinstance(raw, Mapping):
        return raw.get(key)
    return None
