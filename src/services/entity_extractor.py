"""
Header and line-item extraction over the OCR service's flat entity list.

Entity types are checked against EntityType here; anything the pipeline
does not know about stops at this boundary.
"""

from loguru import logger
from ..models.invoice import EntityType, RawEntity


HEADER_FIELDS: dict[str, EntityType] = {
    "supplier": EntityType.SUPPLIER_NAME,
    "total": EntityType.TOTAL_AMOUNT,
    "date": EntityType.INVOICE_DATE,
    "invoice_number": EntityType.INVOICE_ID,
}


def known_entities(entities: list[RawEntity]) -> list[RawEntity]:
    """Drop entities whose type is outside the EntityType enumeration, keeping order."""
    known = []
    for entity in entities or []:
        if entity.entity_type is None:
            logger.debug("Skipping entity of unknown type", type=entity.type)
            continue
        known.append(entity)
    return known


def extract_header(entities: list[RawEntity], entity_type: EntityType) -> str | None:
    """
    Return the value of the first entity of the given type.

    Duplicates are not merged; the first occurrence wins.
    """
    for entity in entities or []:
        if entity.entity_type is entity_type:
            return entity.value
    return None


def extract_header_fields(entities: list[RawEntity]) -> dict[str, str | None]:
    return {field: extract_header(entities, entity_type) for field, entity_type in HEADER_FIELDS.items()}


def extract_line_item_entities(entities: list[RawEntity]) -> list[RawEntity]:
    return [e for e in entities or [] if e.entity_type is EntityType.LINE_ITEM]
