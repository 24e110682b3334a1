"""
Line-item parsing for OCR line_item entities.

Structured sub-properties (line_item/description, line_item/quantity, ...)
are always preferred. When the OCR model emits no description, the raw text
of the row is segmented with a small cascade of regex steps. Each step is a
pure function returning (extracted_value, remaining_text) so the cascade can
be composed and tested one step at a time.

The free-text cascade is heuristic: a description that legitimately ends in
a number will lose that number to the amount column.
"""

import re
from loguru import logger
from ..models.invoice import EntityType, LineItem, RawEntity
from .categorizer import categorize
from .entity_extractor import extract_line_item_entities
from .text_anchor import resolve


_NUMBER = r"\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:[.,]\d{2})?"

LEADING_QUANTITY = re.compile(r"^\s*(\d+(?:\.\d+)?)\s+(.+)$", re.S)
TRAILING_AMOUNT = re.compile(rf"(?:^|(?<=\s))\$?({_NUMBER})\s*$")
TRAILING_PRICE_PAIR = re.compile(rf"(?:^|(?<=\s))\$?({_NUMBER})(?:\s+\$?|\s*\$)({_NUMBER})\s*$")

STRUCTURED_FIELDS: dict[str, EntityType] = {
    "description": EntityType.LINE_ITEM_DESCRIPTION,
    "quantity": EntityType.LINE_ITEM_QUANTITY,
    "unit_price": EntityType.LINE_ITEM_UNIT_PRICE,
    "amount": EntityType.LINE_ITEM_AMOUNT,
    "product_code": EntityType.LINE_ITEM_PRODUCT_CODE,
}


def take_leading_quantity(text: str) -> tuple[str | None, str]:
    match = LEADING_QUANTITY.match(text)
    if not match:
        return None, text
    return match.group(1), match.group(2)


def take_trailing_amount(text: str) -> tuple[str | None, str]:
    match = TRAILING_AMOUNT.search(text)
    if not match:
        return None, text
    return match.group(1), text[:match.start()].strip()


def take_trailing_price_pair(text: str) -> tuple[tuple[str, str] | None, str]:
    """Peel `<unit price> <amount>` off the end of the text."""
    match = TRAILING_PRICE_PAIR.search(text)
    if not match:
        return None, text
    return (match.group(1), match.group(2)), text[:match.start()].strip()


def parse_free_text(text: str) -> dict[str, str]:
    """
    Segment a raw line-item row into quantity, unit price, amount and description.

    Example:
        >>> parse_free_text("3 Red Apples $2.50 $7.50")
        {'quantity': '3', 'unit_price': '2.50', 'amount': '7.50', 'description': 'Red Apples'}
    """
    result: dict[str, str] = {}
    if not text or not text.strip():
        return result

    quantity, remaining = take_leading_quantity(text)
    if quantity is not None:
        result["quantity"] = quantity

    # A trailing pair overrides a single trailing amount
    pair, after_pair = take_trailing_price_pair(remaining)
    if pair is not None:
        result["unit_price"], result["amount"] = pair
        remaining = after_pair
    else:
        amount, remaining = take_trailing_amount(remaining)
        if amount is not None:
            result["amount"] = amount

    description = " ".join(remaining.split())
    if description:
        result["description"] = description

    return result


def find_property_value(properties: list[RawEntity], entity_type: EntityType) -> str | None:
    for prop in properties or []:
        if prop.entity_type is entity_type:
            return prop.value
    return None


def parse_line_item(entity: RawEntity, document_text: str | None) -> LineItem | None:
    """Build a LineItem from one line_item entity, or None when it carries no text at all."""
    raw_text = ((entity.mention_text or "").strip() or resolve(entity.text_anchor, document_text) or "").strip()

    fields = {
        name: find_property_value(entity.properties, entity_type)
        for name, entity_type in STRUCTURED_FIELDS.items()
    }

    if not fields["description"] and raw_text:
        parsed = parse_free_text(raw_text)
        logger.debug("Parsed line item from raw text", raw_text=raw_text, parsed=parsed)
        for name, value in parsed.items():
            if not fields.get(name):
                fields[name] = value

    if not fields["description"] and not raw_text:
        return None

    return LineItem(
        description=fields["description"],
        quantity=fields["quantity"],
        unit_price=fields["unit_price"],
        amount=fields["amount"],
        product_code=fields["product_code"],
        raw_text=raw_text,
        category=categorize(fields["description"] or raw_text),
    )


def extract_detailed_line_items(entities: list[RawEntity], document_text: str | None) -> list[LineItem]:
    """Parse every line_item entity in OCR order, dropping items with no usable text."""
    line_item_entities = extract_line_item_entities(entities)
    logger.info(f"Found {len(line_item_entities)} line items")

    items = []
    for index, entity in enumerate(line_item_entities, start=1):
        item = parse_line_item(entity, document_text)
        if item is None:
            logger.debug(f"Dropping empty line item {index}")
            continue
        items.append(item)
    return items
