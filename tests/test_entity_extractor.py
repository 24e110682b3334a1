from src.models.invoice import EntityType, RawEntity
from src.services.entity_extractor import (
    extract_header,
    extract_header_fields,
    extract_line_item_entities,
    known_entities,
)


def entities(*raw):
    return [RawEntity.model_validate(e) for e in raw]


def test_header_prefers_normalized_value():
    ents = entities({"type": "invoice_date", "mentionText": "Sep 30, 2025", "normalizedValue": {"text": "2025-09-30"}})
    assert extract_header(ents, EntityType.INVOICE_DATE) == "2025-09-30"


def test_header_falls_back_to_mention_text():
    ents = entities({"type": "supplier_name", "mentionText": "Contoso"})
    assert extract_header(ents, EntityType.SUPPLIER_NAME) == "Contoso"


def test_header_missing_returns_none():
    ents = entities({"type": "supplier_name", "mentionText": "Contoso"})
    assert extract_header(ents, EntityType.INVOICE_ID) is None
    assert extract_header([], EntityType.INVOICE_ID) is None


def test_first_duplicate_header_wins():
    ents = entities(
        {"type": "supplier_name", "mentionText": "Page One Supplier"},
        {"type": "supplier_name", "mentionText": "Page Two Supplier"},
    )
    assert extract_header(ents, EntityType.SUPPLIER_NAME) == "Page One Supplier"


def test_header_fields_map_to_record_names():
    ents = entities(
        {"type": "supplier_name", "mentionText": "Contoso"},
        {"type": "invoice_id", "mentionText": "INV-9"},
        {"type": "total_amount", "mentionText": "$10", "normalizedValue": {"text": "10"}},
    )
    assert extract_header_fields(ents) == {
        "supplier": "Contoso",
        "total": "10",
        "date": None,
        "invoice_number": "INV-9",
    }


def test_line_item_entities_preserve_order():
    ents = entities(
        {"type": "line_item", "mentionText": "first"},
        {"type": "supplier_name", "mentionText": "Contoso"},
        {"type": "line_item", "mentionText": "second"},
    )
    assert [e.mention_text for e in extract_line_item_entities(ents)] == ["first", "second"]


def test_no_line_item_entities_returns_empty():
    ents = entities({"type": "supplier_name", "mentionText": "Contoso"})
    assert extract_line_item_entities(ents) == []


def test_unknown_entity_types_are_dropped():
    ents = entities(
        {"type": "supplier_name", "mentionText": "Contoso"},
        {"type": "barcode_thing", "mentionText": "???"},
    )
    assert [e.type for e in known_entities(ents)] == ["supplier_name"]
