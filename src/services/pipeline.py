"""
Invoice pipeline: OCR response in, normalized InvoiceRecord out.

Stages run in order: entity extraction, line-item parsing and keyword
categorization, then AI enrichment when configured. MissingDocumentError is
the only exception this module raises; enrichment failures degrade silently.
"""

from typing import Any
from loguru import logger
from pydantic import ValidationError
from ..core.config import settings
from ..core.errors import MissingDocumentError
from ..models.invoice import InvoiceRecord, OCRDocument, OCRResponse
from .completion import Completer, get_completion_client
from .enrichment import enhance_header, enhance_line_items
from .entity_extractor import extract_header_fields, known_entities
from .line_item_parser import extract_detailed_line_items


def _load_document(ocr_response: OCRResponse | dict[str, Any] | None) -> OCRDocument:
    if isinstance(ocr_response, OCRResponse):
        document = ocr_response.document
    else:
        payload = (ocr_response or {}).get("document")
        if payload is None:
            document = None
        else:
            try:
                document = OCRDocument.model_validate(payload)
            except ValidationError as e:
                raise MissingDocumentError(f"OCR document payload is malformed: {e.error_count()} errors") from e

    if document is None:
        logger.error("No document returned from OCR service")
        raise MissingDocumentError()
    return document


def build_record(document: OCRDocument) -> InvoiceRecord:
    """Deterministic part of the pipeline: header fields, line items and keyword categories."""
    logger.debug("Full document text", preview=(document.text or "")[:500])

    entities = known_entities(document.entities)
    header = extract_header_fields(entities)
    line_items = extract_detailed_line_items(entities, document.text)

    return InvoiceRecord(
        **header,
        line_items=line_items,
        confidence=document.confidence,
        raw_text=document.text,
    )


async def process(
    ocr_response: OCRResponse | dict[str, Any] | None,
    enrichment_enabled: bool | None = None,
    completion_client: Completer | None = None,
) -> InvoiceRecord:
    """
    Turn an OCR service response into an InvoiceRecord.

    Args:
        ocr_response: Parsed OCR response (model or raw JSON dict)
        enrichment_enabled: Run AI enrichment; defaults to whether an LLM key is configured
        completion_client: Completion client override, mainly for tests

    Raises:
        MissingDocumentError: The response has no document payload
    """
    document = _load_document(ocr_response)
    record = build_record(document)
    logger.info(
        "Extracted invoice data",
        supplier=record.supplier,
        invoice_number=record.invoice_number,
        line_items=len(record.line_items),
        confidence=record.confidence,
    )

    if enrichment_enabled is None:
        enrichment_enabled = settings.enrichment_enabled
    if not enrichment_enabled:
        return record

    client = completion_client or get_completion_client()
    line_items = await enhance_line_items(record.line_items, client)
    record = record.model_copy(update={"line_items": line_items})
    record = await enhance_header(document.text, record, client)

    logger.info(
        "Invoice enrichment finished",
        ai_enhanced=record.ai_enhanced,
        ai_categorized=sum(1 for item in record.line_items if item.ai_categorized),
    )
    return record
