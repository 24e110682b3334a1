"""
AI enrichment for extracted invoices.

Two independent, optional calls to the completion service:

1. Line-item categorization: items still categorized as "other" (or with no
   category) are sent in one batch and the returned JSON array is merged
   back by position within that batch. An element that fails validation
   costs only its own item, which falls back to the keyword rules.
2. Header enrichment: the raw text prefix plus the extracted header are sent
   for cleanup and the returned JSON object is merged over the record.

Each call produces Succeeded(data) or Degraded(reason). A degraded call never
raises; the deterministic categorizer fills in and the aiCategorized /
aiEnhanced flags record that the fallback was used.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from ..core.config import settings
from ..models.invoice import InvoiceRecord, LineItem
from .categorizer import CATEGORIES, categorize
from .completion import Completer, strip_code_fence


class EnrichmentState(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    REQUESTED = "requested"
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"


@dataclass
class Succeeded:
    data: Any
    state: EnrichmentState = EnrichmentState.SUCCEEDED


@dataclass
class Degraded:
    reason: str
    state: EnrichmentState = EnrichmentState.DEGRADED


EnrichmentResult = Succeeded | Degraded


class CategoryResult(BaseModel):
    """One element of the categorization response array."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    category: str | None = None
    subcategory: str | None = None
    confidence: float | None = None
    clean_description: str | None = Field(default=None, alias="cleanDescription")


UNCATEGORIZED = {"", "other", "uncategorized"}
DEFAULT_AI_CONFIDENCE = 50

CATEGORIZATION_SYSTEM_PROMPT = (
    "You are an expert at categorizing invoice items. Analyze the context and meaning "
    "to assign the most appropriate category. Always respond with valid JSON only."
)

HEADER_SYSTEM_PROMPT = "You are an expert at processing invoice data. Always respond with valid JSON only."

# Response key -> InvoiceRecord field
HEADER_FIELD_MAP = {
    "supplier_name": "supplier",
    "invoice_date": "date",
    "invoice_number": "invoice_number",
    "total_amount": "total",
    "currency": "currency",
    "payment_terms": "payment_terms",
    "line_items_count": "line_items_count",
    "invoice_type": "invoice_type",
}


def needs_categorization(item: LineItem) -> bool:
    return (item.category or "").strip().lower() in UNCATEGORIZED


def build_categorization_prompt(descriptions: list[str]) -> str:
    numbered = "\n".join(f"{i}. {desc}" for i, desc in enumerate(descriptions, start=1))
    return f"""Analyze these invoice line items and categorize each one.

Items to categorize:
{numbered}

Available categories: {", ".join(CATEGORIES)}

For each item, determine:
1. Most appropriate category from the list above
2. More specific subcategory (optional)
3. Confidence level (0-100)
4. Clean/standardized description if the original is unclear

IMPORTANT: Return ONLY a valid JSON array with exactly one object per item, in the same order, no markdown formatting.

Format:
[
  {{
    "category": "food",
    "subcategory": "groceries",
    "confidence": 95,
    "cleanDescription": "Fresh bread loaf"
  }},
  {{
    "category": "cleaning",
    "subcategory": "household",
    "confidence": 90,
    "cleanDescription": "Liquid detergent"
  }}
]"""


def build_header_prompt(raw_text: str, header: dict) -> str:
    return f"""Analyze this invoice text and extract enhanced information:

Raw invoice text:
{raw_text[:settings.header_text_prefix_chars]}

Current extracted data:
{json.dumps(header, indent=2)}

IMPORTANT: Return ONLY valid JSON, no markdown formatting.

Format:
{{
  "supplier_name": "cleaned supplier name",
  "invoice_date": "YYYY-MM-DD format",
  "invoice_number": "cleaned invoice number",
  "total_amount": "numeric value only",
  "currency": "USD/EUR/etc",
  "payment_terms": "if mentioned",
  "line_items_count": "number of items",
  "invoice_type": "receipt/invoice/bill"
}}"""


async def _request_json(client: Completer, system: str, prompt: str, temperature: float, max_tokens: int) -> EnrichmentResult:
    """Run one completion and parse its fenced or bare JSON body."""
    logger.debug("Enrichment state change", state=EnrichmentState.REQUESTED.value)
    try:
        text = await client.complete(system, prompt, temperature, max_tokens)
    except Exception as e:
        return Degraded(f"completion failed: {e}")

    cleaned = strip_code_fence(text)
    try:
        return Succeeded(json.loads(cleaned))
    except json.JSONDecodeError as e:
        return Degraded(f"response is not valid JSON: {e}")


async def request_categories(descriptions: list[str], client: Completer) -> EnrichmentResult:
    result = await _request_json(
        client,
        CATEGORIZATION_SYSTEM_PROMPT,
        build_categorization_prompt(descriptions),
        settings.categorization_temperature,
        settings.categorization_max_tokens,
    )
    if isinstance(result, Degraded):
        return result
    if not isinstance(result.data, list):
        return Degraded("response is not a JSON array")
    # An invalid element only costs its own item; the rest of the batch stands
    elements: list[CategoryResult | None] = []
    for position, element in enumerate(result.data):
        try:
            elements.append(CategoryResult.model_validate(element))
        except ValidationError as e:
            logger.warning(f"Ignoring invalid categorization element {position}: {e.error_count()} errors")
            elements.append(None)
    return Succeeded(elements)


async def request_header(raw_text: str, header: dict, client: Completer) -> EnrichmentResult:
    result = await _request_json(
        client,
        HEADER_SYSTEM_PROMPT,
        build_header_prompt(raw_text, header),
        settings.header_temperature,
        settings.header_max_tokens,
    )
    if isinstance(result, Succeeded) and not isinstance(result.data, dict):
        return Degraded("response is not a JSON object")
    return result


def _normalize_category(value: str | None) -> str:
    category = (value or "").strip().lower().replace(" ", "_")
    if category not in CATEGORIES:
        if category:
            logger.warning(f"AI returned unknown category '{value}', using 'other'")
        return "other"
    return category


def _apply_category_result(item: LineItem, result: CategoryResult) -> LineItem:
    confidence = DEFAULT_AI_CONFIDENCE if result.confidence is None else round(result.confidence)
    return item.model_copy(update={
        "category": _normalize_category(result.category),
        "subcategory": result.subcategory,
        "clean_description": result.clean_description or item.clean_description,
        "ai_confidence": max(0, min(100, confidence)),
        "ai_categorized": True,
    })


def _fallback_category(item: LineItem) -> LineItem:
    return item.model_copy(update={
        "category": categorize(item.description or item.raw_text),
        "ai_confidence": 0,
        "ai_categorized": False,
    })


async def enhance_line_items(line_items: list[LineItem], client: Completer) -> list[LineItem]:
    """
    Categorize the items the keyword rules could not place.

    Items that already have a category are returned untouched. The response
    array is matched against the pending batch, not the full list; each
    pending item carries its original index so order is preserved.
    """
    pending = [(index, item) for index, item in enumerate(line_items) if needs_categorization(item)]
    if not pending:
        logger.info("All items already have categories, skipping AI categorization")
        return line_items

    logger.info(f"Found {len(pending)} items needing categorization")
    result = await request_categories([item.best_description for _, item in pending], client)

    enhanced = list(line_items)
    if isinstance(result, Degraded):
        logger.warning("AI categorization degraded, using keyword fallback", reason=result.reason)
        for index, item in pending:
            enhanced[index] = _fallback_category(item)
        return enhanced

    logger.info(f"Received categories for {len(result.data)} of {len(pending)} items")
    for position, (index, item) in enumerate(pending):
        if position < len(result.data) and result.data[position] is not None:
            enhanced[index] = _apply_category_result(item, result.data[position])
            logger.debug(
                "Item categorized by AI",
                description=item.best_description,
                category=enhanced[index].category,
                confidence=enhanced[index].ai_confidence,
            )
        else:
            enhanced[index] = _fallback_category(item)
    return enhanced


def merge_header(record: InvoiceRecord, data: dict) -> InvoiceRecord:
    """
    Overlay the AI header fields on the record.

    Unlike a plain shallow merge, null, empty or nested AI values are skipped
    so they never erase a field the OCR stage already extracted.
    """
    update: dict[str, Any] = {}
    for key, value in data.items():
        field = HEADER_FIELD_MAP.get(key)
        if field is None:
            logger.debug(f"Ignoring unknown header field '{key}'")
            continue
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            update[field] = text
    update["ai_enhanced"] = True
    return record.model_copy(update=update)


async def enhance_header(raw_text: str | None, record: InvoiceRecord, client: Completer) -> InvoiceRecord:
    """Clean up header fields with the completion service; always returns a usable record."""
    result = await request_header(raw_text or "", record.header(), client)
    if isinstance(result, Degraded):
        logger.warning("AI header enrichment degraded", reason=result.reason)
        return record.model_copy(update={"ai_enhanced": False})

    logger.info("AI header enrichment succeeded", fields=sorted(result.data))
    return merge_header(record, result.data)
