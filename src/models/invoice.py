from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class EntityType(str, Enum):
    """Entity tags emitted by the invoice OCR processor that the pipeline understands."""

    SUPPLIER_NAME = "supplier_name"
    TOTAL_AMOUNT = "total_amount"
    INVOICE_DATE = "invoice_date"
    INVOICE_ID = "invoice_id"
    DUE_DATE = "due_date"
    CURRENCY = "currency"
    NET_AMOUNT = "net_amount"
    TOTAL_TAX_AMOUNT = "total_tax_amount"
    RECEIVER_NAME = "receiver_name"
    SUPPLIER_ADDRESS = "supplier_address"
    PAYMENT_TERMS = "payment_terms"
    LINE_ITEM = "line_item"
    LINE_ITEM_DESCRIPTION = "line_item/description"
    LINE_ITEM_QUANTITY = "line_item/quantity"
    LINE_ITEM_UNIT_PRICE = "line_item/unit_price"
    LINE_ITEM_AMOUNT = "line_item/amount"
    LINE_ITEM_PRODUCT_CODE = "line_item/product_code"

    @classmethod
    def parse(cls, value: str | None) -> "EntityType | None":
        try:
            return cls(value)
        except ValueError:
            return None


class TextSegment(BaseModel):
    # Offsets arrive as int64-encoded strings and are checked by the resolver
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_index: Any = Field(default=None, alias="startIndex")
    end_index: Any = Field(default=None, alias="endIndex")


class TextAnchor(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text_segments: list[TextSegment] = Field(default_factory=list, alias="textSegments")
    content: str | None = None


class NormalizedValue(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    text: str | None = None


class RawEntity(BaseModel):
    """One typed span detected by the OCR service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: str = ""
    mention_text: str | None = Field(default=None, alias="mentionText")
    normalized_value: NormalizedValue | None = Field(default=None, alias="normalizedValue")
    text_anchor: TextAnchor | None = Field(default=None, alias="textAnchor")
    confidence: float | None = None
    properties: list["RawEntity"] = Field(default_factory=list)

    @property
    def entity_type(self) -> EntityType | None:
        return EntityType.parse(self.type)

    @property
    def value(self) -> str | None:
        """Normalized text when present, otherwise the literal mention text."""
        if self.normalized_value and self.normalized_value.text:
            return self.normalized_value.text
        return self.mention_text or None


class PageAnchor(BaseModel):
    model_config = ConfigDict(extra="allow")

    confidence: float | None = None


class OCRPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    page_anchor: PageAnchor | None = Field(default=None, alias="pageAnchor")


class OCRDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str | None = None
    entities: list[RawEntity] = Field(default_factory=list)
    pages: list[OCRPage] = Field(default_factory=list)

    @property
    def confidence(self) -> float:
        if not self.pages or not self.pages[0].page_anchor:
            return 0.0
        return self.pages[0].page_anchor.confidence or 0.0


class OCRResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    document: OCRDocument | None = None


class LineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: str | None = None
    quantity: str | None = None
    unit_price: str | None = Field(default=None, alias="unitPrice")
    amount: str | None = None
    product_code: str | None = Field(default=None, alias="productCode")
    raw_text: str = Field(default="", alias="rawText")
    category: str = "other"
    subcategory: str | None = None
    clean_description: str | None = Field(default=None, alias="cleanDescription")
    ai_confidence: int | None = Field(default=None, alias="aiConfidence")
    ai_categorized: bool = Field(default=False, alias="aiCategorized")

    @property
    def best_description(self) -> str:
        return self.clean_description or self.description or self.raw_text or "Unknown item"


class InvoiceRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    supplier: str | None = None
    total: str | None = None
    date: str | None = None
    invoice_number: str | None = Field(default=None, alias="invoiceNumber")
    line_items: list[LineItem] = Field(default_factory=list, alias="lineItems")
    confidence: float = 0.0
    raw_text: str | None = Field(default=None, alias="rawText")

    # Populated by header enrichment only
    currency: str | None = None
    payment_terms: str | None = Field(default=None, alias="paymentTerms")
    invoice_type: str | None = Field(default=None, alias="invoiceType")
    line_items_count: str | None = Field(default=None, alias="lineItemsCount")
    ai_enhanced: bool | None = Field(default=None, alias="aiEnhanced")  # None = not attempted

    def header(self) -> dict:
        return {
            "supplier": self.supplier,
            "total": self.total,
            "date": self.date,
            "invoiceNumber": self.invoice_number,
            "lineItemsCount": len(self.line_items),
        }


class ProcessingResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: InvoiceRecord | None = None
    error: str | None = None
    processing_time: int | None = Field(default=None, alias="processingTime")  # milliseconds
