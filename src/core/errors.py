"""
Exceptions raised by the invoice pipeline and its service clients.

Only MissingDocumentError crosses the pipeline boundary. CompletionError is
always absorbed by the enrichment adapter, and OCRServiceError belongs to the
OCR client that runs before the pipeline.
"""


class InvoicePipelineError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class MissingDocumentError(InvoicePipelineError):
    """Raised when the OCR response carries no document payload."""

    def __init__(self, reason: str = "No document returned from OCR service"):
        super().__init__(reason)


class OCRServiceError(InvoicePipelineError):
    """Raised when the OCR service call fails or returns a non-JSON body."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(f"OCR processing failed: {reason}", {"status_code": status_code})
        self.status_code = status_code


class CompletionError(InvoicePipelineError):
    """Raised by the completion client on transport failure or empty output."""
    pass


__all__ = [
    "InvoicePipelineError",
    "MissingDocumentError",
    "OCRServiceError",
    "CompletionError",
]
