import base64
import httpx
from loguru import logger
from ..core.config import settings
from ..core.errors import OCRServiceError


def processor_name() -> str:
    return (
        f"projects/{settings.gcp_project_id}/locations/{settings.gcp_location}"
        f"/processors/{settings.gcp_processor_id}"
    )


def endpoint_url() -> str:
    return f"https://{settings.gcp_location}-documentai.googleapis.com/v1/{processor_name()}:process"


def describe_configuration() -> dict:
    """Document AI settings for diagnostics, with the credential masked."""
    return {
        "projectId": settings.gcp_project_id,
        "location": settings.gcp_location,
        "processorId": settings.gcp_processor_id,
        "credentials": "Configured" if settings.gcp_access_token else "Missing",
        "processorName": processor_name(),
        "endpointUrl": endpoint_url(),
        "configured": settings.document_ai_configured,
    }


async def process_document(file_bytes: bytes, mime_type: str) -> dict:
    """
    Run the invoice processor over a document and return the raw JSON response.

    Falls back to a canned response when Document AI is not configured.
    """
    if not settings.document_ai_configured:
        logger.warning(
            "Document AI not configured - using MOCK data. "
            "Set GOOGLE_CLOUD_PROJECT_ID, GOOGLE_CLOUD_PROCESSOR_ID and GOOGLE_CLOUD_ACCESS_TOKEN to use real OCR."
        )
        return mock_response(file_bytes)

    url = endpoint_url()
    logger.info(
        "Processing document with Document AI",
        endpoint=url[:80] + "..." if len(url) > 80 else url,
        size_bytes=len(file_bytes),
        mime_type=mime_type,
    )

    request = {
        "rawDocument": {
            "content": base64.b64encode(file_bytes).decode("ascii"),
            "mimeType": mime_type,
        }
    }
    headers = {"Authorization": f"Bearer {settings.gcp_access_token}"}

    try:
        async with httpx.AsyncClient(timeout=settings.docai_timeout_seconds) as client:
            r = await client.post(url, json=request, headers=headers)
            r.raise_for_status()
            return r.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"Document AI returned HTTP {e.response.status_code}")
        raise OCRServiceError(e.response.text[:500], status_code=e.response.status_code) from e
    except httpx.HTTPError as e:
        logger.error(f"Document AI request failed: {str(e)}")
        raise OCRServiceError(str(e)) from e
    except ValueError as e:
        logger.error(f"Document AI returned a non-JSON body: {str(e)}")
        raise OCRServiceError("response body is not JSON") from e


MOCK_TEXT = (
    "INVOICE\nContoso Office Supply\nInvoice #: INV-10023\nDate: 2025-09-30\n"
    "3 Red Apples $2.50 $7.50\n"
    "Office Printer Ink Cartridge 2 $19.99 $39.98\n"
    "Total: $47.48\n"
)


def _span(text: str, fragment: str) -> dict:
    start = text.index(fragment)
    return {"textSegments": [{"startIndex": str(start), "endIndex": str(start + len(fragment))}]}


def mock_response(file_bytes: bytes) -> dict:
    """Document AI shaped response for demos and tests. Empty uploads get zero confidence."""
    conf = 0.92 if file_bytes else 0.0
    logger.info("Returning mock Document AI response", file_size_bytes=len(file_bytes or b""), confidence=conf)

    return {
        "document": {
            "text": MOCK_TEXT,
            "pages": [{"pageNumber": 1, "pageAnchor": {"confidence": conf}}],
            "entities": [
                {"type": "supplier_name", "mentionText": "Contoso Office Supply"},
                {"type": "invoice_id", "mentionText": "INV-10023"},
                {"type": "invoice_date", "mentionText": "2025-09-30",
                 "normalizedValue": {"text": "2025-09-30"}},
                {"type": "total_amount", "mentionText": "$47.48", "normalizedValue": {"text": "47.48"}},
                {"type": "line_item", "textAnchor": _span(MOCK_TEXT, "3 Red Apples $2.50 $7.50")},
                {
                    "type": "line_item",
                    "mentionText": "Office Printer Ink Cartridge 2 $19.99 $39.98",
                    "properties": [
                        {"type": "line_item/description", "mentionText": "Office Printer Ink Cartridge"},
                        {"type": "line_item/quantity", "mentionText": "2"},
                        {"type": "line_item/unit_price", "mentionText": "$19.99",
                         "normalizedValue": {"text": "19.99"}},
                        {"type": "line_item/amount", "mentionText": "$39.98",
                         "normalizedValue": {"text": "39.98"}},
                    ],
                },
            ],
        }
    }
