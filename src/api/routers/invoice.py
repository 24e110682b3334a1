import time
from datetime import datetime, UTC
from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse
from loguru import logger
from ..deps import ConfigResponse, get_completer
from ...core.config import settings
from ...core.errors import MissingDocumentError, OCRServiceError
from ...models.invoice import ProcessingResult
from ...services.completion import Completer
from ...services.document_ai import describe_configuration, process_document
from ...services.pipeline import process

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _failure(status_code: int, error: str) -> JSONResponse:
    result = ProcessingResult(success=False, error=error)
    return JSONResponse(status_code=status_code, content=result.model_dump(by_alias=True, exclude_none=True))


@router.post("/process", response_model=ProcessingResult)
async def process_invoice(
    file: UploadFile | None = File(None),
    completer: Completer | None = Depends(get_completer),
):
    """
    Extract a normalized invoice record from an uploaded image or PDF.

    The document goes through Document AI, then the extraction pipeline,
    then AI enrichment when an LLM key is configured. Enrichment failures
    never fail the request; they show up as aiEnhanced=false and
    aiCategorized=false on the returned record.
    """
    start = time.monotonic()

    if file is None:
        return _failure(status.HTTP_400_BAD_REQUEST, "No file uploaded")

    if file.content_type not in settings.allowed_mime_type_list:
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid file type. Please upload JPEG, PNG, or PDF.")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        max_mb = settings.max_upload_bytes // (1024 * 1024)
        return _failure(status.HTTP_400_BAD_REQUEST, f"File too large. Maximum size is {max_mb}MB.")

    logger.info(f"Processing file: {file.filename} ({file.content_type}, {len(content)} bytes)")

    try:
        ocr_response = await process_document(content, file.content_type)
        record = await process(
            ocr_response,
            enrichment_enabled=completer is not None,
            completion_client=completer,
        )
    except (MissingDocumentError, OCRServiceError) as e:
        logger.error(f"Invoice processing failed: {e}")
        return _failure(status.HTTP_502_BAD_GATEWAY, str(e))
    except Exception as e:
        logger.exception(f"Invoice processing error: {e}")
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Unknown error occurred")

    processing_time = int((time.monotonic() - start) * 1000)
    logger.info(f"Successfully processed invoice in {processing_time}ms")
    return ProcessingResult(success=True, data=record, processing_time=processing_time)


@router.get("/process")
async def process_status():
    return {
        "message": "Invoice processing API is running",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/config", response_model=ConfigResponse)
async def ocr_configuration():
    """Document AI configuration for troubleshooting deployments"""
    return ConfigResponse(
        message="Document AI configuration",
        config=describe_configuration(),
        enrichment_enabled=settings.enrichment_enabled,
    )
