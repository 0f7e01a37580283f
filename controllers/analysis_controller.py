from fastapi import HTTPException, Request, UploadFile
from typing import Any, Dict

from services.analysis.errors import ExtractionFailedError, ExtractionUnavailableError, InvalidImageError
from services.analysis.pipeline import AnalysisPipeline
from utils.media_validation import read_image_upload
from utils.settings import Settings


async def analyze_label(request: Request, image: UploadFile) -> Dict[str, Any]:
    """Analyze an uploaded label image and open a follow-up session.

    Args:
        request: FastAPI Request (used to access the shared pipeline and settings).
        image: Uploaded label photo.

    Returns:
        A dict containing: success, session_id, data (the summary), extraction,
        enrichment_available and suggested_questions.

    Raises:
        HTTPException(400/413/415) for invalid uploads, 422 when the image is not
        a readable food label.
    """
    settings: Settings = request.app.state.settings
    pipeline: AnalysisPipeline = request.app.state.analysis_pipeline

    image_bytes, media_type = await read_image_upload(
        image,
        max_bytes=settings.max_upload_bytes,
        allowed_types=settings.allowed_media_types,
    )

    try:
        outcome = await pipeline.run(image_bytes, media_type)
    except InvalidImageError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    except ExtractionUnavailableError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc
    except ExtractionFailedError as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc

    return {
        "success": True,
        "session_id": outcome.session.session_id,
        "data": outcome.summary.model_dump(),
        "extraction": outcome.extraction.model_dump(),
        "enrichment_available": not outcome.enrichment_degraded,
        "suggested_questions": list(outcome.suggested_questions),
    }
