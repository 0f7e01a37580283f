from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from controllers.analysis_controller import analyze_label

router = APIRouter(prefix="/api")


@router.post("/analyze")
async def post_analyze(request: Request, image: UploadFile = File(...)):
    """Analyze a food label photo and return the verdict with a new session id."""
    try:
        return await analyze_label(request, image)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Failed to process image.") from exc
