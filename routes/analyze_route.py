"""FastAPI route for reading product labels."""

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from controllers.analyze_controller import AnalysisError, AnalyzeController
from utils.media_validation import read_image_upload

router = APIRouter(prefix="/api/analyze", tags=["analyze"])


def _get_controller(request: Request) -> AnalyzeController:
    settings = request.app.state.settings
    return AnalyzeController(settings.openai_model, timeout_seconds=settings.analyze_timeout_seconds)


def _form_text(value) -> Optional[str]:
    return value if isinstance(value, str) else None


@router.post("", summary="Read product name and expiry date from a label photo")
async def analyze_route(request: Request):
    """Handle a multipart upload with ``image`` and optional ``manualProduct`` / ``manualDate``.

    Returns:
        ``{"product": ..., "expiryDate": ...}`` or ``{"error": ..., "message": ...}``
        with status 400 or 500.
    """
    try:
        form = await request.form()
        upload = form.get("image")
        image = await read_image_upload(upload) if isinstance(upload, UploadFile) else None
        image_bytes, mime_type = image if image is not None else (None, "")
        result = await _get_controller(request).analyze(
            image_bytes,
            mime_type,
            manual_product=_form_text(form.get("manualProduct")),
            manual_date=_form_text(form.get("manualDate")),
            openai_client=getattr(request.app.state, "openai_client", None),
        )
    except AnalysisError as exc:
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return JSONResponse({"error": "analysis_failed", "message": str(exc)}, status_code=500)
    return result
