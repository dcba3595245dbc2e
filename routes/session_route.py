"""FastAPI routes for the phone-to-browser session relay."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from controllers.session_controller import read_session, update_session

router = APIRouter(prefix="/api/session", tags=["session"])

CORS_HEADERS = {
	"Access-Control-Allow-Origin": "*",
	"Access-Control-Allow-Methods": "GET, POST, OPTIONS",
	"Access-Control-Allow-Headers": "Content-Type, ngrok-skip-browser-warning",
}


def _error(exc: HTTPException) -> JSONResponse:
	return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=CORS_HEADERS)


@router.options("/{session_id}")
async def session_options_route(session_id: str):
	return Response(status_code=204, headers=CORS_HEADERS)


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	"""Return the relay state for a session."""
	try:
		return JSONResponse(await read_session(request, session_id), headers=CORS_HEADERS)
	except HTTPException as exc:
		return _error(exc)
	except Exception as exc:
		return _error(HTTPException(status_code=500, detail=str(exc)))


@router.post("/{session_id}")
async def post_session_route(request: Request, session_id: str):
	"""Update connection flags or the pending command, or append an image."""
	try:
		return JSONResponse(await update_session(request, session_id), headers=CORS_HEADERS)
	except HTTPException as exc:
		return _error(exc)
	except Exception as exc:
		return _error(HTTPException(status_code=500, detail=str(exc)))
