import inspect
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from routes.analyze_route import router as analyze_router
from routes.session_route import router as session_router
from services.session_store import InMemorySessionStore
from utils.log_config import configure_logging
from utils.settings import Settings, load_settings

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

LOGGER = logging.getLogger(__name__)


def _build_openai_client(settings: Settings) -> Optional[AsyncOpenAI]:
    """Create the OpenAI client, or return None when no key is configured."""
    if not settings.openai_api_key:
        LOGGER.warning("OPENAI_API_KEY is not set; /api/analyze will answer 500 until it is configured")
        return None
    try:
        return AsyncOpenAI(api_key=settings.openai_api_key)
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the in-memory session relay store
      - the OpenAI async client (None when OPENAI_API_KEY is missing)
    and attach them to `app.state`.
    """
    settings: Settings = app.state.settings
    app.state.session_store = InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)
    app.state.openai_client = _build_openai_client(settings)

    try:
        yield
    finally:
        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    result = aclose()
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    LOGGER.warning("Error while closing OpenAI client: %s", exc)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Expiry Label Reader", lifespan=lifespan)
    app.state.settings = settings

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the upload and results page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Report whether the OpenAI client is configured and how many relay sessions are held.
        """
        store = getattr(request.app.state, "session_store", None)
        return {
            "ok": True,
            "openai_available": getattr(request.app.state, "openai_client", None) is not None,
            "sessions": len(store) if store is not None else 0,
        }

    # Register application routers
    app.include_router(session_router)
    app.include_router(analyze_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # The paired phone posts to this host, so bind every interface
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level="info",
    )
