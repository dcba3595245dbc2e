"""Async HTTP client for the relay and analyze endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from models.uploaded_image import LocalFile

LOGGER = logging.getLogger(__name__)

SESSION_HEADERS = {"ngrok-skip-browser-warning": "true"}


@dataclass(frozen=True)
class AnalyzeOutcome:
    """Result of one ``/api/analyze`` call as seen by the board."""

    ok: bool
    product: str = ""
    expiry_date: str = ""
    error: Optional[str] = None


class ExpiryReaderClient:
    """Thin wrapper around ``httpx.AsyncClient`` for the server's JSON API.

    Args:
        base_url: Server address, e.g. ``http://localhost:8000``.
        timeout: Per-request timeout in seconds; label extraction may take up to a minute.
        transport: Optional transport, used to plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ExpiryReaderClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def get_session(self, session_id: str) -> Dict[str, Any]:
        response = await self._http.get(f"/api/session/{session_id}", headers=SESSION_HEADERS)
        response.raise_for_status()
        return response.json()

    async def update_session(self, session_id: str, **fields: Any) -> Dict[str, Any]:
        """POST a partial JSON update, e.g. ``webConnected=False`` or ``command="open_camera"``."""
        response = await self._http.post(f"/api/session/{session_id}", json=fields, headers=SESSION_HEADERS)
        response.raise_for_status()
        return response.json()

    async def upload_to_session(self, session_id: str, file: LocalFile) -> Dict[str, Any]:
        """Relay an image the way the phone does, as a multipart ``image`` field."""
        response = await self._http.post(
            f"/api/session/{session_id}",
            files={"image": (file.name, file.content, file.content_type)},
            headers=SESSION_HEADERS,
        )
        response.raise_for_status()
        return response.json()

    async def analyze(
        self,
        file: LocalFile,
        *,
        manual_product: Optional[str] = None,
        manual_date: Optional[str] = None,
    ) -> AnalyzeOutcome:
        """Send one image for extraction; transport and HTTP errors become a failed outcome."""
        data: Dict[str, str] = {}
        if manual_product:
            data["manualProduct"] = manual_product
        if manual_date:
            data["manualDate"] = manual_date
        try:
            response = await self._http.post(
                "/api/analyze",
                files={"image": (file.name, file.content, file.content_type)},
                data=data,
            )
        except httpx.HTTPError as exc:
            LOGGER.warning("Analyze request for %s failed: %s", file.name, exc)
            return AnalyzeOutcome(ok=False, error=str(exc))

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            LOGGER.warning("Analyze returned a non-object body for %s", file.name)
            return AnalyzeOutcome(ok=False, error="unexpected response")
        if not response.is_success:
            error = payload.get("message") or payload.get("error") or response.reason_phrase
            LOGGER.warning("Analyze returned %s for %s: %s", response.status_code, file.name, error)
            return AnalyzeOutcome(ok=False, error=str(error))

        product = payload.get("product")
        expiry = payload.get("expiryDate")
        return AnalyzeOutcome(
            ok=True,
            product=str(product).strip() if product is not None else "",
            expiry_date=expiry.strip() if isinstance(expiry, str) else "",
        )
