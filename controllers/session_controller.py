"""Relay helpers that read and mutate phone-to-browser sessions."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request
from starlette.datastructures import UploadFile

from models.session_models import SessionUpdate
from services.session_store import SessionStore
from utils.media_validation import read_image_upload, to_data_url

LOGGER = logging.getLogger(__name__)


def _store(request: Request) -> SessionStore:
	store = getattr(request.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


def _require_session_id(session_id: str) -> str:
	cleaned = (session_id or "").strip()
	if not cleaned:
		raise HTTPException(status_code=400, detail="Missing sessionId")
	return cleaned


async def read_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return the session state, creating an empty session on first access."""
	session_id = _require_session_id(session_id)
	state = _store(request).get_or_create(session_id)
	return state.to_payload()


async def update_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Apply a multipart image upload or a JSON partial update.

	Malformed bodies leave the session untouched; the current state is
	returned either way so polling clients never have to handle errors.
	"""
	session_id = _require_session_id(session_id)
	store = _store(request)
	state = store.get_or_create(session_id)
	content_type = request.headers.get("content-type", "")

	if "multipart/form-data" in content_type:
		try:
			form = await request.form()
			upload = form.get("image")
			if isinstance(upload, UploadFile):
				image = await read_image_upload(upload)
				if image is not None:
					image_bytes, mime_type = image
					state = store.append_image(session_id, to_data_url(image_bytes, mime_type))
		except Exception as exc:  # pylint: disable=broad-exception-caught
			LOGGER.warning("Ignoring malformed multipart upload for session %s: %s", session_id, exc)
		return state.to_payload()

	try:
		body = json.loads(await request.body() or b"null")
		state = store.update(session_id, SessionUpdate.from_body(body))
	except (ValueError, TypeError) as exc:
		LOGGER.warning("Ignoring malformed session update for %s: %s", session_id, exc)
	return state.to_payload()
