"""Poll a relay session and feed phone captures into the results board."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

import httpx

from clients.board_controller import BoardController
from models.uploaded_image import UploadedImage

LOGGER = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 2.0
OPEN_CAMERA_COMMAND = "open_camera"


class SessionPoller:
	"""Browser-side half of the phone relay.

	``start()`` announces the web client and polls every two seconds until
	``close()``; extraction for relayed images runs in the background so a
	slow model call never delays the next poll.
	"""

	def __init__(
		self,
		session_id: str,
		controller: BoardController,
		interval: float = POLL_INTERVAL_SECONDS,
	) -> None:
		if not session_id:
			raise ValueError("Session id is required.")
		self.session_id = session_id
		self.controller = controller
		self.interval = interval
		self.mobile_connected = False
		self._task: Optional[asyncio.Task] = None
		self._analysis: Set[asyncio.Task] = set()

	@property
	def api(self):
		return self.controller.api

	async def start(self) -> None:
		try:
			await self.api.update_session(self.session_id, webConnected=True)
		except httpx.HTTPError as exc:
			LOGGER.warning("Could not announce web client for session %s: %s", self.session_id, exc)
		self._task = asyncio.create_task(self._run())

	async def _run(self) -> None:
		while True:
			await asyncio.sleep(self.interval)
			await self.poll_once()

	async def poll_once(self) -> List[UploadedImage]:
		"""Fetch the session once and schedule extraction for unseen images."""
		try:
			state = await self.api.get_session(self.session_id)
		except (httpx.HTTPError, ValueError) as exc:
			LOGGER.warning("Polling session %s failed: %s", self.session_id, exc)
			return []

		if not isinstance(state, dict):
			LOGGER.warning("Session %s returned an unexpected payload", self.session_id)
			return []

		if state.get("mobileConnected"):
			if not self.mobile_connected:
				LOGGER.info("Phone connected to session %s", self.session_id)
			self.mobile_connected = True

		batch = self.controller.board.add_relayed(state.get("images") or [])
		if batch:
			LOGGER.info("Received %d image(s) from phone", len(batch))
			task = asyncio.create_task(self.controller.analyze_batch(batch))
			self._analysis.add(task)
			task.add_done_callback(self._analysis.discard)
		return batch

	async def drain(self) -> None:
		"""Wait for background extraction started by earlier polls."""
		if self._analysis:
			await asyncio.gather(*list(self._analysis))

	async def open_camera(self) -> bool:
		"""Ask the phone to open its camera; ignored until the phone has connected."""
		if not self.mobile_connected:
			LOGGER.info("Phone not connected yet; open camera ignored")
			return False
		try:
			await self.api.update_session(self.session_id, command=OPEN_CAMERA_COMMAND)
		except (httpx.HTTPError, ValueError) as exc:
			LOGGER.warning("Open camera for session %s failed: %s", self.session_id, exc)
			return False
		return True

	async def close(self) -> None:
		"""Stop polling and mark the web client as gone.

		In-flight extraction is left to finish; results for removed entries are dropped.
		"""
		if self._task is not None:
			self._task.cancel()
			try:
				await self._task
			except asyncio.CancelledError:
				pass
			self._task = None
		try:
			await self.api.update_session(self.session_id, webConnected=False)
		except httpx.HTTPError as exc:
			LOGGER.warning("Could not mark session %s disconnected: %s", self.session_id, exc)
		self.mobile_connected = False
