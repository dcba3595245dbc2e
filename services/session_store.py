"""Keyed store for phone-to-browser relay sessions."""

from __future__ import annotations

import abc
import logging
import time
from typing import Callable, Dict, Optional

from models.session_models import SessionImage, SessionState, SessionUpdate

LOGGER = logging.getLogger(__name__)


class SessionStore(abc.ABC):
	"""Get-or-create / read / partial-update access to relay sessions."""

	@abc.abstractmethod
	def get_or_create(self, session_id: str) -> SessionState:
		"""Return the session for ``session_id``, creating an empty one if needed."""

	@abc.abstractmethod
	def read(self, session_id: str) -> Optional[SessionState]:
		"""Return the session if it exists, without creating it."""

	@abc.abstractmethod
	def update(self, session_id: str, update: SessionUpdate) -> SessionState:
		"""Apply a partial update and return the resulting session."""

	@abc.abstractmethod
	def append_image(self, session_id: str, data_url: str) -> SessionState:
		"""Append a relayed image and return the resulting session."""

	@abc.abstractmethod
	def purge_expired(self) -> int:
		"""Drop idle sessions and return how many were removed."""


class InMemorySessionStore(SessionStore):
	"""Process-local session map.

	Sessions live for the process lifetime unless ``ttl_seconds`` is positive,
	in which case sessions idle for longer are dropped lazily on access.
	There is no locking: scalar fields are last-write-wins and images are
	append-only.
	"""

	def __init__(
		self,
		ttl_seconds: float = 0.0,
		clock: Callable[[], float] = time.monotonic,
		wall_clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
	) -> None:
		self._sessions: Dict[str, SessionState] = {}
		self.ttl_seconds = ttl_seconds
		self._clock = clock
		self._wall_clock_ms = wall_clock_ms

	def __len__(self) -> int:
		return len(self._sessions)

	def _is_expired(self, state: SessionState, now: float) -> bool:
		return self.ttl_seconds > 0 and now - state.touched_at > self.ttl_seconds

	def get_or_create(self, session_id: str) -> SessionState:
		if not session_id:
			raise ValueError("Session id is required.")
		self.purge_expired()
		now = self._clock()
		state = self._sessions.get(session_id)
		if state is None:
			state = SessionState(session_id=session_id, touched_at=now)
			self._sessions[session_id] = state
			LOGGER.debug("Created session %s", session_id)
		state.touched_at = now
		return state

	def read(self, session_id: str) -> Optional[SessionState]:
		state = self._sessions.get(session_id)
		if state is None or self._is_expired(state, self._clock()):
			return None
		return state

	def update(self, session_id: str, update: SessionUpdate) -> SessionState:
		state = self.get_or_create(session_id)
		if update.mobile_connected is not None:
			state.mobile_connected = update.mobile_connected
		if update.web_connected is not None:
			state.web_connected = update.web_connected
		if update.has_command:
			state.pending_command = update.command
		if update.image:
			self._append(state, update.image)
		return state

	def append_image(self, session_id: str, data_url: str) -> SessionState:
		state = self.get_or_create(session_id)
		if data_url:
			self._append(state, data_url)
		return state

	def _append(self, state: SessionState, data_url: str) -> None:
		image_id = f"mobile-{self._wall_clock_ms()}-{len(state.images)}"
		state.images.append(SessionImage(id=image_id, data_url=data_url))
		LOGGER.info("Session %s received image %s", state.session_id, image_id)

	def purge_expired(self) -> int:
		if self.ttl_seconds <= 0:
			return 0
		now = self._clock()
		expired = [key for key, state in self._sessions.items() if self._is_expired(state, now)]
		for key in expired:
			del self._sessions[key]
		if expired:
			LOGGER.info("Purged %d idle session(s)", len(expired))
		return len(expired)
