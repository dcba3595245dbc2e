"""Environment-driven settings for the service and the companion client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_BASE_URL = "http://localhost:8000"


def _float_env(name: str, default: float) -> float:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	try:
		return float(raw)
	except ValueError as exc:
		raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
	"""Runtime configuration read from the environment.

	Attributes:
		openai_api_key: Key for the vision model; analysis is refused without it.
		openai_model: Responses API model used to read labels.
		session_ttl_seconds: Idle time after which relay sessions are dropped (0 keeps them forever).
		analyze_timeout_seconds: Upper bound on a single label extraction call.
		log_level: Name of the root log level.
		base_url: Server address used by the command line client.
	"""

	openai_api_key: Optional[str]
	openai_model: str = DEFAULT_MODEL
	session_ttl_seconds: float = 0.0
	analyze_timeout_seconds: float = 60.0
	log_level: str = "INFO"
	base_url: str = DEFAULT_BASE_URL


def load_settings() -> Settings:
	"""Load settings from the process environment, reading ``.env`` if present."""
	load_dotenv()
	return Settings(
		openai_api_key=os.getenv("OPENAI_API_KEY") or None,
		openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
		session_ttl_seconds=_float_env("SESSION_TTL_SECONDS", 0.0),
		analyze_timeout_seconds=_float_env("ANALYZE_TIMEOUT_SECONDS", 60.0),
		log_level=os.getenv("LOG_LEVEL", "INFO"),
		base_url=os.getenv("EXPIRY_READER_URL", DEFAULT_BASE_URL),
	)
