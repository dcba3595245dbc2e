"""Session domain models for the phone-to-browser image relay."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError, field_validator

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionImage:
	"""Image relayed from the phone, kept as a data URL until the browser consumes it."""

	id: str
	data_url: str
	product: str = ""
	expiry_date: str = ""

	def to_payload(self) -> Dict[str, str]:
		return {
			"id": self.id,
			"dataUrl": self.data_url,
			"product": self.product,
			"expiryDate": self.expiry_date,
		}


@dataclass
class SessionState:
	"""In-memory relay state shared by a phone and a browser tab."""

	session_id: str
	mobile_connected: bool = False
	web_connected: bool = False
	pending_command: Optional[str] = None
	images: List[SessionImage] = field(default_factory=list)
	touched_at: float = field(default_factory=time.monotonic)

	def to_payload(self) -> Dict[str, Any]:
		"""Return the wire representation returned by every relay call."""
		return {
			"mobileConnected": self.mobile_connected,
			"webConnected": self.web_connected,
			"pendingCommand": self.pending_command,
			"images": [image.to_payload() for image in self.images],
		}


class SessionUpdate(BaseModel):
	"""Partial update posted as JSON to the relay endpoint.

	Only fields present in the body are applied; ``command: null`` clears the
	pending command, which is why presence is tracked via ``model_fields_set``.
	"""

	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	mobile_connected: Optional[StrictBool] = Field(default=None, alias="mobileConnected")
	web_connected: Optional[StrictBool] = Field(default=None, alias="webConnected")
	command: Optional[str] = None
	image: Optional[StrictStr] = None

	@field_validator("command", mode="before")
	@classmethod
	def _stringify_command(cls, value: Any) -> Optional[str]:
		if value is None:
			return None
		if isinstance(value, bool):
			return "true" if value else "false"
		return str(value)

	@property
	def has_command(self) -> bool:
		return "command" in self.model_fields_set

	@classmethod
	def from_body(cls, body: Any) -> "SessionUpdate":
		"""Validate a decoded JSON body, dropping fields that have the wrong type.

		Raises:
			ValueError: If the body is not a JSON object.
		"""
		if not isinstance(body, dict):
			raise ValueError("Session update must be a JSON object.")
		data = dict(body)
		try:
			return cls.model_validate(data)
		except ValidationError as exc:
			rejected = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
			LOGGER.warning("Ignoring ill-typed session fields: %s", ", ".join(sorted(rejected)))
			for key in rejected:
				data.pop(key, None)
			return cls.model_validate(data)
