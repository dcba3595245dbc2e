import pytest

from models.session_models import SessionUpdate
from services.session_store import InMemorySessionStore


class FakeClock:
	def __init__(self, now=1000.0):
		self.now = now

	def __call__(self):
		return self.now


def test_first_access_creates_default_state():
	store = InMemorySessionStore()
	assert store.get_or_create("abc").to_payload() == {
		"mobileConnected": False,
		"webConnected": False,
		"pendingCommand": None,
		"images": [],
	}
	assert len(store) == 1
	assert store.read("missing") is None


def test_blank_session_id_is_rejected():
	with pytest.raises(ValueError):
		InMemorySessionStore().get_or_create("")


def test_partial_update_leaves_other_fields_alone():
	store = InMemorySessionStore()
	store.update("abc", SessionUpdate.from_body({"webConnected": True, "command": "open_camera"}))
	state = store.update("abc", SessionUpdate.from_body({"mobileConnected": True}))
	assert state.mobile_connected is True
	assert state.web_connected is True
	assert state.pending_command == "open_camera"


def test_null_command_clears_pending_command():
	store = InMemorySessionStore()
	store.update("abc", SessionUpdate.from_body({"command": "open_camera"}))
	state = store.update("abc", SessionUpdate.from_body({"command": None}))
	assert state.pending_command is None


def test_non_string_command_is_stored_as_text():
	state = InMemorySessionStore().update("abc", SessionUpdate.from_body({"command": 42}))
	assert state.pending_command == "42"


def test_ill_typed_fields_are_dropped_individually():
	update = SessionUpdate.from_body({"mobileConnected": "yes", "webConnected": True, "image": 5})
	assert update.mobile_connected is None
	assert update.web_connected is True
	assert update.image is None
	assert not update.has_command


def test_non_object_body_is_rejected():
	with pytest.raises(ValueError):
		SessionUpdate.from_body(["not", "an", "object"])


def test_images_get_unique_ids_and_empty_placeholders():
	store = InMemorySessionStore(wall_clock_ms=lambda: 1700000000000)
	store.append_image("abc", "data:image/png;base64,AAAA")
	state = store.update("abc", SessionUpdate.from_body({"image": "data:image/jpeg;base64,BBBB"}))
	ids = [image.id for image in state.images]
	assert ids == ["mobile-1700000000000-0", "mobile-1700000000000-1"]
	assert state.images[1].to_payload() == {
		"id": "mobile-1700000000000-1",
		"dataUrl": "data:image/jpeg;base64,BBBB",
		"product": "",
		"expiryDate": "",
	}


def test_empty_image_string_is_not_appended():
	store = InMemorySessionStore()
	assert store.update("abc", SessionUpdate.from_body({"image": ""})).images == []
	assert store.append_image("abc", "").images == []


def test_idle_sessions_expire_when_ttl_is_set():
	clock = FakeClock()
	store = InMemorySessionStore(ttl_seconds=60, clock=clock)
	store.update("abc", SessionUpdate.from_body({"mobileConnected": True}))

	clock.now += 30
	assert store.get_or_create("abc").mobile_connected is True

	clock.now += 61
	assert store.read("abc") is None
	assert store.get_or_create("abc").mobile_connected is False


def test_purge_expired_drops_only_idle_sessions():
	clock = FakeClock()
	store = InMemorySessionStore(ttl_seconds=60, clock=clock)
	store.get_or_create("old")
	clock.now += 50
	store.get_or_create("fresh")
	clock.now += 20
	assert store.purge_expired() == 1
	assert store.read("old") is None
	assert store.read("fresh") is not None


def test_no_ttl_keeps_sessions_forever():
	clock = FakeClock()
	store = InMemorySessionStore(clock=clock)
	store.get_or_create("abc")
	clock.now += 10 ** 9
	assert store.purge_expired() == 0
	assert store.read("abc") is not None


def test_idle_sessions_are_dropped_when_another_key_is_accessed():
	clock = FakeClock()
	store = InMemorySessionStore(ttl_seconds=60, clock=clock)
	for index in range(100):
		store.get_or_create(f"pair-{index}")

	clock.now += 61
	store.get_or_create("fresh")

	assert len(store) == 1
	assert store.read("pair-0") is None
