import asyncio
import base64
from datetime import datetime

import httpx
import pytest

from clients.api_client import ExpiryReaderClient
from clients.board_controller import BoardController
from clients.results_board import ResultsBoard
from clients.session_poller import SessionPoller
from conftest import FakeOpenAI, make_png
from main import create_app
from models.uploaded_image import LocalFile
from services.session_store import InMemorySessionStore

REPLY = '{"product":"SHARPS CONTAINER 10L","expiryDate":"2027-01-01"}'


@pytest.fixture
def relay_app(settings):
	app = create_app(settings)
	app.state.session_store = InMemorySessionStore()
	app.state.openai_client = FakeOpenAI(REPLY)
	return app


@pytest.fixture
def board(tmp_path):
	board = ResultsBoard(preview_dir=str(tmp_path))
	yield board
	board.close()


def _run(relay_app, board, scenario):
	async def runner():
		transport = httpx.ASGITransport(app=relay_app)
		async with ExpiryReaderClient("http://testserver", transport=transport) as api:
			controller = BoardController(board, api, clock=lambda: datetime(2026, 10, 17))
			poller = SessionPoller("pair-1", controller, interval=0.01)
			return await scenario(poller, api)

	return asyncio.run(runner())


def test_start_and_close_toggle_web_connection(relay_app, board):
	store = relay_app.state.session_store

	async def scenario(poller, api):
		await poller.start()
		connected = store.read("pair-1").web_connected
		await poller.close()
		return connected

	assert _run(relay_app, board, scenario) is True
	assert store.read("pair-1").web_connected is False


def test_phone_images_are_picked_up_once_and_analyzed(relay_app, board):
	async def scenario(poller, api):
		await api.update_session("pair-1", mobileConnected=True)
		await api.upload_to_session("pair-1", LocalFile("shot.png", make_png(), "image/png"))
		first = await poller.poll_once()
		await poller.drain()
		second = await poller.poll_once()
		return first, second, poller.mobile_connected

	first, second, mobile_connected = _run(relay_app, board, scenario)

	assert mobile_connected is True
	assert len(first) == 1 and second == []
	image = board.images[0]
	assert image.id.startswith("mobile-")
	assert image.file.name == "mobile.jpg"
	assert (image.product, image.expiry_date, image.status) == ("SHARPS CONTAINER 10L", "2027-01-01", "Valid")


def test_open_camera_requires_a_connected_phone(relay_app, board):
	store = relay_app.state.session_store

	async def scenario(poller, api):
		before = await poller.open_camera()
		await api.update_session("pair-1", mobileConnected=True)
		await poller.poll_once()
		after = await poller.open_camera()
		return before, after

	before, after = _run(relay_app, board, scenario)

	assert before is False
	assert after is True
	assert store.read("pair-1").pending_command == "open_camera"


def test_background_polling_collects_images(relay_app, board):
	async def scenario(poller, api):
		await poller.start()
		await api.update_session("pair-1", image="data:image/png;base64," + base64.b64encode(make_png()).decode())
		for _ in range(100):
			if board.images:
				break
			await asyncio.sleep(0.01)
		await poller.close()
		await poller.drain()

	_run(relay_app, board, scenario)

	assert len(board.images) == 1
	assert board.images[0].product == "SHARPS CONTAINER 10L"


def test_poll_errors_are_ignored(board):
	def handler(request):
		return httpx.Response(502, text="bad gateway")

	async def runner():
		async with ExpiryReaderClient("http://testserver", transport=httpx.MockTransport(handler)) as api:
			poller = SessionPoller("pair-1", BoardController(board, api))
			return await poller.poll_once()

	assert asyncio.run(runner()) == []


def test_open_camera_survives_a_failing_relay(board):
	def handler(request):
		if request.method == "GET":
			return httpx.Response(200, json={"mobileConnected": True, "images": []})
		return httpx.Response(502, text="bad gateway")

	async def runner():
		async with ExpiryReaderClient("http://testserver", transport=httpx.MockTransport(handler)) as api:
			poller = SessionPoller("pair-1", BoardController(board, api))
			await poller.poll_once()
			return poller.mobile_connected, await poller.open_camera()

	assert asyncio.run(runner()) == (True, False)


def test_non_object_session_payload_is_ignored(board):
	def handler(request):
		return httpx.Response(200, json=[{"mobileConnected": True}])

	async def runner():
		async with ExpiryReaderClient("http://testserver", transport=httpx.MockTransport(handler)) as api:
			poller = SessionPoller("pair-1", BoardController(board, api))
			return await poller.poll_once(), poller.mobile_connected

	assert asyncio.run(runner()) == ([], False)
	assert board.images == []
