"""Tests for running the service as a script."""

import runpy
from pathlib import Path

import uvicorn

MAIN_PATH = Path(__file__).resolve().parents[1] / "main.py"


def test_running_main_serves_the_app_with_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    monkeypatch.setenv("PORT", "8123")
    monkeypatch.delenv("HOST", raising=False)

    runpy.run_path(str(MAIN_PATH), run_name="__main__")

    assert calls == [("main:app", {"host": "0.0.0.0", "port": 8123, "log_level": "info"})]
