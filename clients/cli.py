"""Command line companion: analyze local photos or watch a phone session."""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from clients.api_client import ExpiryReaderClient
from clients.board_controller import BoardController
from clients.results_board import ResultsBoard, render_table
from clients.session_poller import SessionPoller
from models.uploaded_image import LocalFile
from utils.log_config import configure_logging
from utils.settings import load_settings

LOGGER = logging.getLogger("expiry-reader")


def read_local_file(path: Path) -> LocalFile:
    content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    return LocalFile(path.name, path.read_bytes(), content_type)


def _finish(board: ResultsBoard, csv_path: Optional[str], search: Optional[str]) -> None:
    print(render_table(board.search(search or "")))
    print(board.summary())
    if csv_path:
        Path(csv_path).write_text(board.to_csv(), encoding="utf-8")
        LOGGER.info("Wrote %s", csv_path)


async def _analyze(ns: argparse.Namespace) -> int:
    files: List[LocalFile] = []
    for raw in ns.files:
        path = Path(raw).expanduser()
        if not path.is_file():
            LOGGER.error("Not a file: %s", path)
            return 2
        files.append(read_local_file(path))

    board = ResultsBoard()
    try:
        async with ExpiryReaderClient(ns.base_url, timeout=ns.timeout) as api:
            controller = BoardController(board, api)
            # Selections larger than ten are sent as consecutive batches.
            for start in range(0, len(files), 10):
                await controller.add_files(files[start:start + 10])
        _finish(board, ns.csv, ns.search)
    finally:
        board.close()
    return 0


async def _watch(ns: argparse.Namespace) -> int:
    board = ResultsBoard()
    try:
        async with ExpiryReaderClient(ns.base_url, timeout=ns.timeout) as api:
            poller = SessionPoller(ns.session, BoardController(board, api), interval=ns.interval)
            await poller.start()
            LOGGER.info("Watching session %s. Press Ctrl+C to stop.", ns.session)
            camera_requested = False
            loop = asyncio.get_running_loop()
            deadline = loop.time() + ns.duration if ns.duration else None
            try:
                while True:
                    await asyncio.sleep(ns.interval)
                    if ns.open_camera and not camera_requested:
                        camera_requested = await poller.open_camera()
                    if deadline is not None and loop.time() >= deadline:
                        break
            except asyncio.CancelledError:
                pass
            finally:
                await poller.close()
                await poller.drain()
        _finish(board, ns.csv, ns.search)
    finally:
        board.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(prog="expiry-reader", description="Read product names and expiry dates from label photos.")
    parser.add_argument("--base-url", default=settings.base_url, help="Server address (default: %(default)s)")
    parser.add_argument("--timeout", type=float, default=settings.analyze_timeout_seconds)
    parser.add_argument("--csv", help="Write the results to this CSV file")
    parser.add_argument("--search", help="Only print rows whose product or expiry date contains this text")
    parser.add_argument("--log-level", default=settings.log_level)
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze local image files")
    analyze.add_argument("files", nargs="+")
    analyze.set_defaults(handler=_analyze)

    watch = sub.add_parser("watch", help="Collect images sent from a paired phone")
    watch.add_argument("session", help="Session id shared with the phone")
    watch.add_argument("--open-camera", action="store_true", help="Ask the phone to open its camera once connected")
    watch.add_argument("--interval", type=float, default=2.0)
    watch.add_argument("--duration", type=float, default=0.0, help="Stop after this many seconds (0 runs until Ctrl+C)")
    watch.set_defaults(handler=_watch)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    ns = build_parser().parse_args(argv)
    configure_logging(ns.log_level)
    try:
        return asyncio.run(ns.handler(ns))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
