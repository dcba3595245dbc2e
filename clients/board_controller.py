"""Drive label extraction for batches of board entries."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, List

from clients.api_client import AnalyzeOutcome, ExpiryReaderClient
from clients.results_board import EMPTY_CELL, ResultsBoard
from models.uploaded_image import LocalFile, UploadedImage
from utils.expiry_status import VALID, derive_status
from utils.product_names import is_placeholder_name

LOGGER = logging.getLogger(__name__)


class BoardController:
    """Add images to a board and fill in extraction results as they arrive.

    ``analyzing`` counts outstanding extraction requests rather than holding
    a flag, so overlapping batches keep it true until the last one settles.
    """

    def __init__(
        self,
        board: ResultsBoard,
        api: ExpiryReaderClient,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.board = board
        self.api = api
        self.clock = clock
        self.in_flight = 0

    @property
    def analyzing(self) -> bool:
        return self.in_flight > 0

    async def add_files(self, files: Iterable[LocalFile]) -> List[UploadedImage]:
        """Add a selection (capped at ten) and analyze just that batch."""
        batch = self.board.add_files(files)
        await self.analyze_batch(batch)
        return batch

    async def analyze_batch(self, batch: List[UploadedImage]) -> None:
        if not batch:
            return
        self.in_flight += len(batch)
        try:
            await asyncio.gather(*(self._analyze_one(item) for item in batch))
        finally:
            self.in_flight -= len(batch)

    async def _analyze_one(self, item: UploadedImage) -> None:
        previous_expiry = item.expiry_date
        manual_product = None if is_placeholder_name(item.product) else item.product
        outcome: AnalyzeOutcome = await self.api.analyze(
            item.file,
            manual_product=manual_product or None,
            manual_date=previous_expiry or None,
        )
        if not outcome.ok:
            product, expiry, status = EMPTY_CELL, previous_expiry, VALID
        else:
            product = outcome.product or EMPTY_CELL
            expiry = outcome.expiry_date
            status = derive_status(expiry, self.clock())
        if not self.board.apply_result(item.id, product, expiry, status):
            LOGGER.debug("Discarding result for removed image %s", item.id)