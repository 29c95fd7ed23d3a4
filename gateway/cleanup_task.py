"""Background task that removes abandoned reservations and orphaned chunks."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from chunkstore.base import ChunkStore
from chunkstore.exceptions import ChunkStoreError
from gateway.config import RESERVATION_TTL_SECONDS, SWEEP_INTERVAL_SECONDS
from gateway.repositories.file_repository import FileRepository
from gateway.utils import get_current_timestamp, run_blocking

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    released_reservations: int = 0
    orphaned_files: int = 0
    failures: int = 0


class ReservationSweeper:
    """
    Background task that periodically reclaims storage left behind by
    failed or interrupted uploads and partial deletes.
    """

    def __init__(
        self,
        chunk_store: ChunkStore,
        file_repo: Optional[FileRepository] = None,
        interval_seconds: int = SWEEP_INTERVAL_SECONDS,
        reservation_ttl_seconds: int = RESERVATION_TTL_SECONDS,
    ):
        """
        Initialize sweeper task.

        Args:
            chunk_store: Store whose chunks are reclaimed
            file_repo: File index to consult
            interval_seconds: Time between sweep cycles
            reservation_ttl_seconds: Age after which an unpublished reservation is abandoned
        """
        self.chunk_store = chunk_store
        self.file_repo = file_repo or FileRepository()
        self.interval_seconds = interval_seconds
        self.reservation_ttl_seconds = reservation_ttl_seconds
        self._running = False
        self._task = None

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            logger.warning("Sweeper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started reservation sweeper (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Stopped reservation sweeper")

    async def _run(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.run_once()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in sweeper task: {e}", exc_info=True)

    async def run_once(self) -> SweepReport:
        """Execute one sweep cycle."""
        report = SweepReport()

        cutoff = get_current_timestamp() - timedelta(seconds=self.reservation_ttl_seconds)
        stale_ids = await run_blocking(self.file_repo.list_stale_reservations, cutoff)

        for file_id in stale_ids:
            # Only a reservation that is still unpublished may lose its chunks.
            if not await run_blocking(self.file_repo.release, file_id):
                logger.debug(f"Reservation {file_id} was published or released meanwhile")
                continue

            report.released_reservations += 1
            logger.info(f"Released abandoned reservation [file_id={file_id}]")

            try:
                await run_blocking(self.chunk_store.delete_all, file_id)
            except ChunkStoreError as e:
                logger.warning(f"Could not remove chunks of released reservation {file_id}: {e}")
                report.failures += 1

        stored_ids = set(await run_blocking(self.chunk_store.list_file_ids))
        if stored_ids:
            indexed_ids = await run_blocking(self.file_repo.known_file_ids)
            for file_id in sorted(stored_ids - indexed_ids):
                try:
                    removed = await run_blocking(self.chunk_store.delete_all, file_id)
                    report.orphaned_files += 1
                    logger.info(f"Removed {removed} orphaned chunks [file_id={file_id}]")
                except ChunkStoreError as e:
                    logger.warning(f"Could not remove orphaned chunks of {file_id}: {e}")
                    report.failures += 1

        if stale_ids or report.orphaned_files or report.failures:
            logger.info(
                f"Sweep complete: {report.released_reservations} reservations released, "
                f"{report.orphaned_files} orphaned files removed, {report.failures} failures"
            )
        else:
            logger.debug("Sweep complete: nothing to reclaim")

        return report
