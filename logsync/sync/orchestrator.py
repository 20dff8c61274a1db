"""Coordination of a single sync run."""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, List, Protocol

import structlog

from ..diff import compute_new_lines
from ..models import NewLinesBatch, RunResult, SnapshotLocator
from ..snapshot import SnapshotStore

logger = structlog.get_logger(__name__)

MISSING_SNAPSHOT_WARNING = (
    "Cannot access old log file. We'll still store the new log file, but won't "
    "send old events. This is totally normal if you're running this for the first "
    "time or have just changed your log file path. Otherwise, something may be "
    "wrong with your log store and you may be missing events."
)


class LogFetcher(Protocol):
    async def fetch(self, remote_path: str) -> str:
        ...


class LogForwarder(Protocol):
    source: str

    async def send(self, batch: NewLinesBatch) -> int:
        ...


class SyncOrchestrator:
    """Runs fetch, diff, save and forward for one remote log file.

    Both copies of the log file are fetched concurrently. A failure to read
    the stored snapshot only degrades the run: the current file is stored as a
    new baseline and nothing is forwarded. A failure to fetch the remote file
    aborts the run before anything is written.

    The new snapshot is saved when new lines were found or no snapshot
    existed; lines are forwarded when there are any. Save and forward run
    concurrently and both are awaited before the run reports, so a failure of
    one never leaves the other in flight.
    """

    def __init__(
        self,
        store: SnapshotStore,
        fetcher: LogFetcher,
        forwarder: LogForwarder,
        locator: SnapshotLocator,
        remote_path: str,
    ):
        self.store = store
        self.fetcher = fetcher
        self.forwarder = forwarder
        self.locator = locator
        self.remote_path = remote_path

    async def run(self) -> RunResult:
        """Execute one sync run.

        Returns:
            RunResult describing the work performed.

        Raises:
            FetchError: if the remote log file could not be retrieved.
            StoreWriteError, ForwardError: the first of these to occur, after
                both operations have settled.
        """
        result = RunResult(source=self.forwarder.source)
        logger.info("Starting sync run", source=result.source, locator=str(self.locator))

        old_contents, new_contents = await asyncio.gather(
            self.store.fetch(self.locator),
            self.fetcher.fetch(self.remote_path),
            return_exceptions=True,
        )

        if isinstance(new_contents, BaseException):
            raise new_contents

        if isinstance(old_contents, Exception):
            logger.warning(MISSING_SNAPSHOT_WARNING, locator=str(self.locator), error=str(old_contents))
            result.warnings.append(str(old_contents))
            old_contents = None
        elif isinstance(old_contents, BaseException):
            raise old_contents

        batch = compute_new_lines(old_contents, new_contents)
        result.new_line_count = len(batch)
        result.baseline_established = old_contents is None

        operations: List[Awaitable] = []
        if batch or old_contents is None:
            operations.append(self._save(new_contents, result))
        if batch:
            operations.append(self._forward(batch, result))

        errors = await self._settle(operations)
        result.errors.extend(str(error) for error in errors)
        result.finished_at = datetime.now(timezone.utc)

        if errors:
            logger.error("Sync run failed", **result.to_dict())
            raise errors[0]

        logger.info("Done", **result.to_dict())
        return result

    async def _save(self, contents: str, result: RunResult) -> None:
        await self.store.save(self.locator, contents)
        result.snapshot_saved = True

    async def _forward(self, batch: NewLinesBatch, result: RunResult) -> None:
        result.lines_forwarded = await self.forwarder.send(batch)

    @staticmethod
    async def _settle(operations: List[Awaitable]) -> List[Exception]:
        """Wait for every operation, collecting failures in the order they happen."""
        tasks = [asyncio.ensure_future(operation) for operation in operations]
        errors: List[Exception] = []
        for next_done in asyncio.as_completed(tasks):
            try:
                await next_done
            except Exception as e:
                errors.append(e)
        return errors
