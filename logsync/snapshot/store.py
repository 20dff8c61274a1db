"""Durable storage of the last known log file contents."""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Protocol

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import StoreReadError, StoreWriteError
from ..models import SnapshotLocator

logger = structlog.get_logger(__name__)


class SnapshotStore(Protocol):
    async def fetch(self, locator: SnapshotLocator) -> str:
        """Return the stored contents, raising StoreReadError if unavailable."""
        ...

    async def save(self, locator: SnapshotLocator, contents: str) -> None:
        ...


class S3SnapshotStore:
    """Keeps snapshots as text objects in an S3 bucket.

    A snapshot that does not exist yet raises StoreReadError like any other
    read failure; the orchestrator decides to carry on without it.
    """

    def __init__(self, client_factory: Callable[[], Any]):
        self._client_factory = client_factory

    async def fetch(self, locator: SnapshotLocator) -> str:
        logger.info("Retrieving old log file for comparison", locator=str(locator))
        try:
            return await asyncio.to_thread(self._get_object, locator)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            raise StoreReadError(f"Error accessing S3 ({code}): {e}") from e
        except BotoCoreError as e:
            raise StoreReadError(f"Error accessing S3: {e}") from e

    def _get_object(self, locator: SnapshotLocator) -> str:
        response = self._client_factory().get_object(Bucket=locator.bucket, Key=locator.key)
        body = response["Body"].read()
        return body.decode("utf-8", errors="replace")

    async def save(self, locator: SnapshotLocator, contents: str) -> None:
        logger.info("Storing log file for later comparison", locator=str(locator), bytes=len(contents))
        try:
            await asyncio.to_thread(
                self._client_factory().put_object,
                Body=contents.encode("utf-8"),
                Bucket=locator.bucket,
                Key=locator.key,
                ContentType="text/plain",
            )
        except (BotoCoreError, ClientError) as e:
            raise StoreWriteError(f"Failed to store log file in S3: {e}") from e


class FileSnapshotStore:
    """Keeps snapshots as UTF-8 text files below a base directory."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def path_for(self, locator: SnapshotLocator) -> Path:
        """Resolve the file for ``locator``, which must stay below the base directory."""
        base = self.directory.resolve()
        path = (base / locator.key.lstrip("/")).resolve()
        if base not in path.parents:
            raise ValueError(f"Snapshot key {locator.key!r} resolves outside {self.directory}")
        return path

    async def fetch(self, locator: SnapshotLocator) -> str:
        try:
            path = self.path_for(locator)
        except ValueError as e:
            raise StoreReadError(str(e)) from e
        logger.info("Retrieving old log file for comparison", path=str(path))
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")
        except OSError as e:
            raise StoreReadError(f"Cannot read {path}: {e}") from e

    async def save(self, locator: SnapshotLocator, contents: str) -> None:
        try:
            path = self.path_for(locator)
        except ValueError as e:
            raise StoreWriteError(str(e)) from e
        logger.info("Storing log file for later comparison", path=str(path), bytes=len(contents))
        try:
            await asyncio.to_thread(self._write, path, contents)
        except OSError as e:
            raise StoreWriteError(f"Failed to store log file at {path}: {e}") from e

    @staticmethod
    def _write(path: Path, contents: str) -> None:
        # Readers see the old snapshot or the new one, never a partial write.
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(contents)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
