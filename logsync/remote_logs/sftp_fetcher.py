"""Retrieval of the latest log file contents over SFTP.

Each fetch opens its own session, streams the file in binary chunks and
closes the session again, whether the read succeeded or not.
"""

import asyncio
from typing import Iterator, List, Optional

import paramiko
import structlog

from ..config import DEFAULT_KEX_ALGORITHMS, DEFAULT_SFTP_PORT, SFTPConfig
from ..errors import FetchError

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 32 * 1024


def maybe_plural(number: int, singular: str, plural: str) -> str:
    return singular if number == 1 else plural


class SFTPLogFetcher:
    """Read-only access to a log file on an SFTP server."""

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        port: int = DEFAULT_SFTP_PORT,
        kex_algorithms: Optional[List[str]] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        """Initialize the fetcher.

        Args:
            host: SFTP server hostname/IP
            username: SFTP username
            password: Plain text password (decrypt before passing it in)
            port: SFTP port (default: 22)
            kex_algorithms: Key exchange algorithms to offer, in preference order
            chunk_size: Bytes requested per read
        """
        self.host = host
        self.username = username
        self.password = password
        self.port = port
        self.kex_algorithms = list(kex_algorithms if kex_algorithms is not None else DEFAULT_KEX_ALGORITHMS)
        self.chunk_size = chunk_size
        self.transport: Optional[paramiko.Transport] = None
        self.sftp: Optional[paramiko.SFTPClient] = None

    @classmethod
    def from_config(cls, config: SFTPConfig, password: str) -> "SFTPLogFetcher":
        return cls(
            host=config.host,
            username=config.username,
            password=password,
            port=config.port,
            kex_algorithms=config.kex_algorithms,
        )

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def connect(self) -> None:
        """Open the SSH transport and the SFTP channel on top of it."""
        logger.info("Connecting to SFTP server", host=self.host, port=self.port)
        try:
            self.transport = paramiko.Transport((self.host, self.port))
            self._apply_kex_preference(self.transport)
            self.transport.connect(username=self.username, password=self.password)
            self.sftp = paramiko.SFTPClient.from_transport(self.transport)
        except Exception:
            self.disconnect()
            raise

    def _apply_kex_preference(self, transport: paramiko.Transport) -> None:
        """Offer the configured key exchange algorithms this paramiko release implements.

        Falls back to paramiko's own preference when none of them are available.
        """
        if not self.kex_algorithms:
            return

        available = set(transport._kex_info)
        supported = [name for name in self.kex_algorithms if name in available]
        unsupported = [name for name in self.kex_algorithms if name not in available]
        if unsupported:
            logger.warning("Skipping unsupported key exchange algorithms", algorithms=unsupported)
        if not supported:
            logger.warning("No configured key exchange algorithm is supported, using paramiko defaults")
            return
        transport.get_security_options().kex = supported

    def disconnect(self) -> None:
        if self.sftp is not None:
            self.sftp.close()
            self.sftp = None
        if self.transport is not None:
            self.transport.close()
            self.transport = None
            logger.debug("Disconnected from SFTP server", host=self.host)

    def iter_chunks(self, remote_path: str) -> Iterator[bytes]:
        """Yield the remote file as binary chunks, in order."""
        if self.sftp is None:
            raise RuntimeError("Not connected to SFTP server")

        with self.sftp.open(remote_path, "rb") as handle:
            parts = 0
            while True:
                chunk = handle.read(self.chunk_size)
                if not chunk:
                    break
                parts += 1
                logger.debug(f"{parts} {maybe_plural(parts, 'part', 'parts')}...")
                yield chunk

    def read_text(self, remote_path: str) -> str:
        """Read the whole remote file as UTF-8 text with surrounding whitespace removed."""
        logger.info("Retrieving latest log file", path=remote_path)
        contents = b"".join(self.iter_chunks(remote_path)).decode("utf-8", errors="replace").strip()
        logger.info(
            "Retrieved latest log file",
            lines=len(contents.split("\n")),
            approx_bytes=len(contents),
        )
        return contents

    def _fetch_blocking(self, remote_path: str) -> str:
        with self:
            return self.read_text(remote_path)

    async def fetch(self, remote_path: str) -> str:
        """Fetch the full current contents of ``remote_path``.

        Raises:
            FetchError: on any connection, authentication or transfer failure.
        """
        try:
            return await asyncio.to_thread(self._fetch_blocking, remote_path)
        except (paramiko.SSHException, OSError, OverflowError, EOFError, ValueError) as e:
            logger.error("Failed to retrieve latest log file", host=self.host, path=remote_path, error=str(e))
            raise FetchError(f"Could not retrieve {remote_path} from {self.host}: {e}") from e
