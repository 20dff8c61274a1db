"""Forwarding of new log lines to Papertrail over syslog."""

import asyncio
import re
import ssl
from datetime import datetime, timezone
from typing import Optional

import structlog

from ..config import PapertrailConfig
from ..errors import ForwardError
from ..models import NewLinesBatch

logger = structlog.get_logger(__name__)

SYSLOG_FACILITIES = {
    "kern": 0,
    "user": 1,
    "mail": 2,
    "daemon": 3,
    "auth": 4,
    "syslog": 5,
    "lpr": 6,
    "news": 7,
    "uucp": 8,
    "cron": 9,
    "authpriv": 10,
    "ftp": 11,
    "local0": 16,
    "local1": 17,
    "local2": 18,
    "local3": 19,
    "local4": 20,
    "local5": 21,
    "local6": 22,
    "local7": 23,
}
SEVERITY_INFO = 6

_WHITESPACE = re.compile(r"\s+")


def _header_field(value: str) -> str:
    # Syslog header fields may not contain spaces.
    return _WHITESPACE.sub("_", value.strip()) or "-"


def format_syslog_line(
    line: str,
    hostname: str,
    program: str,
    facility: str = "daemon",
    timestamp: Optional[datetime] = None,
) -> bytes:
    """Frame one log line as a newline terminated RFC 5424 message."""
    if facility not in SYSLOG_FACILITIES:
        raise ValueError(f"Unknown syslog facility: {facility}")
    pri = SYSLOG_FACILITIES[facility] * 8 + SEVERITY_INFO
    ts = (timestamp or datetime.now(timezone.utc)).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    message = line.replace("\r", " ").replace("\n", " ")
    header = f"<{pri}>1 {ts} {_header_field(hostname)} {_header_field(program)} - - -"
    return f"{header} {message}\n".encode("utf-8")


class PapertrailForwarder:
    """Sends batches of log lines to a Papertrail log destination.

    A batch is sent over one connection, one syslog message per line in batch
    order. Failing to connect fails the whole batch; once connected, lines are
    written without per-line acknowledgement and only connection level errors
    are reported.
    """

    def __init__(
        self,
        host: str,
        port: int,
        hostname: str,
        program: str,
        use_tls: bool = True,
        facility: str = "daemon",
        debug: bool = False,
    ):
        self.host = host
        self.port = port
        self.hostname = hostname
        self.program = program
        if facility not in SYSLOG_FACILITIES:
            raise ValueError(f"Unknown syslog facility: {facility}")
        self.use_tls = use_tls
        self.facility = facility
        self.debug = debug

    @classmethod
    def from_config(cls, config: PapertrailConfig, hostname: str, program: str, debug: bool = False) -> "PapertrailForwarder":
        return cls(
            host=config.host,
            port=config.port,
            hostname=hostname,
            program=program,
            use_tls=config.use_tls,
            facility=config.facility,
            debug=debug,
        )

    @property
    def source(self) -> str:
        return f"{self.hostname} / {self.program}"

    async def send(self, batch: NewLinesBatch) -> int:
        """Send every line of ``batch`` and return the number of lines written.

        Raises:
            ForwardError: if the connection cannot be established or breaks.
        """
        if not batch:
            raise ValueError("Refusing to forward an empty batch")

        logger.info("Connecting to Papertrail", host=self.host, port=self.port, tls=self.use_tls)
        ssl_context = ssl.create_default_context() if self.use_tls else None
        try:
            _, writer = await asyncio.open_connection(self.host, self.port, ssl=ssl_context)
        except (OSError, OverflowError, ssl.SSLError) as e:
            raise ForwardError(f"Could not connect to Papertrail at {self.host}:{self.port}: {e}") from e

        logger.info(
            f"Logging {len(batch)} {'line' if len(batch) == 1 else 'lines'}",
            source=self.source,
        )
        try:
            for line in batch:
                writer.write(format_syslog_line(line, self.hostname, self.program, self.facility))
                if self.debug:
                    logger.debug("Forwarded line", line=line)
            await writer.drain()
        except (OSError, ssl.SSLError) as e:
            raise ForwardError(f"Connection to Papertrail failed while sending: {e}") from e
        finally:
            writer.close()

        try:
            await writer.wait_closed()
        except (OSError, ssl.SSLError) as e:
            raise ForwardError(f"Connection to Papertrail failed while closing: {e}") from e

        return len(batch)
