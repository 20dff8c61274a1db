"""Invocation entry points for a sync run."""

import asyncio
from typing import Any, Dict, Optional

import structlog

from .aws_clients import AWSClients
from .config import SyncConfig, load_config
from .forwarder import PapertrailForwarder
from .logging_config import configure_logging
from .models import RunResult, SnapshotLocator
from .remote_logs import SFTPLogFetcher
from .secrets import SecretDecrypter
from .snapshot import FileSnapshotStore, S3SnapshotStore, SnapshotStore
from .sync import SyncOrchestrator

logger = structlog.get_logger(__name__)

# Created on first invocation and kept for the lifetime of the process.
_clients: Optional[AWSClients] = None


def get_clients(region: str) -> AWSClients:
    global _clients
    if _clients is None:
        _clients = AWSClients(region)
    return _clients


def build_store(config: SyncConfig, clients: AWSClients) -> SnapshotStore:
    if config.snapshot.backend == "file":
        return FileSnapshotStore(config.snapshot.directory)
    return S3SnapshotStore(clients.s3)


def build_locator(config: SyncConfig) -> SnapshotLocator:
    bucket = config.s3.bucket if config.snapshot.backend == "s3" else None
    return SnapshotLocator(key=config.snapshot_key, bucket=bucket)


async def run_sync(config: Optional[SyncConfig] = None, clients: Optional[AWSClients] = None) -> RunResult:
    """Run one sync of the configured log file.

    Configuration is loaded fresh unless given. The SFTP secret is decrypted
    before anything is fetched, so configuration and decryption failures
    abort with no side effects.
    """
    if config is None:
        config = load_config()
    if clients is None:
        clients = get_clients(config.s3.region)

    password = await SecretDecrypter(clients.kms).decrypt(config.sftp.password)

    orchestrator = SyncOrchestrator(
        store=build_store(config, clients),
        fetcher=SFTPLogFetcher.from_config(config.sftp, password),
        forwarder=PapertrailForwarder.from_config(
            config.papertrail,
            hostname=config.source_hostname,
            program=config.source_program,
            debug=config.debug,
        ),
        locator=build_locator(config),
        remote_path=config.sftp.path,
    )
    return await orchestrator.run()


def handler(event: Any, context: Any) -> Dict[str, Any]:
    """AWS Lambda entry point. The event payload is not used."""
    config = load_config()
    configure_logging(config.log_level, silent=config.silent, debug=config.debug)
    result = asyncio.run(run_sync(config))
    return result.to_dict()
