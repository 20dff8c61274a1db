"""Error types raised by a sync run."""


class LogSyncError(Exception):
    """Base class for all sync failures."""


class ConfigError(LogSyncError):
    """A required setting is missing or invalid. The run never starts."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = list(missing or [])


class DecryptError(LogSyncError):
    """The SFTP secret could not be decrypted."""


class FetchError(LogSyncError):
    """The remote log file could not be retrieved."""


class StoreReadError(LogSyncError):
    """The previous snapshot could not be read. Treated as no snapshot."""


class StoreWriteError(LogSyncError):
    """The new snapshot could not be persisted."""


class ForwardError(LogSyncError):
    """The log collector could not be reached or dropped the connection."""
