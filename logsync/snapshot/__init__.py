"""Snapshot storage backends.

A snapshot is the full text of the remote log file as of the last run. It is
overwritten under the same key on every save.
"""

from .store import FileSnapshotStore, S3SnapshotStore, SnapshotStore

__all__ = ["SnapshotStore", "S3SnapshotStore", "FileSnapshotStore"]
