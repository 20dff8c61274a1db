"""Value types passed between the sync components."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

# Full text of the log file as last stored. None means no snapshot exists (or
# it could not be read), which is distinct from an empty snapshot.
LogSnapshot = Optional[str]


@dataclass(frozen=True)
class SnapshotLocator:
    """Key under which a log file's snapshot is stored."""

    key: str
    bucket: Optional[str] = None

    def __str__(self) -> str:
        if self.bucket:
            return f"s3://{self.bucket}/{self.key}"
        return self.key


@dataclass(frozen=True)
class NewLinesBatch:
    """Lines present in the latest log file but not in the snapshot, in file order."""

    lines: Tuple[str, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> "NewLinesBatch":
        text = text.strip()
        return cls(tuple(text.split("\n")) if text else ())

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)

    def __iter__(self):
        return iter(self.lines)


@dataclass
class RunResult:
    """Outcome of a single sync run."""

    source: str = ""
    baseline_established: bool = False
    new_line_count: int = 0
    snapshot_saved: bool = False
    lines_forwarded: int = 0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a JSON friendly dictionary."""
        return {
            "success": self.success,
            "source": self.source,
            "baseline_established": self.baseline_established,
            "new_line_count": self.new_line_count,
            "snapshot_saved": self.snapshot_saved,
            "lines_forwarded": self.lines_forwarded,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
