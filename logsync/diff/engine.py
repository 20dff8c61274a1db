"""Detection of newly appended log lines."""

import structlog

from ..models import LogSnapshot, NewLinesBatch

logger = structlog.get_logger(__name__)


def compute_new_lines(old_contents: LogSnapshot, new_contents: str) -> NewLinesBatch:
    """Return the lines of ``new_contents`` that do not appear anywhere in ``old_contents``.

    Matching is by exact line text, not position, so reordered lines are not
    reported and a line repeated in the new file is reported once per
    occurrence. Lines removed since the old snapshot are ignored.

    With no old snapshot the result is empty: a first run only establishes a
    baseline instead of sending the whole history.
    """
    if old_contents is None:
        logger.info("As we have no old log file to compare with, no log lines will be selected")
        return NewLinesBatch()

    logger.info("Looking for new log entries")

    old_lines = set(old_contents.split("\n"))
    difference = [line for line in new_contents.split("\n") if line not in old_lines]

    logger.info("Found new lines", count=len(difference))
    return NewLinesBatch.from_text("\n".join(difference))
