"""Log collector clients."""

from .papertrail import PapertrailForwarder, format_syslog_line

__all__ = ["PapertrailForwarder", "format_syslog_line"]
