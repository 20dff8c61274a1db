"""Remote log retrieval.

Reads the full current contents of a log file from an SFTP server. Sessions
are opened per fetch and always closed afterwards.
"""

from .sftp_fetcher import SFTPLogFetcher

__all__ = ["SFTPLogFetcher"]
