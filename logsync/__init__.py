"""Incremental shipping of remote log files to Papertrail.

Each run fetches the last stored snapshot of a remote log file and its current
contents, forwards the lines that are new, and stores the current contents as
the next snapshot.
"""

__version__ = "0.1.0"
