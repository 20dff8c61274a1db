"""Sync run orchestration."""

from .orchestrator import SyncOrchestrator

__all__ = ["SyncOrchestrator"]
