"""Job scheduling for running syncs periodically from a long-lived process."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = structlog.get_logger(__name__)


class JobScheduler:
    """Manages scheduled sync jobs using APScheduler.

    Jobs never overlap: a run still in progress when its next trigger fires
    causes that trigger to be skipped.
    """

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.running = False

    def start(self):
        """Start the scheduler. Must be called from within a running event loop."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        self.running = True
        logger.info("Job scheduler started")

    def stop(self):
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Job scheduler stopped")

    def add_cron_job(
        self,
        job_id: str,
        func: Callable,
        cron_expression: str,
        description: Optional[str] = None
    ):
        """Add a job triggered by a five field cron expression."""
        cron_parts = cron_expression.split()
        if len(cron_parts) != 5:
            raise ValueError(f"Invalid cron expression: {cron_expression}")

        trigger = CronTrigger(
            minute=cron_parts[0],
            hour=cron_parts[1],
            day=cron_parts[2],
            month=cron_parts[3],
            day_of_week=cron_parts[4]
        )
        self._add_job(job_id, func, trigger, description, {"type": "cron", "expression": cron_expression})

    def add_interval_job(
        self,
        job_id: str,
        func: Callable,
        seconds: int,
        description: Optional[str] = None,
        run_immediately: bool = False
    ):
        """Add a job triggered every ``seconds`` seconds."""
        if seconds <= 0:
            raise ValueError(f"Interval must be positive, got {seconds}")

        trigger = IntervalTrigger(seconds=seconds)
        self._add_job(
            job_id,
            func,
            trigger,
            description,
            {"type": "interval", "seconds": seconds},
            next_run_time=datetime.now() if run_immediately else None,
        )

    def _add_job(self, job_id, func, trigger, description, info, next_run_time=None):
        if job_id in self.jobs:
            logger.warning("Job already exists, replacing", job_id=job_id)
            self.remove_job(job_id)

        options = {}
        if next_run_time is not None:
            options["next_run_time"] = next_run_time

        job = self.scheduler.add_job(
            func=func,
            trigger=trigger,
            id=job_id,
            name=description or job_id,
            max_instances=1,
            coalesce=True,
            **options
        )

        self.jobs[job_id] = {
            "job": job,
            "description": description,
            "added_at": datetime.now(timezone.utc),
            **info
        }
        logger.info("Added job", job_id=job_id, description=description, **info)

    def remove_job(self, job_id: str) -> bool:
        if job_id not in self.jobs:
            logger.warning("Job not found", job_id=job_id)
            return False

        self.scheduler.remove_job(job_id)
        del self.jobs[job_id]
        logger.info("Removed job", job_id=job_id)
        return True

    def list_jobs(self) -> List[Dict[str, Any]]:
        return [
            {
                "job_id": job_id,
                "type": info["type"],
                "description": info.get("description"),
                "added_at": info["added_at"].isoformat(),
            }
            for job_id, info in self.jobs.items()
        ]
