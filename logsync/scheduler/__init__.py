from .job_scheduler import JobScheduler

__all__ = ["JobScheduler"]
