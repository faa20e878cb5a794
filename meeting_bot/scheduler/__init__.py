"""In-process job scheduling."""

from .scheduler import JobScheduler, parse_crontab

__all__ = ["JobScheduler", "parse_crontab"]
