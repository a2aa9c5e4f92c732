"""
Background jobs.

- youtube_sync: FeedSyncJob on a fixed interval after a short startup delay
- member_refresh: PUBG stats refresh for the whole roster (opt-in)
"""

from ..core.config import Settings
from .scheduler import JobConfig, JobExecutor, JobResult, JobScheduler, JobStatus

__all__ = [
    "JobConfig",
    "JobExecutor",
    "JobResult",
    "JobScheduler",
    "JobStatus",
    "create_scheduler",
]


def create_scheduler(
    settings: Settings,
    youtube_sync: JobExecutor,
    member_refresh: JobExecutor,
) -> JobScheduler:
    """Scheduler with both jobs registered per the settings."""
    scheduler = JobScheduler()
    scheduler.register(
        JobConfig(
            name="youtube_sync",
            interval_minutes=settings.youtube_sync_interval_minutes,
            initial_delay_seconds=settings.youtube_sync_initial_delay_seconds,
            max_runtime_minutes=15,
        ),
        youtube_sync,
    )
    scheduler.register(
        JobConfig(
            name="member_refresh",
            interval_minutes=settings.member_refresh_interval_minutes,
            initial_delay_seconds=settings.youtube_sync_initial_delay_seconds,
            enabled=settings.member_refresh_enabled,
            max_runtime_minutes=30,
        ),
        member_refresh,
    )
    return scheduler
