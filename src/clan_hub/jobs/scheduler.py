"""
Background job scheduler.

Runs the YouTube feed sync and the optional roster stats refresh on fixed
intervals inside the API process.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Job execution status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobResult:
    """Result of a job execution."""

    job_name: str
    status: JobStatus
    started_at: datetime
    completed_at: datetime | None = None
    duration_seconds: float = 0.0
    items_processed: int = 0
    errors: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for the API."""
        return {
            "job_name": self.job_name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "items_processed": self.items_processed,
            "errors": self.errors,
            "metadata": self.metadata,
        }


@dataclass
class JobConfig:
    """Configuration for a scheduled job."""

    name: str
    interval_minutes: float
    initial_delay_seconds: float = 0.0
    enabled: bool = True
    max_runtime_minutes: float = 30


JobExecutor = Callable[[], Awaitable[Any]]


class JobScheduler:
    """
    Runs registered jobs on their intervals.

    Each enabled job waits ``initial_delay_seconds``, runs, then repeats
    every ``interval_minutes``. A failing run is logged and the loop goes on.

    Jobs:
    - youtube_sync: Import new uploads from tracked channels (every 3 hours)
    - member_refresh: Refresh PUBG stats of the roster (off by default)
    """

    def __init__(self) -> None:
        self.jobs: dict[str, JobConfig] = {}
        self._executors: dict[str, JobExecutor] = {}
        self._running = False
        self._tasks: dict[str, asyncio.Task] = {}
        self.last_results: dict[str, JobResult] = {}

    @property
    def running(self) -> bool:
        return self._running

    def register(self, config: JobConfig, executor: JobExecutor) -> None:
        """Add a job. ``executor`` returns an object with optional
        ``items_processed``, ``metadata`` and ``errors`` attributes."""
        self.jobs[config.name] = config
        self._executors[config.name] = executor

    async def start(self) -> None:
        """Start the scheduler (runs all enabled jobs on their intervals)."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        logger.info("Starting job scheduler")

        for job_name, job_config in self.jobs.items():
            if job_config.enabled:
                self._tasks[job_name] = asyncio.create_task(self._job_loop(job_config))

        logger.info(f"Started {len(self._tasks)} job loops")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        self._running = False
        logger.info("Stopping job scheduler")

        for task in self._tasks.values():
            task.cancel()

        await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        self._tasks.clear()

        logger.info("Job scheduler stopped")

    async def run_job(self, job_name: str) -> JobResult:
        """
        Run a single job immediately.

        Args:
            job_name: Name of the job to run

        Returns:
            Job result
        """
        if job_name not in self.jobs:
            return JobResult(
                job_name=job_name,
                status=JobStatus.FAILED,
                started_at=datetime.now(timezone.utc),
                errors=[f"Unknown job: {job_name}"],
            )
        return await self._execute_job(self.jobs[job_name])

    async def _job_loop(self, job_config: JobConfig) -> None:
        """Run a job after its initial delay, then on its interval."""
        try:
            await asyncio.sleep(job_config.initial_delay_seconds)
            while self._running:
                await self._execute_job(job_config)
                await asyncio.sleep(job_config.interval_minutes * 60)
        except asyncio.CancelledError:
            pass

    async def _execute_job(self, job_config: JobConfig) -> JobResult:
        """Execute a job and record the result."""
        job_name = job_config.name
        started_at = datetime.now(timezone.utc)
        result = JobResult(job_name=job_name, status=JobStatus.RUNNING, started_at=started_at)

        logger.info(f"Starting job: {job_name}")

        try:
            job_result = await asyncio.wait_for(
                self._executors[job_name](),
                timeout=job_config.max_runtime_minutes * 60,
            )

            result.status = JobStatus.COMPLETED
            result.items_processed = getattr(job_result, "items_processed", 0)
            result.metadata = getattr(job_result, "metadata", {})
            result.errors.extend(getattr(job_result, "errors", []))

        except asyncio.TimeoutError:
            result.status = JobStatus.FAILED
            result.errors.append(f"Job timed out after {job_config.max_runtime_minutes} minutes")
            logger.error(f"Job {job_name} timed out")

        except Exception as e:
            result.status = JobStatus.FAILED
            result.errors.append(str(e))
            logger.exception(f"Job {job_name} failed: {e}")

        result.completed_at = datetime.now(timezone.utc)
        result.duration_seconds = (result.completed_at - started_at).total_seconds()
        self.last_results[job_name] = result

        logger.info(
            f"Job {job_name} {result.status.value}: "
            f"{result.items_processed} items in {result.duration_seconds:.1f}s"
        )
        return result

    def get_status(self) -> dict:
        """Scheduler state and the last result of each job."""
        return {
            "running": self._running,
            "jobs": {
                name: {
                    "enabled": config.enabled,
                    "interval_minutes": config.interval_minutes,
                    "last_result": (
                        self.last_results[name].to_dict() if name in self.last_results else None
                    ),
                }
                for name, config in self.jobs.items()
            },
        }
