"""APScheduler-based crawl scheduler.

Runs a full crawl cycle at a fixed interval in the background of the
API process.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.scrapers.crawl_service import CrawlService

logger = structlog.get_logger(__name__)

CYCLE_JOB_ID = "crawl_cycle"


class CrawlScheduler:
    """Manages the periodic crawl cycle using APScheduler.

    This scheduler:
    - Starts and stops the background job
    - Never overlaps two cycles
    - Handles errors gracefully without stopping the scheduler
    """

    def __init__(self, crawl_service: CrawlService):
        """Initialize crawl scheduler.

        Args:
            crawl_service: Service that runs one crawl cycle
        """
        self.crawl_service = crawl_service
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.logger = logger.bind(service="crawl_scheduler")

    def start(self) -> None:
        """Start the scheduler.

        Jobs are not added automatically; call add_cycle_job().
        """
        if not self.scheduler.running:
            self.scheduler.start()
            self.logger.info("scheduler_started")
        else:
            self.logger.warning("scheduler_already_running")

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running cycle."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            self.logger.info("scheduler_stopped")
        else:
            self.logger.warning("scheduler_not_running")

    def add_cycle_job(self, interval_minutes: int, delay_seconds: int = 0) -> Optional[Job]:
        """Schedule the periodic crawl cycle.

        Args:
            interval_minutes: How often to run the cycle
            delay_seconds: Initial delay before the first run

        Returns:
            APScheduler Job instance or None if already scheduled
        """
        if self.scheduler.get_job(CYCLE_JOB_ID):
            self.logger.warning("job_already_exists", job_id=CYCLE_JOB_ID)
            return None

        first_run = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)
        trigger = IntervalTrigger(
            minutes=interval_minutes,
            start_date=first_run,
            timezone="UTC",
        )

        job = self.scheduler.add_job(
            func=self._run_cycle_wrapper,
            trigger=trigger,
            id=CYCLE_JOB_ID,
            name="Crawl all retailers",
            replace_existing=True,
            max_instances=1,  # A slow cycle must not overlap the next one
            coalesce=True,
        )

        self.logger.info(
            "cycle_job_added",
            interval_minutes=interval_minutes,
            delay_seconds=delay_seconds,
            next_run=job.next_run_time.isoformat() if job.next_run_time else None,
        )
        return job

    def remove_cycle_job(self) -> bool:
        if not self.scheduler.get_job(CYCLE_JOB_ID):
            self.logger.warning("job_not_found", job_id=CYCLE_JOB_ID)
            return False
        self.scheduler.remove_job(CYCLE_JOB_ID)
        self.logger.info("cycle_job_removed")
        return True

    async def _run_cycle_wrapper(self) -> None:
        """Wrapper for run_cycle that handles exceptions.

        This is the function that APScheduler calls. It catches all
        exceptions to prevent job failures from stopping the scheduler.
        """
        try:
            report = await self.crawl_service.run_cycle()
            self.logger.info(
                "crawl_job_completed",
                total_results=report.total_results,
                failed=len(report.failed),
            )
        except Exception as e:
            self.logger.error("crawl_job_failed", error=str(e), exc_info=True)

    def get_jobs_status(self) -> dict:
        """Get status of all scheduled jobs.

        Returns:
            Dict with job information keyed by job id
        """
        jobs = {}
        for job in self.scheduler.get_jobs():
            jobs[job.id] = {
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
            }
        return jobs

    def is_running(self) -> bool:
        return self.scheduler.running
