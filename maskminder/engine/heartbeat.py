"""Reminder heartbeat - periodic due-item checks."""

import logging

from telegram.ext import CallbackContext, Job, JobQueue

from maskminder.db.repository import Repository
from maskminder.engine.clock import Clock
from maskminder.engine.escalation import ReminderCounter
from maskminder.engine.notifications import Notifier, check_and_notify
from maskminder.utils.constants import DEFAULT_CHECK_INTERVAL_MINUTES

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Runs the check-and-notify sequence on a timer and on demand.

    The caller owns the instance and its lifecycle. The timer is a repeating
    job on the application's job queue; the ``Job`` it returns is the handle
    used to cancel it. Two triggers share the same idempotent check: the
    repeating job and ``on_resume()`` for when the user comes back to the app.
    """

    def __init__(
        self,
        repo: Repository,
        notifier: Notifier,
        clock: Clock,
        job_queue: JobQueue | None = None,
        counter: ReminderCounter | None = None,
        interval_minutes: int = DEFAULT_CHECK_INTERVAL_MINUTES,
    ):
        self.repo = repo
        self.notifier = notifier
        self.clock = clock
        self.job_queue = job_queue
        self.counter = counter or ReminderCounter()
        self.interval_minutes = interval_minutes
        self._job: Job | None = None

    @property
    def is_running(self) -> bool:
        return self._job is not None and not self._job.removed

    def start(self) -> None:
        """Start checking now and every interval after."""
        if self.is_running:
            return

        if self.job_queue is None:
            raise RuntimeError("A job queue is required to run the reminder heartbeat")

        self._job = self.job_queue.run_repeating(
            self._heartbeat_job,
            interval=self.interval_minutes * 60,
            first=0,
            name="reminder-heartbeat",
        )
        logger.info(
            f"Reminder scheduler started (checking every {self.interval_minutes} minutes)"
        )

    def stop(self) -> None:
        """Remove the repeating job."""
        if self._job is None:
            return

        job, self._job = self._job, None
        # A queue that already shut down has dropped its jobs
        if self.job_queue is not None and self.job_queue.scheduler.running:
            job.schedule_removal()

        logger.info("Reminder scheduler stopped")

    async def check(self) -> int:
        """Run one check. Failures are logged and the timer keeps going.

        Returns:
            Number of notifications sent
        """
        try:
            return await check_and_notify(
                self.repo, self.counter, self.notifier, self.clock.now()
            )
        except Exception as e:
            logger.error(f"Error checking due items: {e}", exc_info=True)
            return 0

    async def on_resume(self) -> int:
        """The user returned to the app; check right away."""
        return await self.check()

    async def _heartbeat_job(self, context: CallbackContext) -> None:
        await self.check()
