import logging
import os
from datetime import datetime
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.config import settings
from app.core.constants import AUTO_SUBMIT_JOB_PREFIX, AUTO_SUBMIT_SWEEP_JOB_ID
from app.core.database import SessionLocal
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt

logger = logging.getLogger(__name__)

# Attempt times are naive UTC, so the scheduler must interpret run dates as UTC.
scheduler = AsyncIOScheduler(timezone="UTC")

AUTO_SUBMIT_FUNC = "app.services.exam_attempt:run_auto_submit"
SWEEP_FUNC = "app.services.exam_attempt:sweep_expired_attempts"


def auto_submit_job_id(attempt_id: int) -> str:
    return f"{AUTO_SUBMIT_JOB_PREFIX}{attempt_id}"


def schedule_auto_submit(attempt_id: int, run_at: datetime):
    try:
        scheduler.add_job(
            AUTO_SUBMIT_FUNC,
            'date',
            run_date=run_at,
            args=[attempt_id],
            id=auto_submit_job_id(attempt_id),
            name=f'Auto-submit exam attempt {attempt_id}',
            replace_existing=True,
            misfire_grace_time=None,
            coalesce=True
        )
        logger.info(f"Exam attempt {attempt_id} auto-submit scheduled for {run_at.isoformat()}")
    except Exception as e:
        # The reconciliation sweep still picks the attempt up from the database.
        logger.error(f"Error scheduling auto-submit for exam attempt {attempt_id}: {e}")


def cancel_auto_submit(attempt_id: int):
    try:
        scheduler.remove_job(auto_submit_job_id(attempt_id))
        logger.info(f"Auto-submit for exam attempt {attempt_id} has been cancelled")
    except JobLookupError:
        pass


def restore_pending_auto_submits() -> int:
    db = SessionLocal()
    try:
        ongoing = crud_exam_attempt.get_all_started(db)
        for attempt in ongoing:
            schedule_auto_submit(attempt.id, attempt.end_time)
        logger.info(f"Found {len(ongoing)} ongoing exam attempts to schedule for auto-submit")
        return len(ongoing)
    except Exception as e:
        logger.error(f"Error restoring auto-submit jobs for ongoing exam attempts: {e}")
        return 0
    finally:
        db.close()


def start_scheduler():
    if os.getenv("TESTING") == "true":
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            SWEEP_FUNC,
            'interval',
            seconds=settings.AUTO_SUBMIT_SWEEP_SECONDS,
            id=AUTO_SUBMIT_SWEEP_JOB_ID,
            name='Auto-submit expired exam attempts',
            replace_existing=True,
            coalesce=True,
            max_instances=1
        )
        restore_pending_auto_submits()
        scheduler.start()
        logger.info("Scheduler started with expired exam attempt sweep")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
