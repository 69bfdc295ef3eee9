"""APScheduler integration for FastAPI.

Runs the periodic jobs: the drawdown auditor and the nightly resolve refresher.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from agentdesk.config import settings
from agentdesk.database import engine

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")

AUDIT_JOB_ID = "auditor"
REFRESH_JOB_ID = "resolve_refresh"


async def run_audit_job():
    """One auditor pass over every strategy."""
    from agentdesk.engine.auditor import run_audit

    try:
        with Session(engine) as session:
            run_audit(session)
    except Exception as e:
        logger.error(f"[auditor] Pass failed: {e}", exc_info=True)


async def run_refresh_job():
    """Refresh close/resolution status of unresolved trades."""
    from agentdesk.engine.resolve_refresh import refresh_unresolved
    from agentdesk.services.market_resolver import MarketResolver

    try:
        with Session(engine) as session:
            await refresh_unresolved(session, MarketResolver())
    except Exception as e:
        logger.error(f"[resolve_refresh] Pass failed: {e}", exc_info=True)


def _add_job(func, trigger, job_id: str, name: str):
    scheduler.add_job(
        func,
        trigger=trigger,
        id=job_id,
        name=name,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=60,
    )
    logger.info(f"Scheduled {name} ({trigger})")


def start_scheduler():
    """Register the periodic jobs and start the scheduler."""
    _add_job(
        run_audit_job,
        IntervalTrigger(hours=settings.audit_interval_hours),
        AUDIT_JOB_ID,
        "Drawdown auditor",
    )
    _add_job(
        run_refresh_job,
        CronTrigger(hour=3, minute=0, timezone="UTC"),
        REFRESH_JOB_ID,
        "Resolve refresher",
    )
    scheduler.start()
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")


def stop_scheduler():
    """Shut down the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    """Return current scheduler state for the API."""
    jobs = scheduler.get_jobs()
    return {
        "running": scheduler.running,
        "job_count": len(jobs),
        "jobs": [
            {
                "id": j.id,
                "name": j.name,
                "next_run": str(j.next_run_time) if getattr(j, "next_run_time", None) else None,
                "trigger": str(j.trigger),
            }
            for j in jobs
        ],
    }
