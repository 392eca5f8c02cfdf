"""
APScheduler wiring for background jobs:

  - Archival sweep: once at startup, then daily at ARCHIVAL_SWEEP_HOUR:ARCHIVAL_SWEEP_MINUTE
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from medbook.core import config
from medbook.database import SessionLocal
from medbook.repositories.appointment_repository import SqlAlchemyAppointmentStore
from medbook.scheduling.ports import SystemClock
from medbook.scheduling.sweep import ArchivalSweep

logger = logging.getLogger(__name__)

ARCHIVAL_SWEEP_JOB_ID = 'archival_sweep'

_scheduler: BackgroundScheduler | None = None


@contextmanager
def appointment_store_scope(session_factory=SessionLocal):
    db = session_factory()
    try:
        yield SqlAlchemyAppointmentStore(db)
    finally:
        db.close()


def build_archival_sweep(session_factory=SessionLocal, clock=None) -> ArchivalSweep:
    return ArchivalSweep(
        lambda: appointment_store_scope(session_factory),
        clock or SystemClock(config.CLINIC_TIMEZONE),
    )


def get_scheduler(sweep: ArchivalSweep | None = None) -> BackgroundScheduler:
    global _scheduler
    if _scheduler is None:
        tz = ZoneInfo(config.CLINIC_TIMEZONE)
        _scheduler = BackgroundScheduler(timezone=tz, daemon=True)

        _scheduler.add_job(
            (sweep or build_archival_sweep()).run,
            CronTrigger(hour=config.ARCHIVAL_SWEEP_HOUR, minute=config.ARCHIVAL_SWEEP_MINUTE, timezone=tz),
            id=ARCHIVAL_SWEEP_JOB_ID,
            name=ARCHIVAL_SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(tz),  # run once right away on startup
        )

    return _scheduler


def start_scheduler() -> BackgroundScheduler | None:
    if not config.ARCHIVAL_SWEEP_ENABLED:
        logger.info('Archival sweep disabled by configuration')
        return None

    scheduler = get_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info(
            'Scheduler started with %d jobs; archival sweep daily at %02d:%02d %s',
            len(scheduler.get_jobs()),
            config.ARCHIVAL_SWEEP_HOUR,
            config.ARCHIVAL_SWEEP_MINUTE,
            config.CLINIC_TIMEZONE,
        )
    return scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None
