"""Archival sweep: retires confirmed appointments whose date has passed."""

import logging
from datetime import timedelta
from threading import Lock
from typing import Callable, ContextManager

from medbook.models.appointment import AppointmentStatus
from medbook.scheduling.errors import AppointmentNotFound, StorageFailure
from medbook.scheduling.ports import AppointmentStore, Clock

logger = logging.getLogger(__name__)


class ArchivalSweep:
    """Single-pass reconciliation guarded against overlapping runs.

    ``store_scope`` opens a fresh store for each run (typically bound to a new database
    session) and closes it afterwards.
    """

    def __init__(self, store_scope: Callable[[], ContextManager[AppointmentStore]], clock: Clock):
        self.store_scope = store_scope
        self.clock = clock
        self._running = Lock()

    def run(self) -> int:
        if not self._running.acquire(blocking=False):
            logger.warning('Archival sweep already running; skipping this run')
            return 0
        try:
            with self.store_scope() as store:
                return run_archival_sweep(store, self.clock)
        finally:
            self._running.release()


def run_archival_sweep(store: AppointmentStore, clock: Clock) -> int:
    """Mark confirmed appointments dated before yesterday as completed and archived.

    Returns the number of records updated. Records that fail to save are logged and
    skipped; if the batch query itself fails the run reports zero and the next scheduled
    run retries.
    """
    cutoff = clock.today() - timedelta(days=1)

    try:
        candidates = store.find_confirmed_past(cutoff)
    except StorageFailure:
        logger.exception('Archival sweep could not load appointments before %s', cutoff)
        return 0

    updated = 0
    # ids are read up front; a failed save rolls back and expires the remaining rows
    for appointment_id, appointment in [(candidate.id, candidate) for candidate in candidates]:
        try:
            # a concurrent status change may have already moved it on
            if appointment.status != AppointmentStatus.CONFIRMED.value or appointment.is_archived:
                continue

            appointment.status = AppointmentStatus.COMPLETED.value
            appointment.is_archived = True
            store.update(appointment)
        except AppointmentNotFound:
            logger.info('Appointment %s disappeared before the sweep could archive it', appointment_id)
            continue
        except Exception:
            logger.exception('Archival sweep failed to update appointment %s', appointment_id)
            continue

        updated += 1
        logger.info('Appointment %s automatically marked completed and archived', appointment_id)

    if updated:
        logger.info('Archival sweep: %d appointments completed and archived', updated)
    return updated
