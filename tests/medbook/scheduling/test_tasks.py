from datetime import date

import pytest

from medbook.core import config
from medbook.repositories.appointment_repository import SqlAlchemyAppointmentStore
from medbook.scheduling import tasks


@pytest.fixture(autouse=True)
def reset_scheduler():
    tasks.shutdown_scheduler()
    yield
    tasks.shutdown_scheduler()


def test_get_scheduler_registers_daily_archival_job(monkeypatch, session_factory, clock) -> None:
    monkeypatch.setattr(config, 'ARCHIVAL_SWEEP_HOUR', 2)
    monkeypatch.setattr(config, 'ARCHIVAL_SWEEP_MINUTE', 15)

    scheduler = tasks.get_scheduler(tasks.build_archival_sweep(session_factory, clock))
    job = scheduler.get_job(tasks.ARCHIVAL_SWEEP_JOB_ID)
    fields = {field.name: str(field) for field in job.trigger.fields}

    assert job.name == tasks.ARCHIVAL_SWEEP_JOB_ID
    assert fields['hour'] == '2'
    assert fields['minute'] == '15'
    assert job.max_instances == 1
    assert job.coalesce is True
    assert job.next_run_time is not None


def test_get_scheduler_is_reused_until_shutdown(session_factory, clock) -> None:
    sweep = tasks.build_archival_sweep(session_factory, clock)

    first = tasks.get_scheduler(sweep)

    assert tasks.get_scheduler(sweep) is first
    tasks.shutdown_scheduler()
    assert tasks.get_scheduler(sweep) is not first


def test_start_scheduler_respects_disabled_flag(monkeypatch) -> None:
    monkeypatch.setattr(config, 'ARCHIVAL_SWEEP_ENABLED', False)

    assert tasks.start_scheduler() is None


def test_appointment_store_scope_closes_session(session_factory) -> None:
    closed = []

    def tracking_factory():
        session = session_factory()
        original_close = session.close

        def close():
            closed.append(True)
            original_close()

        session.close = close
        return session

    with tasks.appointment_store_scope(tracking_factory) as store:
        assert isinstance(store, SqlAlchemyAppointmentStore)

    assert closed == [True]


def test_built_sweep_uses_fresh_sessions(session_factory, clock, doctor, patient, add_appointment) -> None:
    add_appointment(doctor.id, patient.id, date(2026, 2, 25), '09:00', status='confirmed')
    sweep = tasks.build_archival_sweep(session_factory, clock)

    assert sweep.run() == 1
    assert sweep.run() == 0
