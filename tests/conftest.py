import os
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('ARCHIVAL_SWEEP_ENABLED', 'false')

from medbook.database import Base  # noqa: E402
from medbook.models.appointment import Appointment  # noqa: E402
from medbook.models.doctor import AvailabilityWindow, Doctor  # noqa: E402
from medbook.models.patient import Patient  # noqa: E402
from medbook.repositories.appointment_repository import SqlAlchemyAppointmentStore  # noqa: E402
from medbook.repositories.doctor_repository import SqlAlchemyDoctorDirectory  # noqa: E402
from medbook.scheduling.service import AppointmentService  # noqa: E402

# Monday
TODAY = date(2026, 3, 2)
NEXT_MONDAY = date(2026, 3, 9)
NEXT_TUESDAY = date(2026, 3, 10)


class FixedClock:
    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 2, 7, 0))


@pytest.fixture
def engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def doctor(db) -> Doctor:
    doctor = Doctor(
        email='house@clinic.example',
        name='Gregory House',
        speciality='Diagnostics',
        license_number='LIC-001',
        availability=[AvailabilityWindow(day_of_week='monday', start_time='08:00', end_time='12:00')],
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def other_doctor(db) -> Doctor:
    doctor = Doctor(
        email='wilson@clinic.example',
        name='James Wilson',
        speciality='Oncology',
        license_number='LIC-002',
        availability=[AvailabilityWindow(day_of_week='monday', start_time='08:00', end_time='17:00')],
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def patient(db) -> Patient:
    patient = Patient(email='patient@example.com', name='Pat Doe')
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@pytest.fixture
def store(db) -> SqlAlchemyAppointmentStore:
    return SqlAlchemyAppointmentStore(db)


@pytest.fixture
def directory(db) -> SqlAlchemyDoctorDirectory:
    return SqlAlchemyDoctorDirectory(db)


@pytest.fixture
def service(clock, directory, store) -> AppointmentService:
    return AppointmentService(clock, directory, store)


@pytest.fixture
def add_appointment(db):
    """Insert a row directly, bypassing every scheduling check."""

    def _add(doctor_id: int, patient_id: int, on_date: date, at: str, status: str = 'pending', **fields) -> Appointment:
        appointment = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            date=on_date,
            time=at,
            status=status,
            is_archived=fields.pop('is_archived', False),
            reason=fields.pop('reason', 'Routine check-up visit'),
            **fields,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _add
