"""Appointment model definitions."""

import enum

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, func, text
from medbook.database import APPOINTMENT_SLOT_INDEX, Base


class AppointmentStatus(str, enum.Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
    NO_SHOW = 'no-show'


# only notes may change once an appointment reaches one of these
TERMINAL_STATUSES = frozenset({
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.NO_SHOW.value,
})


class Appointment(Base):
    """Represents a booked appointment between a patient and a doctor."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            APPOINTMENT_SLOT_INDEX,
            'doctor_id',
            'date',
            'time',
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index('idx_appointments_status_date', 'status', 'date'),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM, zero padded
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    is_archived = Column(Boolean, nullable=False, default=False)
    reason = Column(String(500), nullable=False)
    notes = Column(String(1000))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return (
            f'<Appointment id={self.id} doctor={self.doctor_id} '
            f'{self.date} {self.time} status={self.status}>'
        )
