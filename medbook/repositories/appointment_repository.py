"""SQLAlchemy implementation of the appointment store."""

import logging
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from medbook.models.appointment import Appointment, AppointmentStatus
from medbook.scheduling.errors import AppointmentNotFound, SlotTaken, StorageFailure
from medbook.scheduling.ports import Actor

logger = logging.getLogger(__name__)


class SqlAlchemyAppointmentStore:
    """Appointment persistence backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _for_doctor_on(self, doctor_id: int, on_date: date, exclude_id: int | None):
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query

    def find_by_id(self, appointment_id: int) -> Appointment | None:
        try:
            return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not load appointment.') from exc

    def find_by_doctor_and_date(
        self,
        doctor_id: int,
        on_date: date,
        time: str | None = None,
        exclude_statuses: tuple[str, ...] = (AppointmentStatus.CANCELLED.value,),
        exclude_id: int | None = None,
    ) -> list[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on_date,
        )
        if exclude_statuses:
            query = query.filter(Appointment.status.not_in(exclude_statuses))
        if time is not None:
            query = query.filter(Appointment.time == time)
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)

        try:
            return query.order_by(Appointment.time.asc()).all()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not load appointments for doctor.') from exc

    def find_nearest_before(
        self, doctor_id: int, on_date: date, time: str, exclude_id: int | None = None
    ) -> Appointment | None:
        try:
            return self._for_doctor_on(doctor_id, on_date, exclude_id).filter(
                Appointment.time < time,
            ).order_by(Appointment.time.desc()).first()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not load neighbouring appointments.') from exc

    def find_nearest_after(
        self, doctor_id: int, on_date: date, time: str, exclude_id: int | None = None
    ) -> Appointment | None:
        try:
            return self._for_doctor_on(doctor_id, on_date, exclude_id).filter(
                Appointment.time > time,
            ).order_by(Appointment.time.asc()).first()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not load neighbouring appointments.') from exc

    def insert(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self._commit(appointment)
        self.db.refresh(appointment)
        return appointment

    def update(self, appointment: Appointment) -> Appointment:
        self._commit(appointment)
        return appointment

    def _commit(self, appointment: Appointment) -> None:
        # rollback expires persistent instances, so capture identifying values first
        appointment_id = appointment.id
        slot = (appointment.doctor_id, appointment.date, appointment.time)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if 'unique' not in str(exc.orig).lower():
                raise StorageFailure('Could not save appointment.') from exc
            logger.warning('Unique slot constraint rejected doctor %s on %s at %s', *slot)
            raise SlotTaken(*slot) from exc
        except StaleDataError as exc:
            self.db.rollback()
            raise AppointmentNotFound(appointment_id) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageFailure('Could not save appointment.') from exc

    def find_confirmed_past(self, cutoff: date) -> list[Appointment]:
        try:
            return self.db.query(Appointment).filter(
                Appointment.status == AppointmentStatus.CONFIRMED.value,
                Appointment.date < cutoff,
                Appointment.is_archived.is_(False),
            ).order_by(Appointment.date.asc(), Appointment.time.asc()).all()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not load past confirmed appointments.') from exc

    def _owned_by(self, actor: Actor):
        if actor.is_doctor:
            return self.db.query(Appointment).filter(Appointment.doctor_id == actor.id)
        return self.db.query(Appointment).filter(Appointment.patient_id == actor.id)

    def list_active(
        self,
        actor: Actor,
        status: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Appointment]:
        query = self._owned_by(actor).filter(Appointment.is_archived.is_(False))
        if status:
            query = query.filter(Appointment.status == status)
        if start_date:
            query = query.filter(Appointment.date >= start_date)
        if end_date:
            query = query.filter(Appointment.date <= end_date)

        try:
            return query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not list appointments.') from exc

    def list_archived(self, actor: Actor, patient_id: int | None = None) -> list[Appointment]:
        query = self._owned_by(actor).filter(Appointment.is_archived.is_(True))
        if actor.is_doctor and patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)

        try:
            return query.order_by(Appointment.date.desc(), Appointment.time.desc()).all()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not list archived appointments.') from exc
