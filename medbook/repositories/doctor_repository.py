"""SQLAlchemy implementation of the doctor directory."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from medbook.models.doctor import AvailabilityWindow, Doctor
from medbook.models.patient import Patient
from medbook.scheduling.availability import WindowSpec
from medbook.scheduling.errors import DoctorNotFound, StorageFailure


class SqlAlchemyDoctorDirectory:
    def __init__(self, db: Session):
        self.db = db

    def find_doctor_by_id(self, doctor_id: int) -> Doctor | None:
        try:
            return self.db.query(Doctor).options(selectinload(Doctor.availability)).filter(
                Doctor.id == doctor_id,
            ).first()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not load doctor.') from exc

    def patient_exists(self, patient_id: int) -> bool:
        try:
            return self.db.query(Patient.id).filter(Patient.id == patient_id).first() is not None
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not load patient.') from exc

    def list_doctors(self) -> list[Doctor]:
        try:
            return self.db.query(Doctor).options(selectinload(Doctor.availability)).order_by(Doctor.name.asc()).all()
        except SQLAlchemyError as exc:
            raise StorageFailure('Could not list doctors.') from exc

    def replace_availability(self, doctor_id: int, windows: list[WindowSpec]) -> Doctor:
        """Swap the doctor's weekly windows for ``windows`` (already validated)."""
        doctor = self.find_doctor_by_id(doctor_id)
        if doctor is None:
            raise DoctorNotFound(doctor_id)

        try:
            doctor.availability.clear()
            self.db.flush()
            doctor.availability.extend(
                AvailabilityWindow(
                    day_of_week=window.day_of_week,
                    start_time=window.start_time,
                    end_time=window.end_time,
                )
                for window in windows
            )
            self.db.commit()
            self.db.refresh(doctor)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageFailure('Could not update doctor availability.') from exc

        return doctor
