"""Doctor and weekly availability model definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from medbook.database import Base


class Doctor(Base):
    """Represents a doctor whose calendar can be booked."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    speciality = Column(String)
    license_number = Column(String, unique=True)
    phone_number = Column(String)

    availability = relationship(
        "AvailabilityWindow",
        back_populates="doctor",
        cascade="all, delete-orphan",
        order_by="AvailabilityWindow.id",
    )


class AvailabilityWindow(Base):
    """A recurring weekly interval in which the doctor accepts appointments."""
    __tablename__ = "doctor_availability"
    __table_args__ = (
        UniqueConstraint('doctor_id', 'day_of_week', name='uq_doctor_availability_day'),
        CheckConstraint('start_time < end_time', name='ck_doctor_availability_range'),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(String, nullable=False)  # monday..sunday
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)

    doctor = relationship("Doctor", back_populates="availability")
