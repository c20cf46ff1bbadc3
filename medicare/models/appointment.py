from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Text, Enum as SQLEnum
from sqlalchemy.sql import func
import enum
import uuid

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

def _new_appointment_id() -> str:
    return uuid.uuid4().hex

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=_new_appointment_id)

    # Patient details, captured by the booking flow
    patient_name = Column(String(200), nullable=True)
    patient_email = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    doctor_id = Column(String(32), ForeignKey("doctors.doctor_id"), nullable=False, index=True)

    # Scheduling, set when the doctor confirms
    status = Column(SQLEnum(AppointmentStatus), default=AppointmentStatus.REQUESTED, nullable=False)
    time_slot = Column(String(50), nullable=True)
    appointment_date = Column(Date, nullable=True)
    confirmation_message = Column(Text, nullable=True)

    # Incremented on every confirmation write
    version = Column(Integer, default=1, nullable=False)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Appointment(id='{self.id}', doctor_id='{self.doctor_id}', status='{self.status}')>"
