from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
import enum

from ..core.database import Base

class DoctorStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(32), unique=True, index=True, nullable=False)

    # Credentials
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Personal information
    name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=True)
    gender = Column(String(20), nullable=True)

    # Professional information
    specialization = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)

    # Approval is changed by administrators outside this service
    status = Column(SQLEnum(DoctorStatus), default=DoctorStatus.PENDING, nullable=False)

    # Media references
    id_proof = Column(String(500), nullable=True)
    profile_picture = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Doctor(doctor_id='{self.doctor_id}', name='{self.name}', status='{self.status}')>"
