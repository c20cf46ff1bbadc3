from pydantic import Field, field_validator
from datetime import datetime
from typing import List, Optional

from .base import CamelModel
from .appointment import AppointmentResponse
from ..models.doctor import DoctorStatus


class DoctorResponse(CamelModel):
    """Public doctor profile; the password hash never leaves the service."""

    doctor_id: str
    name: str
    email: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    specialization: Optional[str] = None
    location: Optional[str] = None
    status: DoctorStatus
    profile_picture: Optional[str] = None
    created_at: Optional[datetime] = None


class DoctorProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    specialization: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("specialization", "location")
    @classmethod
    def normalize_lowercase(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value is not None else value


class ProfileResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    doctor: DoctorResponse


class ProfilePictureResponse(CamelModel):
    success: bool = True
    message: str
    profile_picture: str
    doctor: DoctorResponse


class DashboardResponse(CamelModel):
    success: bool = True
    doctor: DoctorResponse
    appointments: List[AppointmentResponse]
