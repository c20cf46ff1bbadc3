from pydantic import Field
from datetime import date, datetime
from typing import List, Optional

from .base import CamelModel
from ..models.appointment import AppointmentStatus


class AppointmentResponse(CamelModel):
    id: str
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    description: Optional[str] = None
    doctor_id: str
    status: AppointmentStatus
    time_slot: Optional[str] = None
    appointment_date: Optional[date] = None
    confirmation_message: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None


class AppointmentConfirm(CamelModel):
    time_slot: str = Field(..., min_length=1, max_length=50)
    appointment_date: date
    confirmation_message: Optional[str] = Field(None, max_length=2000)
    # Compare-and-swap guard; omit for an unconditional overwrite
    expected_version: Optional[int] = Field(None, ge=1)


class AppointmentListResponse(CamelModel):
    success: bool = True
    appointments: List[AppointmentResponse]


class ConfirmationResponse(CamelModel):
    success: bool = True
    message: str
    appointment: AppointmentResponse
    email_sent: bool
    warning: Optional[str] = None
