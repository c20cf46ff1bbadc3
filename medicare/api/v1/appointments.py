from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ...core.database import get_db
from ...api.deps import get_current_doctor, get_email_channel
from ...services.appointment_service import AppointmentService
from ...services.doctor_service import DoctorService
from ...services.email_service import SMTPEmailChannel
from ...schemas.appointment import (
    AppointmentConfirm, AppointmentListResponse, AppointmentResponse,
    ConfirmationResponse
)
from ...models.doctor import Doctor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Appointments assigned to the logged-in doctor, newest first."""
    appointments = DoctorService(db).list_appointments(current_doctor.doctor_id)
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments]
    )

@router.post("/{appointment_id}/confirm", response_model=ConfirmationResponse)
async def confirm_appointment(
    appointment_id: str,
    confirm_data: AppointmentConfirm,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    email_channel: SMTPEmailChannel = Depends(get_email_channel)
):
    """
    Confirm an appointment and email the patient.

    The response reports success as soon as the appointment is saved;
    ``emailSent`` tells whether the patient notification went out.
    """
    service = AppointmentService(db, email_channel)
    try:
        result = await run_in_threadpool(
            service.confirm_appointment,
            appointment_id,
            current_doctor.doctor_id,
            confirm_data.time_slot,
            confirm_data.appointment_date,
            confirm_data.confirmation_message,
            confirm_data.expected_version
        )
    except SQLAlchemyError as e:
        logger.error(f"Appointment confirmation error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error confirming appointment: {str(e)}"
        )

    message = "Appointment confirmed successfully."
    if result.email_sent:
        message += " Patient has been notified by email."

    return ConfirmationResponse(
        message=message,
        appointment=AppointmentResponse.model_validate(result.appointment),
        email_sent=result.email_sent,
        warning=result.warning
    )
