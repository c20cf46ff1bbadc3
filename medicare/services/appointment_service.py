"""
Appointment confirmation workflow.

A confirmation is a single committed write to the appointment row followed
by a best-effort email to the patient. The email half never changes the
outcome: once the row is committed the confirmation has succeeded, and
doctor lookup, rendering or delivery problems are only logged and reported
back through ``ConfirmationResult.email_sent`` and ``warning``. Delivery is
attempted once per call.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    AppointmentConflictError,
    AppointmentNotFoundError,
    NotificationError,
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from .email_service import SMTPEmailChannel
from .email_templates import default_confirmation_message, render_confirmation

logger = logging.getLogger(__name__)


@dataclass
class ConfirmationResult:
    appointment: Appointment
    email_sent: bool
    warning: Optional[str] = None


class AppointmentService:
    def __init__(self, db: Session, email_channel: Optional[SMTPEmailChannel] = None):
        self.db = db
        self.email_channel = email_channel

    def get_owned_appointment(self, appointment_id: str, doctor_id: str) -> Appointment:
        """Fetch an appointment only if it is assigned to ``doctor_id``."""
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.doctor_id == doctor_id
        ).first()

        if not appointment:
            raise AppointmentNotFoundError()
        return appointment

    def confirm_appointment(
        self,
        appointment_id: str,
        requesting_doctor_id: str,
        time_slot: str,
        appointment_date: date,
        confirmation_message: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ConfirmationResult:
        """
        Confirm an appointment and notify the patient.

        Re-confirming overwrites the previous slot, date and message. When
        ``expected_version`` is given the write only happens if the stored
        version still matches.

        Raises:
            AppointmentNotFoundError: no such appointment for this doctor.
            AppointmentConflictError: ``expected_version`` is stale.
            SQLAlchemyError: the write failed; nothing was committed.
        """
        logger.info(
            f"Confirming appointment {appointment_id}: {time_slot} on {appointment_date}"
        )

        appointment = self.get_owned_appointment(appointment_id, requesting_doctor_id)

        if expected_version is not None and appointment.version != expected_version:
            raise AppointmentConflictError(expected_version, appointment.version)

        values = {
            Appointment.status: AppointmentStatus.CONFIRMED,
            Appointment.time_slot: time_slot,
            Appointment.appointment_date: appointment_date,
            Appointment.confirmation_message: confirmation_message or default_confirmation_message(
                time_slot, appointment_date
            ),
            Appointment.version: Appointment.version + 1,
        }

        query = self.db.query(Appointment).filter(Appointment.id == appointment.id)
        if expected_version is not None:
            query = query.filter(Appointment.version == expected_version)

        try:
            updated = query.update(values, synchronize_session=False)
            if updated == 0:
                self.db.rollback()
                if expected_version is None:
                    raise AppointmentNotFoundError()
                # Another request bumped the version between our read and write
                self.db.refresh(appointment)
                raise AppointmentConflictError(expected_version, appointment.version)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(appointment)

        email_sent, warning = self._notify_patient(appointment)
        return ConfirmationResult(appointment=appointment, email_sent=email_sent, warning=warning)

    def _find_doctor(self, doctor_id: str) -> Optional[Doctor]:
        try:
            doctor = self.db.query(Doctor).filter(Doctor.doctor_id == doctor_id).first()
        except SQLAlchemyError as exc:
            logger.error(f"Error fetching doctor details for {doctor_id}: {exc}")
            self.db.rollback()
            return None

        if doctor is None:
            logger.warning(f"Doctor {doctor_id} not found; sending confirmation without doctor details")
        return doctor

    def _notify_patient(self, appointment: Appointment):
        """Send the confirmation email. Returns ``(email_sent, warning)``; never raises."""
        try:
            doctor = self._find_doctor(appointment.doctor_id)
            rendered = render_confirmation(appointment, doctor)

            if self.email_channel is None:
                logger.warning("No email channel configured; skipping confirmation email")
                return False, "Email service is not available"

            result = self.email_channel.send(
                appointment.patient_email,
                rendered.subject,
                rendered.html_body,
                rendered.text_body,
            )
        except NotificationError as exc:
            logger.error(f"Appointment confirmation email not sent: {exc}")
            return False, str(exc)
        except Exception as exc:
            logger.exception(f"Error in email sending process: {exc}")
            return False, "Failed to send appointment confirmation email."

        if not result.delivered:
            logger.error(f"Failed to send appointment confirmation email: {result.error}")
            return False, result.error

        logger.info(f"Appointment confirmation email sent to {appointment.patient_email}")
        return True, None
