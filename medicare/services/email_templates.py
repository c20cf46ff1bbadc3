"""
Email content for patient and doctor notifications.

Every function here is pure: it takes records and returns a
:class:`RenderedEmail` with a subject, an HTML body and a plain-text body
built from the same fields, so clients that cannot show HTML still get the
full message. Optional fields are left out entirely when empty.
"""
from dataclasses import dataclass
from datetime import date, datetime
from html import escape
from typing import Any, List, Optional, Tuple, Union

from ..core.exceptions import MissingRecipientError

BRAND_NAME = "MediCare Hub"

# Fixed English names so output does not depend on the process locale
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

REMINDERS = (
    "Please arrive 15 minutes before your scheduled time",
    "Bring any relevant medical reports or documents",
    "Carry your ID proof and insurance details if applicable",
    "In case of emergency, contact the hospital directly",
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html_body: str
    text_body: str


def format_long_date(value: Union[date, datetime, str]) -> str:
    """Format a date as e.g. ``Saturday, June 1, 2024``."""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        value = value.date()
    return f"{WEEKDAYS[value.weekday()]}, {MONTHS[value.month - 1]} {value.day}, {value.year}"


def default_confirmation_message(time_slot: str, appointment_date: Union[date, datetime, str]) -> str:
    return f"Your appointment has been confirmed for {time_slot} on {format_long_date(appointment_date)}"


def _confirmation_details(appointment: Any, doctor: Optional[Any]) -> List[Tuple[str, str]]:
    details = [
        ("Date", format_long_date(appointment.appointment_date)),
        ("Time Slot", appointment.time_slot or ""),
    ]
    if doctor is not None and getattr(doctor, "name", None):
        details.append(("Doctor", f"Dr. {doctor.name}"))
    if doctor is not None and getattr(doctor, "specialization", None):
        details.append(("Specialization", doctor.specialization))
    if getattr(appointment, "confirmation_message", None):
        details.append(("Doctor's Note", appointment.confirmation_message))
    if getattr(appointment, "description", None):
        details.append(("Your Concern", appointment.description))
    return details


def _year() -> int:
    return datetime.utcnow().year


def render_confirmation(appointment: Any, doctor: Optional[Any] = None) -> RenderedEmail:
    """
    Build the appointment confirmation email for the patient.

    Args:
        appointment: confirmed appointment; needs ``patient_email``,
            ``appointment_date`` and ``time_slot``.
        doctor: the assigned doctor, or None when it could not be loaded.

    Raises:
        MissingRecipientError: the appointment has no patient email.
    """
    if not getattr(appointment, "patient_email", None):
        raise MissingRecipientError()

    formatted_date = format_long_date(appointment.appointment_date)
    patient_name = getattr(appointment, "patient_name", None) or "Patient"
    details = _confirmation_details(appointment, doctor)
    year = _year()

    subject = f"Appointment Confirmed - {formatted_date}"

    detail_rows = "\n".join(
        f'<p style="color: #333333; margin: 8px 0;"><strong>{escape(label)}:</strong> {escape(value)}</p>'
        for label, value in details
    )
    reminder_items = "\n".join(
        f'<li style="margin-bottom: 8px;">{escape(item)}</li>' for item in REMINDERS
    )

    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f9f9f9;">
  <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
    <h1 style="margin: 0; font-size: 28px;">Appointment Confirmed!</h1>
    <p style="margin: 10px 0 0 0; font-size: 16px; opacity: 0.9;">Your healthcare appointment has been scheduled</p>
  </div>
  <div style="background-color: #ffffff; padding: 30px; border-radius: 0 0 10px 10px;">
    <h2 style="color: #333333; margin-bottom: 20px;">Dear {escape(patient_name)},</h2>
    <p style="color: #333333; font-size: 16px; line-height: 1.6;">
      We're pleased to inform you that your appointment has been confirmed. Here are your appointment details:
    </p>
    <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #667eea;">
      <h3 style="color: #333333; margin-top: 0;">Appointment Details</h3>
{detail_rows}
    </div>
    <h3 style="color: #333333; margin-bottom: 15px;">Important Reminders:</h3>
    <ul style="color: #333333; padding-left: 20px; margin-bottom: 20px;">
{reminder_items}
    </ul>
    <p style="color: #333333; font-size: 16px; line-height: 1.6;">
      If you need to reschedule or cancel your appointment, please contact us at least 24 hours in advance.
    </p>
  </div>
  <div style="text-align: center; margin-top: 20px; padding: 20px; color: #666; font-size: 12px;">
    <p>Thank you for choosing {BRAND_NAME} for your healthcare needs.</p>
    <p>&copy; {year} {BRAND_NAME}. All rights reserved.</p>
  </div>
</div>
"""

    text_lines = [
        "Appointment Confirmed",
        "",
        f"Dear {patient_name},",
        "",
        "Your appointment has been confirmed with the following details:",
        "",
    ]
    text_lines.extend(f"{label}: {value}" for label, value in details)
    text_lines.extend(["", "Important Reminders:"])
    text_lines.extend(f"- {item}" for item in REMINDERS)
    text_lines.extend([
        "",
        "If you need to reschedule or cancel, please contact us at least 24 hours in advance.",
        "",
        f"Thank you for choosing {BRAND_NAME}.",
        "",
        f"(c) {year} {BRAND_NAME}. All rights reserved.",
    ])

    return RenderedEmail(subject=subject, html_body=html_body, text_body="\n".join(text_lines))


def render_otp(otp: str, valid_minutes: int = 10) -> RenderedEmail:
    """Build the email-verification OTP message."""
    year = _year()
    subject = f"Email Verification OTP - {BRAND_NAME}"

    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f9f9f9;">
  <div style="background-color: #ffffff; padding: 30px; border-radius: 10px;">
    <h2 style="color: #3B82F6; text-align: center; margin-bottom: 20px;">Email Verification</h2>
    <p style="color: #333333; font-size: 16px; line-height: 1.6;">Hello,</p>
    <p style="color: #333333; font-size: 16px; line-height: 1.6;">
      Thank you for registering with {BRAND_NAME}. Please use the OTP below to verify your email address:
    </p>
    <div style="background-color: #3B82F6; color: #ffffff; padding: 20px; border-radius: 8px; text-align: center; margin: 30px 0;">
      <h1 style="margin: 0; font-size: 32px; letter-spacing: 5px;">{escape(otp)}</h1>
    </div>
    <p style="color: #666666; font-size: 14px; line-height: 1.6;">
      This OTP is valid for {valid_minutes} minutes. If you didn't request this OTP, please ignore this email.
    </p>
    <p style="color: #999999; font-size: 12px; text-align: center; margin: 0;">
      &copy; {year} {BRAND_NAME}. All rights reserved.
    </p>
  </div>
</div>
"""

    text_body = "\n".join([
        "Email Verification",
        "",
        "Hello,",
        "",
        f"Thank you for registering with {BRAND_NAME}. Please use the OTP below to verify your email address:",
        "",
        f"    {otp}",
        "",
        f"This OTP is valid for {valid_minutes} minutes. If you didn't request this OTP, please ignore this email.",
        "",
        f"(c) {year} {BRAND_NAME}. All rights reserved.",
    ])

    return RenderedEmail(subject=subject, html_body=html_body, text_body=text_body)
