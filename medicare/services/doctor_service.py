from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List
import logging

from ..models.doctor import Doctor
from ..models.appointment import Appointment
from ..schemas.doctor import DoctorProfileUpdate
from .media_service import CloudinaryMediaService

logger = logging.getLogger(__name__)


class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def get_doctor(self, doctor_id: str) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.doctor_id == doctor_id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )
        return doctor

    def update_profile(self, doctor_id: str, profile_data: DoctorProfileUpdate) -> Doctor:
        """Apply the fields present in ``profile_data``; absent fields are left as they are."""
        doctor = self.get_doctor(doctor_id)

        for field, value in profile_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(doctor, field, value)

        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def update_profile_picture(
        self,
        doctor_id: str,
        media: CloudinaryMediaService,
        content: bytes,
        filename: str,
        folder: str,
    ) -> Doctor:
        doctor = self.get_doctor(doctor_id)

        secure_url = media.upload_image(content, filename, folder)

        doctor.profile_picture = secure_url
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Profile picture updated for doctor {doctor_id}")
        return doctor

    def list_appointments(self, doctor_id: str) -> List[Appointment]:
        """Appointments assigned to the doctor, newest first."""
        return (
            self.db.query(Appointment)
            .filter(Appointment.doctor_id == doctor_id)
            .order_by(Appointment.created_at.desc())
            .all()
        )
