from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ...core.config import settings
from ...core.database import get_db
from ...core.exceptions import MediaUploadError
from ...api.deps import get_current_doctor, get_media_service
from ...services.doctor_service import DoctorService
from ...services.media_service import CloudinaryMediaService
from ...schemas.appointment import AppointmentResponse
from ...schemas.doctor import (
    DashboardResponse, DoctorProfileUpdate, DoctorResponse,
    ProfilePictureResponse, ProfileResponse
)
from ...models.doctor import Doctor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Doctor profile together with all of their appointments."""
    appointments = DoctorService(db).list_appointments(current_doctor.doctor_id)

    return DashboardResponse(
        doctor=DoctorResponse.model_validate(current_doctor),
        appointments=[AppointmentResponse.model_validate(a) for a in appointments]
    )

@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_doctor: Doctor = Depends(get_current_doctor)
):
    return ProfileResponse(doctor=DoctorResponse.model_validate(current_doctor))

@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    profile_data: DoctorProfileUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Update name, phone, specialization or location."""
    doctor = DoctorService(db).update_profile(current_doctor.doctor_id, profile_data)

    return ProfileResponse(
        message="Profile updated successfully",
        doctor=DoctorResponse.model_validate(doctor)
    )

@router.post("/profile/picture", response_model=ProfilePictureResponse)
async def upload_profile_picture(
    profile_picture: Optional[UploadFile] = File(None, alias="profilePicture"),
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    media: CloudinaryMediaService = Depends(get_media_service)
):
    """Upload a new profile picture to media storage."""
    if profile_picture is None or not profile_picture.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded"
        )

    content = await profile_picture.read()
    try:
        doctor = await run_in_threadpool(
            DoctorService(db).update_profile_picture,
            current_doctor.doctor_id,
            media,
            content,
            profile_picture.filename,
            settings.PROFILE_PICTURE_FOLDER
        )
    except MediaUploadError as e:
        logger.error(f"Profile picture upload error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error uploading profile picture: {str(e)}"
        )

    return ProfilePictureResponse(
        message="Profile picture uploaded successfully",
        profile_picture=doctor.profile_picture,
        doctor=DoctorResponse.model_validate(doctor)
    )
