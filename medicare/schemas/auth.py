from pydantic import EmailStr, Field, field_validator
from typing import Optional

from .base import CamelModel


class DoctorRegister(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    phone: Optional[str] = Field(None, max_length=20)
    gender: Optional[str] = Field(None, max_length=20)
    specialization: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=255)

    @field_validator("specialization", "location")
    @classmethod
    def normalize_lowercase(cls, value: str) -> str:
        return value.strip().lower()


class DoctorLogin(CamelModel):
    email: EmailStr
    password: str


class RegisterResponse(CamelModel):
    success: bool = True
    message: str
    doctor_id: str


class LoginResponse(CamelModel):
    success: bool = True
    message: str
    doctor_id: str
    redirect_url: str = "/doctor/dashboard"


class OTPRequest(CamelModel):
    email: EmailStr


class OTPVerify(CamelModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$")
