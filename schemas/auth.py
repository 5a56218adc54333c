import re
from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from core.config import OTP_LENGTH
from models.enums import UserRole


PHONE_PATTERN = re.compile(r"[0-9]{10}")


def _validate_phone(v: str) -> str:
    # ASCII digits only; str.isdigit() would also accept other scripts
    if not PHONE_PATTERN.fullmatch(v):
        raise ValueError("Phone number must be exactly 10 digits")
    return v


#----------------------------- User -----------------------------#
class UserOut(BaseModel):
    id: UUID
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


#----------------------------- Register / Login -----------------------------#
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("phone")
    def validate_phone(cls, v):
        if v is None:
            return v
        return _validate_phone(v)

    @field_validator("password")
    def validate_password_length(cls, password):
        if len(password.encode("utf-8")) > 72:
            raise ValueError("Password must not exceed 72 bytes")
        return password


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


#---------------------- Token schemas ----------------------#
class AuthData(BaseModel):
    user: UserOut
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    data: AuthData


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


#---------------------- OTP schemas ----------------------#
class SendOtpRequest(BaseModel):
    phone: str

    @field_validator("phone")
    def validate_phone(cls, v):
        return _validate_phone(v)


class SendOtpResponse(BaseModel):
    success: bool = True
    message: str
    # Only populated when the service runs with OTP_EXPOSE_CODE_FOR_TESTING
    otp: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    phone: str
    otp: str = Field(min_length=OTP_LENGTH, max_length=OTP_LENGTH)

    @field_validator("phone")
    def validate_phone(cls, v):
        return _validate_phone(v)
