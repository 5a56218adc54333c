from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from api.deps import get_current_user, get_otp_manager
from core.exceptions import (
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidTokenError,
    UserAlreadyExistsError,
)
from core.security import decode_refresh_token, hash_password, hash_token, verify_password
from db import get_db
from models.user import User
from schemas.auth import (
    AuthData,
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SendOtpRequest,
    SendOtpResponse,
    UserOut,
    VerifyOtpRequest,
)
from utils.otp import OtpManager
from utils.user_helpers import (
    create_user,
    find_user_by_email,
    find_user_by_id,
    find_user_by_phone,
    issue_tokens,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(db: Session, user: User, message: str) -> AuthResponse:
    access_token, refresh_token = issue_tokens(db, user)
    return AuthResponse(
        message=message,
        data=AuthData(
            user=UserOut.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        ),
    )


# ---------------- Register ----------------
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if find_user_by_email(db, payload.email):
        raise UserAlreadyExistsError("email")
    if payload.phone and find_user_by_phone(db, payload.phone):
        raise UserAlreadyExistsError("phone number")

    user = create_user(
        db,
        email=payload.email,
        phone=payload.phone,
        name=payload.name,
        password_hash=hash_password(payload.password),
    )
    return _auth_response(db, user, "User registered successfully")


# ---------------- Login ----------------
@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = find_user_by_email(db, payload.email)

    # same error for unknown email, wrong password and OTP-only accounts
    if not user or not verify_password(payload.password, user.password_hash):
        raise InvalidCredentialsError()
    if not user.is_active:
        raise InvalidCredentialsError()

    return _auth_response(db, user, "Login successful")


# ---------------- Refresh Token ----------------
@router.post("/refresh-token", response_model=AuthResponse)
def refresh_token(payload: RefreshTokenRequest, db: Session = Depends(get_db)):
    token_data = decode_refresh_token(payload.refresh_token)

    user = find_user_by_id(db, token_data["sub"])
    if not user or not user.is_active:
        raise InvalidTokenError("Invalid refresh token")

    # Only the most recently issued refresh token is accepted
    if user.refresh_token_hash != hash_token(payload.refresh_token):
        raise InvalidTokenError("Invalid refresh token")

    return _auth_response(db, user, "Token refreshed")


# ---------------- Get Current User ----------------
@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


# ---------------- Send OTP ----------------
@router.post("/otp/send", response_model=SendOtpResponse, response_model_exclude_none=True)
async def send_otp(payload: SendOtpRequest, otp_manager: OtpManager = Depends(get_otp_manager)):
    otp = await otp_manager.send_otp(payload.phone)

    return SendOtpResponse(
        message="OTP sent successfully",
        otp=otp if otp_manager.expose_code_for_testing else None,
    )


# ---------------- Verify OTP ----------------
@router.post("/otp/verify", response_model=AuthResponse)
async def verify_otp(
    payload: VerifyOtpRequest,
    db: Session = Depends(get_db),
    otp_manager: OtpManager = Depends(get_otp_manager),
):
    if not await otp_manager.verify_otp(payload.phone, payload.otp):
        raise InvalidOtpError()

    # Find or create the user owning this phone
    user = find_user_by_phone(db, payload.phone)
    if not user:
        user = create_user(db, phone=payload.phone)
    elif not user.is_active:
        raise InvalidCredentialsError()

    return _auth_response(db, user, "OTP verified successfully")
