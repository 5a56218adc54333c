from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from core.config import OTP_EXPOSE_CODE_FOR_TESTING, OTP_LENGTH, OTP_TTL_SECONDS
from core.exceptions import InvalidTokenError, StorageError
from core.security import decode_access_token, oauth2_scheme
from db import get_db
from models.user import User
from utils.cache import OtpCache
from utils.otp import OtpManager
from utils.user_helpers import find_user_by_id


def get_otp_cache(request: Request) -> OtpCache:
    cache = getattr(request.app.state, "otp_cache", None)
    if cache is None:
        # startup has not run (or failed to connect)
        raise StorageError()
    return cache


def get_otp_manager(cache: OtpCache = Depends(get_otp_cache)) -> OtpManager:
    return OtpManager(
        cache,
        ttl_seconds=OTP_TTL_SECONDS,
        length=OTP_LENGTH,
        expose_code_for_testing=OTP_EXPOSE_CODE_FOR_TESTING,
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise InvalidTokenError("Missing bearer token")

    payload = decode_access_token(credentials.credentials)

    user = find_user_by_id(db, payload.get("sub"))
    if not user or not user.is_active:
        raise InvalidTokenError()
    return user
