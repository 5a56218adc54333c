from datetime import datetime, timedelta, timezone
import hashlib
import logging
import uuid
from fastapi.security import HTTPBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from core.config import (
    SECRET_KEY,
    REFRESH_SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
)
from core.exceptions import InvalidTokenError


logger = logging.getLogger(__name__)


pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

oauth2_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def hash_token(token: str) -> str:
    """SHA-256 of a token, for storing refresh tokens at rest."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta if expires_delta else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": ACCESS_TOKEN_TYPE})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_refresh_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))
    # jti keeps two refresh tokens issued within the same second distinct
    to_encode.update({"exp": expire, "iat": now, "jti": uuid.uuid4().hex, "type": REFRESH_TOKEN_TYPE})
    return jwt.encode(to_encode, REFRESH_SECRET_KEY, algorithm=ALGORITHM)


def _decode(token: str, secret: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected {expected_type} token: {e}")
        raise InvalidTokenError()

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise InvalidTokenError()
    return payload


def decode_access_token(token: str) -> dict:
    return _decode(token, SECRET_KEY, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict:
    return _decode(token, REFRESH_SECRET_KEY, REFRESH_TOKEN_TYPE)
