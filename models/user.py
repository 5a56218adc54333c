from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Uuid
import uuid
from .base import Base
from .enums import UserRole


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    email = Column(String, unique=True, index=True, nullable=True)
    phone = Column(String, unique=True, index=True, nullable=True)
    name = Column(String, nullable=True)
    # Users created through the OTP flow have no password
    password_hash = Column(String, nullable=True)
    role = Column(String, nullable=False, default=UserRole.user.value)
    is_active = Column(Boolean, default=True)
    refresh_token_hash = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
