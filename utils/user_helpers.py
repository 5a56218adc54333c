import logging
import uuid
from sqlalchemy.orm import Session

from core.security import create_access_token, create_refresh_token, hash_token
from models.enums import UserRole
from models.user import User


logger = logging.getLogger(__name__)


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def find_user_by_phone(db: Session, phone: str) -> User | None:
    return db.query(User).filter(User.phone == phone).first()


def find_user_by_id(db: Session, user_id) -> User | None:
    if not isinstance(user_id, uuid.UUID):
        try:
            user_id = uuid.UUID(str(user_id))
        except ValueError:
            return None
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, **fields) -> User:
    fields.setdefault("role", UserRole.user.value)
    user = User(**fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {user.id}")
    return user


def update_user(db: Session, user: User, **fields) -> User:
    for name, value in fields.items():
        setattr(user, name, value)
    db.commit()
    db.refresh(user)
    return user


def issue_tokens(db: Session, user: User) -> tuple[str, str]:
    """
    Create an access/refresh pair for ``user`` and remember the refresh token
    (hashed) so only the latest one can be exchanged.
    """
    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
        }
    )
    refresh_token = create_refresh_token(data={"sub": str(user.id)})

    update_user(db, user, refresh_token_hash=hash_token(refresh_token))
    return access_token, refresh_token
