import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from booklog.core.security import get_password_hash, verify_password
from booklog.models import User

logger = logging.getLogger(__name__)


def get_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def username_exists(db: Session, username: str) -> bool:
    return db.query(db.query(User).filter(User.username == username).exists()).scalar()


def create(db: Session, username: str, password: str, nickname: Optional[str] = None) -> User:
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        nickname=nickname,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user id=%s username=%r", user.id, user.username)
    return user


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, else None."""
    user = get_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def update_profile(db: Session, user_id: int, nickname: str) -> Optional[User]:
    user = get_by_id(db, user_id)
    if user is None:
        return None
    user.nickname = nickname
    user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return user
