# shankai/auth/service.py
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shankai.models.user import User
from shankai.auth.schemas import UserCreate
from shankai.utils.errors import Conflict
from shankai.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, user_in: UserCreate) -> User:
    """
    Create an account. Raises Conflict if the email is already registered,
    including when a concurrent registration wins the unique constraint.
    """
    email = normalize_email(user_in.email)
    if get_user_by_email(db, email):
        raise Conflict("Email already registered")

    user = User(
        email=email,
        name=user_in.name,
        hashed_password=hash_password(user_in.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"[Auth Service] duplicate registration for {email}")
        raise Conflict("Email already registered") from e
    db.refresh(user)
    logger.info(f"[Auth Service] user registered: user_id={user.id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
