# shankai/auth/deps.py
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from shankai.config.settings import settings
from shankai.database.session import get_db
from shankai.models.user import User
from shankai.auth.service import get_user_by_id
from shankai.utils.errors import InvalidCredential, Unauthenticated, UnknownSubject
from shankai.utils.security import decode_access_token

# auto_error=False so a missing/malformed header surfaces as our own 401 body
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login",
    auto_error=False,
)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise Unauthenticated()

    payload = decode_access_token(token)
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise InvalidCredential()

    user = get_user_by_id(db, user_id)
    if not user:
        raise UnknownSubject()
    return user
