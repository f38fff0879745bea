# shankai/auth/routes.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shankai.auth.schemas import UserCreate, UserLogin, UserOut, AuthResponse
from shankai.auth.service import create_user, authenticate_user
from shankai.auth.deps import get_current_user
from shankai.database.session import get_db
from shankai.models.user import User
from shankai.utils.errors import BadCredentials
from shankai.utils.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(data={"sub": str(user.id)})
    return AuthResponse(token=token, user=UserOut.model_validate(user))


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    user_in: UserCreate,
    db: Session = Depends(get_db),
):
    user = create_user(db, user_in)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(
    user_in: UserLogin,
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, user_in.email, user_in.password)
    if not user:
        logger.info("[Auth Routes] failed login attempt")
        raise BadCredentials()
    return _auth_response(user)


@router.get("/me", response_model=UserOut)
def read_me(
    current_user: User = Depends(get_current_user),
):
    return current_user
