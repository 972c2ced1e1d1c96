# assignment_eval/api/v1/endpoints/auth.py
import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from assignment_eval.core.config import settings
from assignment_eval.core.security import (
    authenticate_user,
    create_access_token,
    get_password_hash,
)
from assignment_eval.db.session import get_db
from assignment_eval.models.user import User
from assignment_eval.schemas.auth import LoginRequest, RegisterRequest, Token, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _login(db: Session, email: str, password: str) -> Token:
    """Check credentials and issue a bearer token carrying email and role."""
    user = authenticate_user(db, email, password)
    if user is None:
        logger.info(f"Failed login for {email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(
        data={"sub": user.email, "role": user.role},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(access_token=token)


@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def register_user(payload: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User.id).filter(User.email == payload.email).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = User(
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        name=payload.name,
        role=payload.role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Registered {user.role} account {user.id}")
    return user


# JSON body, used by the web client
@router.post("/login", response_model=Token)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    return _login(db, payload.email, payload.password)


# form body for the docs "Authorize" button; username is the email address
@router.post("/token", response_model=Token)
def login_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    return _login(db, form_data.username, form_data.password)
