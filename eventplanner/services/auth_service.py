from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventplanner.core.security import create_access_token, get_password_hash, verify_password
from eventplanner.db.models.user import User, UserRole
from eventplanner.schemas.auth import LoginRequest, RegisterRequest, TokenResponse

USER_EXISTS_DETAIL = "User with this email already exists"
INVALID_CREDENTIALS_DETAIL = "Invalid email or password"


def register_user(payload: RegisterRequest, db: Session) -> User:
    email = payload.email.lower()
    existing_user = db.scalar(select(User).where(User.email == email))
    if existing_user:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=USER_EXISTS_DETAIL)

    user = User(
        email=email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role.value if isinstance(payload.role, UserRole) else payload.role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=USER_EXISTS_DETAIL) from None
    db.refresh(user)
    return user


def login_user(payload: LoginRequest, db: Session) -> TokenResponse:
    email = payload.email.lower()
    user = db.scalar(select(User).where(User.email == email))
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS_DETAIL)

    token = create_access_token(subject=str(user.id), extra_claims={"role": user.role})
    return TokenResponse(access_token=token)
