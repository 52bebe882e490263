from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.dependencies import get_session_context, security
from app.core.logging import auth_logger
from app.core.monitoring import record_auth_attempt
from app.core.security import create_access_token, create_refresh_token, revoke_token, verify_token
from app.core.session import SessionContext, signed_in, signed_out
from app.crud import user as user_crud
from app.database.connection import get_db
from app.schemas.user import UserCreate, UserLogin, Token, RefreshRequest, User as UserSchema

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(email: str) -> dict:
    return {
        "access_token": create_access_token(data={"sub": email}),
        "refresh_token": create_refresh_token(data={"sub": email}),
        "token_type": "bearer",
    }


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new user"""
    if len(user.password) < settings.password_min_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.password_min_length} characters long"
        )

    if user_crud.get_user_by_email(db, email=user.email):
        auth_logger.warning("Registration attempt with existing email", email=user.email)
        record_auth_attempt(False)
        raise HTTPException(status_code=400, detail="Email already registered")

    db_user = user_crud.create_user(db, user)
    auth_logger.info("User registered successfully", user_id=db_user.id)
    record_auth_attempt(True)
    signed_in(db_user)

    return _issue_tokens(db_user.email)


@router.post("/login", response_model=Token)
async def login(user: UserLogin, db: Session = Depends(get_db)):
    """Login with email and password"""
    authenticated_user = user_crud.authenticate_user(db, user.email, user.password)
    if not authenticated_user:
        auth_logger.warning("Login failed", email=user.email)
        record_auth_attempt(False)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    auth_logger.info("User logged in", user_id=authenticated_user.id)
    record_auth_attempt(True)
    signed_in(authenticated_user)

    return _issue_tokens(authenticated_user.email)


@router.post("/refresh", response_model=Token)
async def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid refresh token"
    )
    email = verify_token(payload.refresh_token, credentials_exception, token_type="refresh")
    if not user_crud.get_user_by_email(db, email=email):
        raise credentials_exception
    return _issue_tokens(email)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    payload: Optional[RefreshRequest] = None,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    context: SessionContext = Depends(get_session_context)
):
    """Sign out: revoke the presented access token (and refresh token, if sent).

    Live session contexts of this user drop their user.
    """
    user_id = context.user_id
    revoke_token(credentials.credentials)
    if payload is not None:
        revoke_token(payload.refresh_token)
    signed_out(user_id)
    auth_logger.info("User logged out", user_id=user_id)


@router.get("/me", response_model=UserSchema)
async def get_current_user_info(context: SessionContext = Depends(get_session_context)):
    """Get current user information"""
    return context.user
