from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.logging import auth_logger
from app.core.monitoring import record_auth_attempt
from app.core.security import verify_token
from app.core.session import SessionContext
from app.crud import user as user_crud
from app.database.connection import get_db
from app.models.user import User

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to a user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    email = verify_token(credentials.credentials, credentials_exception)
    user = user_crud.get_user_by_email(db, email=email)
    if user is None:
        auth_logger.warning("Token for unknown user", email=email)
        record_auth_attempt(False)
        raise credentials_exception

    auth_logger.debug("User authenticated", user_id=user.id)
    return user


def get_session_context(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Open a SessionContext for the request and close it afterwards"""
    with SessionContext(db=db, user=current_user) as context:
        yield context
