from typing import Optional
from sqlalchemy.orm import Session
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.schemas.user import UserCreate


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(db: Session, user: UserCreate) -> User:
    """Create a user with a bcrypt password hash"""
    db_user = User(
        email=user.email.lower(),
        password_hash=hash_password(user.password),
        display_name=user.display_name,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def update_profile(db: Session, user: User, display_name: Optional[str] = None, photo_url: Optional[str] = None) -> User:
    if display_name is not None:
        user.display_name = display_name
    if photo_url:
        user.photo_url = photo_url
    db.commit()
    db.refresh(user)
    return user
