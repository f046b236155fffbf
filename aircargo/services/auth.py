import logging

from sqlalchemy.orm import Session

from aircargo.auth.argon import hash_password, verify_password
from aircargo.errors import DuplicateResource
from aircargo.models.user import User
from aircargo.services.token import create_access_token

logger = logging.getLogger(__name__)


def generate_token(user: User) -> str:
    return create_access_token(data={"sub": user.id, "username": user.username, "email": user.email})


def register_user(db: Session, username: str, email: str, password: str):
    if db.query(User).filter(User.email == email).first():
        raise DuplicateResource("User with this email already exists")
    if db.query(User).filter(User.username == username).first():
        raise DuplicateResource("Username is already taken")

    user = User(username=username, email=email, password_hash=hash_password(password))
    db.add(user); db.commit(); db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user, generate_token(user)


def authenticate_user(db: Session, email: str, password: str):
    """Return (user, token) for valid credentials, None otherwise."""
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(user.password_hash, password):
        return None
    return user, generate_token(user)
