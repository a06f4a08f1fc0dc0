from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from portal.database.config.db import get_db
from portal.database.models.auth import User, UserRole
from portal.exceptions import NotFound, Unauthorized
from portal.settings import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_ACCESS_TOKEN_EXPIRE_MINUTES
from portal.workflow.types import Actor

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def actor_from_user(user: User) -> Actor:
    return Actor(
        id=user.id,
        role=UserRole(user.role),
        faculty_id=user.faculty_id,
        program_id=user.program_id,
        email=user.email,
        full_name=user.full_name,
        current_year=user.current_year,
    )


class SqlIdentityProvider:
    """Resolves credentials and user ids to workflow actors."""

    def __init__(self, db: Session):
        self.db = db

    def authenticate(self, email: str, password: str) -> Actor:
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.password_hash):
            raise Unauthorized("Incorrect email or password")
        if not user.verified:
            raise Unauthorized("User account is not verified")
        return actor_from_user(user)

    def lookup(self, user_id: UUID) -> Actor:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return actor_from_user(user)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get the current authenticated user from JWT token.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id: str = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_uuid).first()
    if user is None:
        raise credentials_exception

    if not user.verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not verified",
        )

    return user


def get_current_actor(
    current_user: User = Depends(get_current_user)
) -> Actor:
    """
    Resolve the authenticated user into a workflow actor.
    """
    return actor_from_user(current_user)


# RBAC Functions
def require_roles(*roles: UserRole):
    """
    Dependency function to require one of the given roles.
    Usage: actor: Actor = Depends(require_roles(UserRole.REGISTRAR, UserRole.SYSTEM_ADMIN))
    """
    def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise Unauthorized(
                f"Access denied. Required role: {', '.join(r.value for r in roles)}"
            )
        return actor

    return role_checker
