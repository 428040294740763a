from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import EmailStr, TypeAdapter, ValidationError

from config import Settings
from errors import Forbidden, InvalidToken, Unauthenticated

# Admin signup and admin login historically disagree on the role's casing;
# both spellings are accepted when checking admin access.
SIGNUP_ADMIN_ROLE = "Admin"
LOGIN_ADMIN_ROLE = "admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)
_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class Identity:
    email: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is not None and self.role.lower() == LOGIN_ADMIN_ROLE


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def normalize_email(value: Optional[str]) -> Optional[str]:
    """
    Normalize an email the way signup bodies are validated, so a login
    header matches the stored form. Returns None for anything invalid.
    """
    if not value:
        return None
    try:
        return _email_adapter.validate_python(value)
    except ValidationError:
        return None


def create_access_token(data: dict, secret_key: str, algorithm: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data``; without ``expires_delta`` the token carries no expiry."""
    to_encode = data.copy()
    if expires_delta is not None:
        to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def create_admin_token(email: str, role: str, settings: Settings) -> str:
    return create_access_token(
        {"email": email, "role": role},
        settings.SECRET_KEY,
        settings.ALGORITHM,
        timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES),
    )


def create_user_token(email: str, settings: Settings) -> str:
    expires = settings.USER_TOKEN_EXPIRE_MINUTES
    return create_access_token(
        {"email": email},
        settings.SECRET_KEY,
        settings.ALGORITHM,
        timedelta(minutes=expires) if expires is not None else None,
    )


def decode_access_token(token: str, secret_key: str, algorithm: str) -> Identity:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError:
        raise InvalidToken()
    email = payload.get("email")
    if not email:
        raise InvalidToken()
    return Identity(email=email, role=payload.get("role"))


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return decode_access_token(credentials.credentials, settings.SECRET_KEY, settings.ALGORITHM)


async def get_admin_identity(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise Forbidden()
    return identity
