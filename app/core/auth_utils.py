"""Authentication utilities.

Tokens are issued by the marketplace auth service with the shared secret;
this module verifies them for REST calls and the realtime handshake.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.dependencies import get_user_repo
from app.db.db import run_db_call
from app.models.user import User
from app.repositories.user_repo import UserRepo

# OAuth2 scheme for token handling
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")

# JWT settings
JWT_SECRET_KEY = settings.JWT_SECRET_KEY
JWT_ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


class TokenData(BaseModel):
    """Data embedded in JWT token."""

    user_id: int
    exp: datetime

    def model_dump(self, **kwargs):
        """Override model_dump to serialize datetime as timestamp."""
        data = super().model_dump(**kwargs)
        # Convert timezone-aware datetime to timestamp for JWT
        if isinstance(data["exp"], datetime):
            data["exp"] = int(data["exp"].timestamp())
        return data

    @classmethod
    def from_payload(cls, payload: dict):
        """Create TokenData from JWT payload, converting timestamp back to datetime."""
        data = payload.copy()
        # Tokens from the marketplace auth service carry the user under "id"
        if "user_id" not in data and "id" in data:
            data["user_id"] = data["id"]
        if "exp" in data and isinstance(data["exp"], (int, float)):
            data["exp"] = datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        return cls(**data)


class InvalidTokenError(Exception):
    """Token is missing, malformed, badly signed or expired."""


def create_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a new JWT token."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = TokenData(user_id=user_id, exp=expire).model_dump()
    encoded_jwt = jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
    return str(encoded_jwt)


def create_access_token(user_id: int) -> str:
    """Create a new access token."""
    return create_token(user_id, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))


def decode_token(token: Optional[str]) -> TokenData:
    """
    Verify a token's signature and expiry and extract its claims.

    Raises:
        InvalidTokenError: If the token cannot be trusted.
    """
    if not token:
        raise InvalidTokenError("Missing token")

    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
        token_data = TokenData.from_payload(payload)
    except (JWTError, ValidationError, TypeError) as e:
        raise InvalidTokenError(str(e)) from None

    if datetime.now(timezone.utc) > token_data.exp:
        raise InvalidTokenError("Token expired")

    return token_data


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    user_repo: UserRepo = Depends(get_user_repo),
) -> User:
    """Dependency to get current authenticated user from token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        token_data = decode_token(token)
    except InvalidTokenError:
        raise credentials_exception from None

    user = await run_db_call(user_repo.get_user_by_id, token_data.user_id)
    if user is None:
        raise credentials_exception

    return user
