"""
Authentication utilities - JWT token handling and password hashing.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..core.errors import Unauthorized, ValidationError
from ..models import Account, BasicInfo, TokenData, UserCreate
from ..storage import RecordStore

# auto_error=False so a missing header surfaces as our 401, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode; "sub" carries the user id
        expires_delta: Optional expiration time delta

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Decode and verify a JWT access token.

    Returns:
        Optional[TokenData]: Token data if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None
    return TokenData(user_id=user_id, email=payload.get("email"))


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Dependency to get current user ID from the bearer token.

    Raises:
        Unauthorized: If the header is missing or the token is invalid
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing authorization token")

    token_data = decode_access_token(credentials.credentials)
    if token_data is None or token_data.user_id is None:
        raise Unauthorized("Invalid or expired token")

    return token_data.user_id


async def register_user(records: RecordStore, user_data: UserCreate) -> Account:
    """
    Create an account and its basic info.

    Raises:
        ValidationError: If the email is already registered
    """
    email = user_data.email.lower()
    if await records.get_account(email) is not None:
        raise ValidationError("Email already registered")

    user_id = str(uuid.uuid4())
    account = Account(
        user_id=user_id,
        email=email,
        hashed_password=get_password_hash(user_data.password),
    )
    info = BasicInfo(email=email, name=user_data.name, phone=user_data.phone)

    await records.save_account(account)
    await records.save_basic_info(user_id, info)
    return account


async def authenticate_user(records: RecordStore, email: str, password: str) -> Optional[Account]:
    """
    Authenticate a user by email and password.

    Returns:
        Optional[Account]: The account if the credentials match, None otherwise
    """
    account = await records.get_account(email)
    if account is None:
        return None
    if not verify_password(password, account.hashed_password):
        return None
    return account
