"""
Authentication API endpoints.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, status

from ..config import settings
from ..core.errors import NotFound, Unauthorized
from ..models import UserCreate, UserLogin, Token
from ..storage import RecordStore, get_record_store
from ..utils.auth import (
    authenticate_user,
    create_access_token,
    get_current_user_id,
    register_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(user_data: UserCreate, records: RecordStore = Depends(get_record_store)):
    """
    Register a new user.

    Raises:
        ValidationError: If the email is already registered
    """
    account = await register_user(records, user_data)
    logger.info(f"User created: {account.user_id}")

    return {
        "success": True,
        "userId": account.user_id,
        "message": "User created successfully",
    }


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, records: RecordStore = Depends(get_record_store)):
    """
    Login and get access token.

    Raises:
        Unauthorized: If authentication fails
    """
    account = await authenticate_user(records, credentials.email, credentials.password)
    if account is None:
        raise Unauthorized("Incorrect email or password")

    access_token = create_access_token(
        data={"sub": account.user_id, "email": account.email},
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )
    return Token(access_token=access_token, token_type="bearer")


@router.get("/me")
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    """Basic info for the authenticated user."""
    info = await records.get_basic_info(user_id)
    if info is None:
        raise NotFound("User not found")
    return {"success": True, "userId": user_id, "basicInfo": info.to_store()}
