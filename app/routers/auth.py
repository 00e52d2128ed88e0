from fastapi import APIRouter, status
import logging

from app.core.errors import ApiError
from app.core.security import verify_password
from app.db import dynamo
from app.models.user import UserLogin, UserPublic

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=UserPublic)
def login(login_data: UserLogin):
    """Check email/password and return the user without any password material."""
    if not login_data.email or not login_data.password:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email and password are required", "MISSING_CREDENTIALS")

    email = login_data.email.strip().lower()
    logger.info(f"Login attempt for email: {email}")
    user = dynamo.get_user_by_email(email)

    if not user:
        logger.warning(f"User not found: {email}")
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid email or password", "INVALID_CREDENTIALS")

    if not verify_password(login_data.password, user.get("password_hash", "")):
        logger.warning(f"Invalid password for user: {email}")
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid email or password", "INVALID_CREDENTIALS")

    logger.info(f"Login successful for user: {email}")
    return UserPublic(**user)
