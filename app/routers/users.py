from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Query, status

from app.core.errors import ApiError
from app.core.security import get_password_hash
from app.db import dynamo
from app.models.user import UserCreate, UserInDB, UserPublic, UserUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_user_or_404(user_id: int) -> dict:
    user = dynamo.get_user_by_id(user_id)
    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")
    return user


def _ensure_email_free(email: str, user_id: Optional[int] = None) -> None:
    existing = dynamo.get_user_by_email(email)
    if existing and existing["id"] != user_id:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Email already exists", "EMAIL_EXISTS")


@router.get("")
def list_or_get_users(user_id: Optional[int] = Query(None, alias="id")):
    if user_id is not None:
        return UserPublic(**_get_user_or_404(user_id))
    return [UserPublic(**user) for user in dynamo.list_users()]


@router.get("/{user_id}", response_model=UserPublic)
def get_user(user_id: int):
    return UserPublic(**_get_user_or_404(user_id))


@router.post("", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def create_user(user: UserCreate):
    email = user.email.strip().lower()
    _ensure_email_free(email)

    user_db = UserInDB(
        id=dynamo.next_id("users"),
        name=user.name,
        email=email,
        password_hash=get_password_hash(user.password),
        balance=user.balance,
        avatar=user.avatar,
    )
    if not dynamo.put_user(user_db.model_dump()):
        raise ApiError(500, "Error saving user", "DATABASE_ERROR")

    logger.info(f"Created user {user_db.id}")
    return UserPublic(**user_db.model_dump())


def _apply_user_update(user_id: int, user_update: UserUpdate) -> UserPublic:
    _get_user_or_404(user_id)
    updates = user_update.model_dump(exclude_unset=True)

    if "email" in updates:
        updates["email"] = updates["email"].strip().lower()
        _ensure_email_free(updates["email"], user_id)
    if "password" in updates:
        updates["password_hash"] = get_password_hash(updates.pop("password"))
    updates["updated_at"] = datetime.utcnow().isoformat()

    updated = dynamo.update_user(user_id, updates)
    if not updated:
        raise ApiError(500, "Error updating user", "DATABASE_ERROR")
    return UserPublic(**updated)


@router.put("", response_model=UserPublic)
def update_user_by_query(user_update: UserUpdate, user_id: int = Query(..., alias="id")):
    return _apply_user_update(user_id, user_update)


@router.put("/{user_id}", response_model=UserPublic)
def update_user(user_id: int, user_update: UserUpdate):
    return _apply_user_update(user_id, user_update)


def _delete_user(user_id: int) -> dict:
    _get_user_or_404(user_id)
    deleted = dynamo.delete_user(user_id)
    if not deleted:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")
    # Transactions, budgets and goals are left in place; no cascade is defined.
    return {"message": "User deleted successfully", "user": UserPublic(**deleted)}


@router.delete("")
def delete_user_by_query(user_id: int = Query(..., alias="id")):
    return _delete_user(user_id)


@router.delete("/{user_id}")
def delete_user(user_id: int):
    return _delete_user(user_id)
