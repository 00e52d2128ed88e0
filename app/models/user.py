from pydantic import EmailStr, Field, StringConstraints, field_validator
from typing import Annotated, Optional
from datetime import datetime

from app.models.base import CamelModel, reject_null

# Passwords are opaque: never trimmed, compared exactly as sent.
Password = Annotated[str, StringConstraints(strip_whitespace=False, min_length=1)]


def reject_blank_password(value):
    if value is not None and not value.strip():
        raise ValueError("password may not be blank")
    return value


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: Password
    balance: float = 0.0
    avatar: Optional[str] = None

    check_password = field_validator("password")(reject_blank_password)


class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[Password] = None
    balance: Optional[float] = None
    avatar: Optional[str] = None

    check_not_null = field_validator("name", "email", "password", "balance", mode="before")(reject_null)
    check_password = field_validator("password")(reject_blank_password)


class UserLogin(CamelModel):
    email: Optional[str] = None
    password: Optional[Annotated[str, StringConstraints(strip_whitespace=False)]] = None


class UserInDB(CamelModel):
    id: int
    name: str
    email: str
    password_hash: str
    balance: float = 0.0
    avatar: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())


class UserPublic(CamelModel):
    id: int
    name: str
    email: str
    balance: float
    avatar: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None
