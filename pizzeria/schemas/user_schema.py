from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from . import ORMModel, UserRole


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str = Field("", alias="firstName", max_length=100)
    last_name: str = Field("", alias="lastName", max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    marketing_opt_in: bool = Field(True, alias="marketingOptIn")

    model_config = {"populate_by_name": True}

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, alias="firstName", max_length=100)
    last_name: Optional[str] = Field(None, alias="lastName", max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    marketing_opt_in: Optional[bool] = Field(None, alias="marketingOptIn")

    model_config = {"populate_by_name": True}


class UserRoleUpdate(BaseModel):
    role: UserRole
    is_active: Optional[bool] = Field(None, alias="isActive")

    model_config = {"populate_by_name": True}


class UserOut(ORMModel):
    id: int
    username: str
    email: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    phone: Optional[str] = None
    address: Optional[str] = None
    role: str
    is_active: bool = Field(True, alias="isActive")
    marketing_opt_in: bool = Field(True, alias="marketingOptIn")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class RegisterResponse(AuthResponse):
    signup_points_awarded: int = Field(0, alias="signupPointsAwarded")

    model_config = {"populate_by_name": True}
