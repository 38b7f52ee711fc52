"""Pydantic schemas for user account routes."""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class _UserModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _as_list(value: Union[List[str], str, None]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return list(value)


class SignupRequest(_UserModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    name: Optional[str] = None
    number: Optional[str] = None
    usertype: List[str] = Field(default_factory=list)
    industry: List[str] = Field(default_factory=list)
    purpose: List[str] = Field(default_factory=list)

    @field_validator("usertype", "industry", "purpose", mode="before")
    @classmethod
    def _wrap_single_value(cls, value):
        return _as_list(value)


class LoginRequest(_UserModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(_UserModel):
    email: Optional[str] = None


class ResetPasswordRequest(_UserModel):
    token: Optional[str] = None
    new_password: Optional[str] = None


class UserResponse(_UserModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    name: str
    number: str
    usertype: List[str]
    industry: List[str]
    purpose: List[str]
    role: str


class AuthResponse(_UserModel):
    user: UserResponse
    token: str


class ContactResponse(_UserModel):
    email: str


class MessageResponse(_UserModel):
    message: str
