from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    role: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=255, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(min_length=8)
    confirm_password: str
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)

    class Config:
        str_strip_whitespace = True

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Password confirmation does not match password")
        return self


class ProfileUpdateRequest(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    current_password: str = Field(min_length=1)


class RoleUpdateRequest(BaseModel):
    role: Literal["user", "admin"]
