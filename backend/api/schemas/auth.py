"""
Identity boundary schemas: reader sign-up, login and the caller's profile.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator, model_validator

from core.domain.user import UserRole
from core.security.password import BCRYPT_MAX_BYTES

PASSWORD_MIN_LENGTH = 8

# (description, check) pairs; each must hold for at least one character
_PASSWORD_CHARACTER_RULES = (
    ("uppercase letter", str.isupper),
    ("lowercase letter", str.islower),
    ("digit", str.isdigit),
)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


class RegisterRequest(BaseModel):
    """Sign-up for a reader account. Staff roles are granted out of band."""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        missing = [label for label, check in _PASSWORD_CHARACTER_RULES if not any(check(c) for c in v)]
        if missing:
            raise ValueError(f"Password needs at least one {', '.join(missing)}")
        return v

    @model_validator(mode="after")
    def password_not_email(self) -> "RegisterRequest":
        mailbox = self.email.split("@", 1)[0].lower()
        if len(mailbox) >= 4 and mailbox in self.password.lower():
            raise ValueError("Password must not contain the email address")
        return self


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserResponse(BaseModel):
    """The caller's profile with what their role lets them do with content."""

    id: str
    email: str
    name: str
    role: UserRole
    status: str
    created_at: datetime
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def can_author(self) -> bool:
        return self.role.at_least(UserRole.CONTRIBUTOR)

    @computed_field
    @property
    def can_review(self) -> bool:
        return self.role.at_least(UserRole.MANAGER)
