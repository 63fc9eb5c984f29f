"""Pydantic request/response schemas for tc_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

import re
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from src.tc_common.enums import Role

_EIN_RE = re.compile(r"^\d{2}-\d{7}$")

# ADMIN accounts are seeded by migration, never self-registered
_SELF_SERVICE_ROLES = {Role.COMPANY, Role.ACCOUNTANT, Role.BROKER}


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(None, max_length=128)
    role: Role = Role.COMPANY

    # COMPANY registrations only
    company_legal_name: str | None = Field(None, min_length=2, max_length=255)
    ein: str | None = None
    state: str | None = Field(None, min_length=2, max_length=2)
    tax_liability_usd: Decimal | None = Field(None, ge=0)
    target_close_year: int | None = None

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """Enforce: at least one uppercase, one lowercase, one digit."""
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v

    @field_validator("role")
    @classmethod
    def self_service_role(cls, v: Role) -> Role:
        if v not in _SELF_SERVICE_ROLES:
            raise ValueError("Role cannot be self-registered")
        return v

    @field_validator("ein")
    @classmethod
    def ein_format(cls, v: str | None) -> str | None:
        if v is not None and not _EIN_RE.match(v):
            raise ValueError("EIN must look like 12-3456789")
        return v

    @field_validator("state")
    @classmethod
    def state_upper(cls, v: str | None) -> str | None:
        return v.upper() if v else v

    @field_validator("target_close_year")
    @classmethod
    def close_year_range(cls, v: int | None) -> int | None:
        if v is not None and not (2000 <= v <= date.today().year + 10):
            raise ValueError("target_close_year out of range")
        return v

    @model_validator(mode="after")
    def company_fields_required(self) -> "RegisterRequest":
        if self.role == Role.COMPANY:
            missing = [
                f for f in ("company_legal_name", "ein", "state") if getattr(self, f) is None
            ]
            if missing:
                raise ValueError(f"Company registration requires: {', '.join(missing)}")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    """Minimal user info embedded in responses."""

    user_id: str
    email: str
    name: str | None
    role: str
    company_id: str | None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    role: str
    company_id: str | None
    broker_id: str | None = None
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800  # 30 minutes in seconds
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800
