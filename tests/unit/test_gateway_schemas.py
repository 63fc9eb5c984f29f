"""Unit tests for tc_gateway Pydantic schemas."""

import pytest
from pydantic import ValidationError

from src.tc_common.enums import Role
from src.tc_gateway.user.schemas import RegisterRequest

_COMPANY = {
    "email": "cfo@acme.example.com",
    "password": "SecureP4ss",
    "company_legal_name": "Acme Holdings LLC",
    "ein": "12-3456789",
    "state": "ca",
}


class TestRegisterRequest:
    def test_valid_company(self) -> None:
        req = RegisterRequest(**_COMPANY)
        assert req.role == Role.COMPANY
        assert req.state == "CA"

    def test_company_fields_required(self) -> None:
        with pytest.raises(ValidationError, match="company_legal_name"):
            RegisterRequest(email="a@example.com", password="SecureP4ss")

    def test_accountant_needs_no_company(self) -> None:
        req = RegisterRequest(email="cpa@example.com", password="SecureP4ss", role=Role.ACCOUNTANT)
        assert req.company_legal_name is None

    def test_admin_cannot_self_register(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="root@example.com", password="SecureP4ss", role=Role.ADMIN)

    @pytest.mark.parametrize("ein", ["123456789", "1-23456789", "12-345678a"])
    def test_bad_ein(self, ein: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(**{**_COMPANY, "ein": ein})

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(**{**_COMPANY, "email": "not-an-email"})

    @pytest.mark.parametrize("password", ["Ab1", "alllower1", "ALLUPPER1", "NoDigitPass"])
    def test_password_rules(self, password: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(**{**_COMPANY, "password": password})

    def test_close_year_range(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(**{**_COMPANY, "target_close_year": 1999})
