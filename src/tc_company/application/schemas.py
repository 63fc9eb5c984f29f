"""Pydantic schemas for companies, accountant links and brokers."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.tc_common.enums import VerificationStatus
from src.tc_company.domain.models import Accountant, Broker, Company


class CompanyResponse(BaseModel):
    id: str
    legal_name: str
    ein: str
    state: str
    contact_email: str | None
    tax_liability_usd: Decimal | None
    target_close_year: int | None
    status: str
    verification_status: str
    verification_note: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, c: Company) -> "CompanyResponse":
        return cls(
            id=c.id,
            legal_name=c.legal_name,
            ein=c.ein,
            state=c.state,
            contact_email=c.contact_email,
            tax_liability_usd=c.tax_liability_usd,
            target_close_year=c.target_close_year,
            status=c.status,
            verification_status=c.verification_status,
            verification_note=c.verification_note,
            created_at=c.created_at.isoformat() if c.created_at else None,
        )


class CompanyListResponse(BaseModel):
    items: list[CompanyResponse]


class VerifyCompanyRequest(BaseModel):
    status: VerificationStatus
    note: str | None = Field(None, max_length=1000)


class AccountantLinkRequest(BaseModel):
    accountant_id: str = Field(..., min_length=1)
    company_id: str = Field(..., min_length=1)


class AccountantLinkResponse(BaseModel):
    accountant_id: str
    company_id: str
    linked: bool
    changed: bool


class AccountantResponse(BaseModel):
    id: str
    email: str
    name: str | None
    client_count: int

    @classmethod
    def from_domain(cls, a: Accountant) -> "AccountantResponse":
        return cls(id=a.id, email=a.email, name=a.name, client_count=a.client_count)


class BrokerResponse(BaseModel):
    id: str
    name: str
    contact_email: str | None
    user_id: str | None
    verification_status: str
    created_at: str | None

    @classmethod
    def from_domain(cls, b: Broker) -> "BrokerResponse":
        return cls(
            id=b.id,
            name=b.name,
            contact_email=b.contact_email,
            user_id=b.user_id,
            verification_status=b.verification_status,
            created_at=b.created_at.isoformat() if b.created_at else None,
        )


class VerifyBrokerRequest(BaseModel):
    status: VerificationStatus = VerificationStatus.VERIFIED
