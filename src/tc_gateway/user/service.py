"""User domain service: register, login, refresh.

Register inserts the user and, depending on role, its Company or Broker row
in one transaction. Audit entries are written after the commit.
"""

from dataclasses import dataclass

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tc_audit.application.writer import AuditWriter, audit_writer
from src.tc_common.database import atomic
from src.tc_common.enums import (
    AuditAction,
    AuditEntity,
    CompanyStatus,
    Role,
    VerificationStatus,
)
from src.tc_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    ValidationError,
)
from src.tc_common.id_generator import generate_id
from src.tc_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.tc_gateway.auth.password import hash_password, verify_password
from src.tc_gateway.user.db_models import UserModel
from src.tc_gateway.user.schemas import RegisterRequest

_EIN_TAKEN_SQL = text("SELECT 1 FROM companies WHERE ein = :ein")

_INSERT_COMPANY_SQL = text("""
    INSERT INTO companies
        (id, legal_name, ein, state, contact_email, tax_liability_usd,
         target_close_year, status, verification_status)
    VALUES
        (:id, :legal_name, :ein, :state, :contact_email, :tax_liability_usd,
         :target_close_year, :status, :verification_status)
""")

_INSERT_BROKER_SQL = text("""
    INSERT INTO brokers (id, name, contact_email, user_id, verification_status)
    VALUES (:id, :name, :contact_email, :user_id, :verification_status)
""")


@dataclass
class Registration:
    user: UserModel
    broker_id: str | None = None


class UserService:
    """Stateless service: instantiate once, reuse across requests."""

    def __init__(self, audit: AuditWriter | None = None) -> None:
        self._audit = audit or audit_writer

    async def register(
        self, db: AsyncSession, req: RegisterRequest, ip: str | None = None
    ) -> Registration:
        email = req.email.lower()
        async with atomic(db):
            # DB UNIQUE constraints are the final guard
            result = await db.execute(select(UserModel).where(UserModel.email == email))
            if result.scalar_one_or_none() is not None:
                raise EmailExistsError()

            company_id: str | None = None
            if req.role == Role.COMPANY:
                if (await db.execute(_EIN_TAKEN_SQL, {"ein": req.ein})).first() is not None:
                    raise ValidationError("EIN already registered")
                company_id = generate_id("CO")
                await db.execute(
                    _INSERT_COMPANY_SQL,
                    {
                        "id": company_id,
                        "legal_name": req.company_legal_name,
                        "ein": req.ein,
                        "state": req.state,
                        "contact_email": email,
                        "tax_liability_usd": req.tax_liability_usd,
                        "target_close_year": req.target_close_year,
                        "status": CompanyStatus.ACTIVE.value,
                        "verification_status": VerificationStatus.PENDING.value,
                    },
                )

            user = UserModel(
                email=email,
                name=req.name,
                password_hash=hash_password(req.password),
                role=req.role.value,
                company_id=company_id,
                is_active=True,
            )
            db.add(user)
            await db.flush()  # Get user.id / created_at without committing
            await db.refresh(user)

            broker_id: str | None = None
            if req.role == Role.BROKER:
                broker_id = generate_id("BRK")
                await db.execute(
                    _INSERT_BROKER_SQL,
                    {
                        "id": broker_id,
                        "name": req.name or email,
                        "contact_email": email,
                        "user_id": str(user.id),
                        "verification_status": VerificationStatus.PENDING.value,
                    },
                )

        await self._audit.write(
            str(user.id),
            email,
            AuditAction.REGISTER.value,
            AuditEntity.USER.value,
            entity_id=str(user.id),
            details={"role": req.role.value, "broker_id": broker_id},
            company_id=company_id,
            ip=ip,
        )
        return Registration(user=user, broker_id=broker_id)

    async def login(
        self, db: AsyncSession, email: str, password: str, ip: str | None = None
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        Unknown email and wrong password both raise InvalidCredentialsError
        so callers cannot enumerate accounts.
        """
        email = email.lower()
        result = await db.execute(select(UserModel).where(UserModel.email == email))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            await self._audit.write(
                str(user.id) if user else None,
                email,
                AuditAction.LOGIN_FAILED.value,
                AuditEntity.USER.value,
                entity_id=str(user.id) if user else None,
                ip=ip,
            )
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        await self._audit.write(
            str(user.id),
            user.email,
            AuditAction.LOGIN.value,
            AuditEntity.USER.value,
            entity_id=str(user.id),
            company_id=user.company_id,
            ip=ip,
        )
        return (
            user,
            create_access_token(str(user.id), user.role),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, db: AsyncSession, refresh_token: str) -> str:
        """Validate refresh token and return a new access token.

        The role claim is re-read from the users table, so a role change
        takes effect on the next refresh.
        """
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id = str(payload["sub"])
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None or not user.is_active:
            raise AccountDisabledError()
        return create_access_token(user_id, user.role)
