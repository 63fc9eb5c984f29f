"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    COMPANY = "COMPANY"
    ACCOUNTANT = "ACCOUNTANT"
    BROKER = "BROKER"


class CreditType(str, Enum):
    ITC = "ITC"
    PTC = "PTC"
    C45Q = "45Q"
    C48C = "48C"
    C48E = "48E"
    OTHER = "OTHER"


class LotStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class HoldStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CONSUMED = "CONSUMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Purchase order payment status."""
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    PAID_TEST = "PAID_TEST"
    CANCELED = "CANCELED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# Orders in these statuses count toward volume and client summaries
COMPLETED_PAYMENT_STATUSES: frozenset[str] = frozenset(
    {PaymentStatus.PAID.value, PaymentStatus.PAID_TEST.value}
)

# Orders in these statuses have released their inventory back to the lot
RELEASED_PAYMENT_STATUSES: frozenset[str] = frozenset(
    {
        PaymentStatus.CANCELED.value,
        PaymentStatus.FAILED.value,
        PaymentStatus.REFUNDED.value,
    }
)


class BrokerStatus(str, Enum):
    """Post-payment compliance review: independent of PaymentStatus."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    NEEDS_INFO = "NEEDS_INFO"
    REJECTED = "REJECTED"


class CompanyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    BLOCKED = "BLOCKED"


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class UsdcPaymentStatus(str, Enum):
    SUBMITTED = "SUBMITTED"


class AuditAction(str, Enum):
    REGISTER = "REGISTER"
    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DEACTIVATE = "DEACTIVATE"
    HOLD_CANCELLED = "HOLD_CANCELLED"
    HOLD_EXPIRED = "HOLD_EXPIRED"
    PAYMENT_INITIATED = "PAYMENT_INITIATED"
    PAYMENT_SUBMITTED = "PAYMENT_SUBMITTED"
    PAYMENT_PROCESSING = "PAYMENT_PROCESSING"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_CANCELED = "PAYMENT_CANCELED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"
    UPDATE_BROKER_STATUS = "UPDATE_BROKER_STATUS"
    VERIFY_COMPANY = "VERIFY_COMPANY"
    REJECT_COMPANY = "REJECT_COMPANY"
    VERIFY_BROKER = "VERIFY_BROKER"
    BLOCK_COMPANY = "BLOCK_COMPANY"
    UNBLOCK_COMPANY = "UNBLOCK_COMPANY"
    ARCHIVE_COMPANY = "ARCHIVE_COMPANY"
    UNARCHIVE_COMPANY = "UNARCHIVE_COMPANY"
    LINK_ACCOUNTANT = "LINK_ACCOUNTANT"
    UNLINK_ACCOUNTANT = "UNLINK_ACCOUNTANT"
    EXPORT = "EXPORT"
    IMPORT = "IMPORT"


class AuditEntity(str, Enum):
    USER = "USER"
    COMPANY = "COMPANY"
    BROKER = "BROKER"
    CREDIT_INVENTORY = "CREDIT_INVENTORY"
    HOLD = "HOLD"
    PURCHASE_ORDER = "PURCHASE_ORDER"
    PAYMENT = "PAYMENT"
    ACCOUNTANT_LINK = "ACCOUNTANT_LINK"
