"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Company/Access
  3xxx: Inventory
  4xxx: Hold/Order
  5xxx: Payment
  9xxx: System
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UnauthorizedError(AppError):
    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(1001, detail, 401)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1006, detail, 403)


# --- 2xxx: Company/Access ---

class CompanyNotFoundError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(2001, f"Company not found: {company_id}", 404)


class CompanyNotActiveError(AppError):
    def __init__(self, company_id: str) -> None:
        super().__init__(2002, f"Company is not active: {company_id}", 422)


class AccountantNotFoundError(AppError):
    def __init__(self, accountant_id: str) -> None:
        super().__init__(2003, f"Invalid accountant: {accountant_id}", 422)


class BrokerNotFoundError(AppError):
    def __init__(self, broker_id: str) -> None:
        super().__init__(2004, f"Broker not found: {broker_id}", 404)


class BrokerNotVerifiedError(AppError):
    def __init__(self) -> None:
        super().__init__(2005, "Broker must be verified before listing inventory", 403)


# --- 3xxx: Inventory ---

class LotNotFoundError(AppError):
    def __init__(self, lot_id: str) -> None:
        super().__init__(3001, f"Inventory not found: {lot_id}", 404)


class LotNotActiveError(AppError):
    def __init__(self, lot_id: str) -> None:
        super().__init__(3002, f"Inventory is not available: {lot_id}", 422)


class InsufficientInventoryError(AppError):
    def __init__(self, requested: Decimal, available: Decimal) -> None:
        super().__init__(
            3003,
            f"Insufficient available credits: requested {requested} USD, available {available} USD",
            400,
        )


class BelowMinimumBlockError(AppError):
    def __init__(self, amount: Decimal, min_block: Decimal) -> None:
        super().__init__(
            3004,
            f"Minimum block size is {min_block} USD, got {amount} USD",
            400,
        )


class InventoryInvariantError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3005, f"Inventory invariant violated: {detail}", 422)


# --- 4xxx: Hold/Order ---

class HoldNotFoundError(AppError):
    def __init__(self, hold_id: str) -> None:
        super().__init__(4001, f"Hold not found: {hold_id}", 404)


class HoldNotActiveError(AppError):
    def __init__(self, hold_id: str, status: str) -> None:
        super().__init__(4002, f"Hold {hold_id} is {status}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4003, f"Purchase order not found: {order_id}", 404)


class InvalidStatusTransitionError(AppError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(4004, f"Cannot move purchase order from {current} to {target}", 422)


class HoldMismatchError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4005, f"Hold does not match order: {detail}", 422)


# --- 5xxx: Payment ---

class PaymentSignatureError(AppError):
    def __init__(self, detail: str = "Invalid webhook signature") -> None:
        super().__init__(5001, detail, 400)


class PaymentAmountMismatchError(AppError):
    def __init__(self, expected: Decimal, submitted: Decimal) -> None:
        super().__init__(
            5002,
            f"Payment amount mismatch: expected {expected} USD, submitted {submitted} USD",
            422,
        )


class ExternalServiceError(AppError):
    def __init__(self, service: str, detail: str = "unavailable") -> None:
        super().__init__(5003, f"{service} error: {detail}", 502)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self, retry_after: int = 60) -> None:
        self.retry_after = retry_after
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, detail, 422)


class TransactionFailureError(AppError):
    def __init__(self) -> None:
        super().__init__(9004, "Transaction failed; no changes were applied", 500)
