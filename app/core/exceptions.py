"""Custom exception classes for the application.

Provides a hierarchy of exceptions for consistent error handling
across the application with appropriate HTTP status codes.
"""

from decimal import Decimal


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found exception.

    Raised when a wallet, transaction or bank account reference
    does not resolve.
    """

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} with id {identifier} not found",
            status_code=404,
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(AppException):
    """Resource conflict exception.

    Raised when there's a conflict such as a consumer that already
    owns a wallet.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=409)


class ValidationError(AppException):
    """Input validation failed exception.

    Raised for malformed amounts, unsupported currencies, malformed
    destination addresses and amounts outside the withdrawal limits.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=422)


class InsufficientBalanceError(AppException):
    """Insufficient wallet balance exception.

    Raised when a debit would take a wallet balance below zero.
    """

    def __init__(
        self,
        wallet_id: str,
        currency: str,
        required: Decimal,
        available: Decimal,
    ) -> None:
        super().__init__(
            message=(
                f"Insufficient {currency.upper()} balance in wallet {wallet_id}: "
                f"required {required}, available {available}"
            ),
            status_code=400,
        )
        self.wallet_id = wallet_id
        self.currency = currency
        self.required = required
        self.available = available


class ConcurrencyError(AppException):
    """Concurrent modification detected exception.

    Raised when the version check on a wallet update finds that the row
    was modified by another transaction between read and update.
    """

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=(
                f"{resource} {identifier} was modified by another transaction. "
                "Please retry."
            ),
            status_code=409,
        )
        self.resource = resource
        self.identifier = identifier


class InvalidTransitionError(ConflictError):
    """Transaction status transition not allowed.

    Only pending transactions may move to completed or failed.
    """

    def __init__(self, transaction_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Transaction {transaction_id} cannot move from {current} to {target}"
        )
        self.transaction_id = transaction_id
        self.current = current
        self.target = target


class PersistenceError(AppException):
    """Storage read or write failed.

    The enclosing database transaction has been rolled back when this
    is raised.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Ledger storage failure during {operation}",
            status_code=503,
        )
        self.operation = operation
