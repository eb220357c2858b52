"""
Domain-specific errors for the brokerage bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""

from decimal import Decimal


class BrokerageDomainError(Exception):
    """Base error for all brokerage domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InsufficientBalanceError(BrokerageDomainError):
    """Raised when a debit would drive a user's balance below zero."""

    def __init__(self, user_id: int, required: Decimal, available: Decimal) -> None:
        super().__init__(
            f"Insufficient balance for user {user_id}: "
            f"required {required}, available {available}"
        )
        self.user_id = user_id
        self.required = required
        self.available = available


class InvalidAmountError(BrokerageDomainError):
    """Raised when a monetary amount or quantity is zero or negative."""

    def __init__(self, amount: Decimal) -> None:
        super().__init__(f"Amount must be positive, got {amount}")
        self.amount = amount


class InvalidStateError(BrokerageDomainError):
    """Raised when an entity is not in the state an operation requires."""

    def __init__(self, entity: str, entity_id: int, status: str) -> None:
        super().__init__(f"{entity} {entity_id} is {status}")
        self.entity = entity
        self.entity_id = entity_id
        self.status = status


class EntityNotFoundError(BrokerageDomainError):
    """Raised when a referenced entity does not exist."""

    entity = "Entity"

    def __init__(self, entity_id: int) -> None:
        super().__init__(f"{self.entity} not found: {entity_id}")
        self.entity_id = entity_id


class UserNotFoundError(EntityNotFoundError):
    entity = "User"


class AssetNotFoundError(EntityNotFoundError):
    entity = "Asset"


class TradeNotFoundError(EntityNotFoundError):
    entity = "Trade"


class TraderNotFoundError(EntityNotFoundError):
    entity = "Trader"


class CopyRelationshipNotFoundError(EntityNotFoundError):
    entity = "Copy relationship"


class TransactionNotFoundError(EntityNotFoundError):
    entity = "Transaction"


class InvestmentPlanNotFoundError(EntityNotFoundError):
    entity = "Investment plan"


class KycDocumentNotFoundError(EntityNotFoundError):
    entity = "KYC document"


class WatchlistItemNotFoundError(EntityNotFoundError):
    entity = "Watchlist item"


class NotificationNotFoundError(EntityNotFoundError):
    entity = "Notification"


class InvalidAllocationError(BrokerageDomainError):
    """Raised when a copy allocation percentage is outside (0, 100]."""

    def __init__(self, allocation: Decimal) -> None:
        super().__init__(
            f"Allocation percentage must be within (0, 100], got {allocation}"
        )
        self.allocation = allocation


class SelfCopyError(BrokerageDomainError):
    """Raised when a trader tries to copy their own trades."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} cannot copy their own trader profile")
        self.user_id = user_id


class AlreadyCopyingError(BrokerageDomainError):
    """Raised when a follower already copies the given trader."""

    def __init__(self, follower_id: int, trader_id: int) -> None:
        super().__init__(
            f"User {follower_id} is already copying trader {trader_id}"
        )
        self.follower_id = follower_id
        self.trader_id = trader_id


class InvestmentLimitError(BrokerageDomainError):
    """Raised when an investment amount is outside the plan's limits."""

    def __init__(
        self, amount: Decimal, minimum: Decimal, maximum: Decimal | None
    ) -> None:
        bound = f"{minimum} - {maximum}" if maximum is not None else f">= {minimum}"
        super().__init__(f"Investment amount {amount} outside plan limits ({bound})")
        self.amount = amount
        self.minimum = minimum
        self.maximum = maximum


class DuplicateError(BrokerageDomainError):
    """Raised when a unique business key is already taken."""

    def __init__(self, entity: str, key: str) -> None:
        super().__init__(f"{entity} already exists: {key}")
        self.entity = entity
        self.key = key


class DuplicateAccountError(DuplicateError):
    def __init__(self, key: str) -> None:
        super().__init__("Account", key)


class DuplicateTraderError(DuplicateError):
    def __init__(self, user_id: int) -> None:
        super().__init__("Trader profile", f"user {user_id}")


class DuplicateAssetError(DuplicateError):
    def __init__(self, symbol: str) -> None:
        super().__init__("Asset", symbol)


class DuplicateWatchlistItemError(DuplicateError):
    def __init__(self, user_id: int, asset_id: int) -> None:
        super().__init__("Watchlist item", f"user {user_id}, asset {asset_id}")


class UnsupportedOperationError(BrokerageDomainError):
    """Raised when an operation is requested with a value it does not accept.

    Examples: requesting an ``investment`` transaction directly, or
    reviewing a KYC document with a status other than verified/rejected.
    """

    def __init__(self, operation: str, value: str) -> None:
        super().__init__(f"{operation} does not accept {value!r}")
        self.operation = operation
        self.value = value
