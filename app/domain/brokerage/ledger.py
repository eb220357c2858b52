"""
Ledger rules for the brokerage bounded context.

Pure functions that decide how much money moves and in which
direction. The ledger store applies the result through its single
balance mutation primitive; nothing here performs IO.

Fixed-point scales:
    currency amounts: 2 decimal places
    trade quantities: 8 decimal places
    asset prices:     6 decimal places
"""

from decimal import ROUND_HALF_UP, Decimal

from app.domain.brokerage.entities import (
    BalanceDirection,
    Trade,
    TradeDirection,
    Transaction,
    TransactionType,
)
from app.domain.brokerage.errors import InsufficientBalanceError, InvalidAmountError

CURRENCY_QUANTUM = Decimal("0.01")
QUANTITY_QUANTUM = Decimal("0.00000001")
PRICE_QUANTUM = Decimal("0.000001")

ZERO = Decimal("0.00")


def to_currency(value: Decimal | int | str) -> Decimal:
    """Quantize a value to the stored currency scale."""
    return Decimal(value).quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def to_quantity(value: Decimal | int | str) -> Decimal:
    """Quantize a value to the stored trade quantity scale."""
    return Decimal(value).quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_UP)


def to_price(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def apply_balance_change(
    user_id: int,
    balance: Decimal,
    amount: Decimal,
    direction: BalanceDirection,
) -> Decimal:
    """Return the balance after crediting or debiting ``amount``.

    Args:
        user_id: Owner of the balance, used for error reporting.
        balance: Current stored balance.
        amount: Positive amount to move.
        direction: CREDIT adds, DEBIT subtracts.

    Returns:
        The new balance, quantized to 2 decimal places.

    Raises:
        InvalidAmountError: If ``amount`` is zero or negative.
        InsufficientBalanceError: If a debit would go below zero.
    """
    amount = to_currency(amount)
    if amount <= ZERO:
        raise InvalidAmountError(amount)

    current = to_currency(balance)
    if direction is BalanceDirection.CREDIT:
        return current + amount

    new_balance = current - amount
    if new_balance < ZERO:
        raise InsufficientBalanceError(user_id, required=amount, available=current)
    return new_balance


def trade_cost(trade: Trade) -> Decimal:
    """Total value of a trade at its recorded price (limit-order semantics)."""
    return to_currency(trade.amount * trade.price)


def trade_settlement(trade: Trade) -> tuple[BalanceDirection, Decimal]:
    """Balance effect of executing a trade: buys debit, sells credit."""
    direction = (
        BalanceDirection.DEBIT
        if trade.direction is TradeDirection.BUY
        else BalanceDirection.CREDIT
    )
    return direction, trade_cost(trade)


def transaction_settlement(
    transaction: Transaction,
) -> tuple[BalanceDirection, Decimal]:
    """Balance effect of completing a deposit or withdrawal.

    Raises:
        ValueError: For transaction types that are never settled on
            completion (investments are debited at creation).
    """
    if transaction.transaction_type is TransactionType.DEPOSIT:
        return BalanceDirection.CREDIT, to_currency(transaction.amount)
    if transaction.transaction_type is TransactionType.WITHDRAWAL:
        return BalanceDirection.DEBIT, to_currency(transaction.amount)
    raise ValueError(
        f"Transaction type {transaction.transaction_type.value} has no completion settlement"
    )
