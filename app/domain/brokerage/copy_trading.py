"""
Copy-trading rules.

Decides which trades propagate to followers, how large each mirrored
order is, and how the trader's follower count moves when a
relationship changes status. Pure domain logic, no IO.
"""

from decimal import Decimal

from app.domain.brokerage.entities import (
    CopyRelationship,
    CopyStatus,
    NewTrade,
    Trade,
    TradeStatus,
)
from app.domain.brokerage.errors import InvalidAllocationError
from app.domain.brokerage.ledger import to_currency, to_quantity

# Originals are generation 0; their copies are generation 1 and never
# spawn further copies.
MAX_COPY_GENERATION = 1

MAX_ALLOCATION = Decimal("100")
DEFAULT_ALLOCATION = Decimal("100.00")


def can_fan_out(trade: Trade) -> bool:
    """Return True if executing ``trade`` should create follower copies."""
    return trade.generation + 1 <= MAX_COPY_GENERATION


def validate_allocation(allocation: Decimal) -> Decimal:
    """Return the allocation quantized to 2 dp if it lies in (0, 100]."""
    value = to_currency(allocation)
    if value <= 0 or value > MAX_ALLOCATION:
        raise InvalidAllocationError(allocation)
    return value


def follower_quantity(amount: Decimal, allocation_percentage: Decimal) -> Decimal:
    """Quantity mirrored for a follower: ``amount * allocation / 100``."""
    return to_quantity(amount * allocation_percentage / Decimal("100"))


def build_copy_order(trade: Trade, relationship: CopyRelationship) -> NewTrade:
    """Build the pending follower order mirroring an executed original.

    Same asset, direction and recorded price; quantity scaled by the
    relationship's allocation percentage.

    Raises:
        ValueError: If ``trade`` is itself a copy.
    """
    if not can_fan_out(trade):
        raise ValueError(
            f"Trade {trade.id} is generation {trade.generation} and cannot be copied"
        )
    return NewTrade(
        user_id=relationship.follower_id,
        asset_id=trade.asset_id,
        direction=trade.direction,
        amount=follower_quantity(trade.amount, relationship.allocation_percentage),
        price=trade.price,
        status=TradeStatus.PENDING,
        copied_from_trade_id=trade.id,
    )


def follower_delta(previous: CopyStatus | None, current: CopyStatus | None) -> int:
    """Change in a trader's follower count for a relationship transition.

    ``None`` stands for "no relationship" (before creation, after deletion).
    """
    was_active = previous is CopyStatus.ACTIVE
    is_active = current is CopyStatus.ACTIVE
    return int(is_active) - int(was_active)
