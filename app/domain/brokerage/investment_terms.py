"""
Investment plan terms: lock periods, amount limits, maturity dates.
"""

import re
from datetime import datetime, timedelta
from decimal import Decimal

from app.domain.brokerage.entities import InvestmentPlan
from app.domain.brokerage.errors import InvestmentLimitError
from app.domain.brokerage.ledger import to_currency

_UNIT_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
}

_PERIOD_PATTERN = re.compile(r"(\d+)\s*(day|week|month|year)s?", re.IGNORECASE)


def parse_lock_period(value: int | str) -> int:
    """Convert a lock period to a number of days.

    Accepts an integer day count, a numeric string, or a phrase such
    as ``"3 months"`` or ``"1 year"``. Months count as 30 days and
    years as 365. Unparseable or non-positive values fall back to 1 day.
    """
    if isinstance(value, int):
        days = value
    else:
        text = value.strip()
        match = _PERIOD_PATTERN.search(text)
        if match:
            days = int(match.group(1)) * _UNIT_DAYS[match.group(2).lower()]
        else:
            try:
                days = int(text)
            except ValueError:
                return 1
    return days if days > 0 else 1


def check_plan_limits(plan: InvestmentPlan, amount: Decimal) -> Decimal:
    """Validate ``amount`` against the plan's minimum and maximum.

    A missing or zero maximum means the plan has no upper limit.

    Returns:
        The amount quantized to 2 dp.

    Raises:
        InvestmentLimitError: If the amount is outside the limits.
    """
    value = to_currency(amount)
    maximum = plan.max_amount if plan.max_amount else None
    if value < plan.min_amount or (maximum is not None and value > maximum):
        raise InvestmentLimitError(value, plan.min_amount, maximum)
    return value


def maturity_date(start: datetime, plan: InvestmentPlan) -> datetime:
    return start + timedelta(days=plan.lock_period_days)
