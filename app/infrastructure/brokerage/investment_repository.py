"""
Adapters: Investment plan and investment repositories.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import (
    Investment,
    InvestmentPlan,
    InvestmentStatus,
    PlanStatus,
)
from app.domain.brokerage.ledger import to_currency
from app.domain.brokerage.ports import InvestmentPlanRepository, InvestmentRepository
from app.infrastructure.brokerage.models import InvestmentPlanRow, InvestmentRow


def _to_plan(row: InvestmentPlanRow) -> InvestmentPlan:
    return InvestmentPlan(
        id=row.id,
        name=row.name,
        description=row.description,
        min_amount=to_currency(row.min_amount),
        max_amount=to_currency(row.max_amount) if row.max_amount is not None else None,
        roi_percentage=to_currency(row.roi_percentage),
        lock_period_days=row.lock_period_days,
        features=list(row.features or []),
        status=PlanStatus(row.status),
    )


def _to_investment(row: InvestmentRow) -> Investment:
    return Investment(
        id=row.id,
        user_id=row.user_id,
        plan_id=row.plan_id,
        amount=to_currency(row.amount),
        status=InvestmentStatus(row.status),
        start_date=row.start_date,
        end_date=row.end_date,
    )


class InvestmentPlanRepositoryAdapter(InvestmentPlanRepository):
    """SQLAlchemy implementation of the investment plan catalogue."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, plan_id: int) -> Optional[InvestmentPlan]:
        row = self._session.get(InvestmentPlanRow, plan_id)
        return _to_plan(row) if row else None

    def list_all(self, active_only: bool = True) -> list[InvestmentPlan]:
        stmt = select(InvestmentPlanRow)
        if active_only:
            stmt = stmt.where(InvestmentPlanRow.status == PlanStatus.ACTIVE.value)
        rows = self._session.execute(stmt.order_by(InvestmentPlanRow.min_amount)).scalars()
        return [_to_plan(row) for row in rows]

    def add(
        self,
        name: str,
        description: str,
        min_amount: Decimal,
        max_amount: Optional[Decimal],
        roi_percentage: Decimal,
        lock_period_days: int,
        features: list[str],
    ) -> InvestmentPlan:
        row = InvestmentPlanRow(
            name=name,
            description=description,
            min_amount=to_currency(min_amount),
            max_amount=to_currency(max_amount) if max_amount is not None else None,
            roi_percentage=to_currency(roi_percentage),
            lock_period_days=lock_period_days,
            features=list(features),
            status=PlanStatus.ACTIVE.value,
        )
        self._session.add(row)
        self._session.flush()
        return _to_plan(row)


class InvestmentRepositoryAdapter(InvestmentRepository):
    """SQLAlchemy implementation of the investment repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, investment_id: int) -> Optional[Investment]:
        row = self._session.get(InvestmentRow, investment_id)
        return _to_investment(row) if row else None

    def list_by_user(self, user_id: int) -> list[Investment]:
        rows = self._session.execute(
            select(InvestmentRow)
            .where(InvestmentRow.user_id == user_id)
            .order_by(InvestmentRow.start_date.desc(), InvestmentRow.id.desc())
        ).scalars()
        return [_to_investment(row) for row in rows]

    def add(
        self,
        user_id: int,
        plan_id: int,
        amount: Decimal,
        status: InvestmentStatus,
        start_date: datetime,
        end_date: datetime,
    ) -> Investment:
        row = InvestmentRow(
            user_id=user_id,
            plan_id=plan_id,
            amount=to_currency(amount),
            status=status.value,
            start_date=start_date,
            end_date=end_date,
        )
        self._session.add(row)
        self._session.flush()
        return _to_investment(row)
