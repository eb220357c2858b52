"""
Shared fixtures for the brokerage test suite.

Every test gets its own in-memory SQLite ledger (single shared
connection via StaticPool) and a unit-of-work factory bound to it.
Threaded tests use a file-backed ledger instead, so that each thread
gets its own connection and SQLite does the write locking.
"""

from decimal import Decimal
from functools import partial

import pytest
from fastapi.testclient import TestClient

from app.domain.brokerage.entities import (
    Asset,
    AssetType,
    BalanceDirection,
    CopyRelationship,
    InvestmentPlan,
    NotificationType,
    Trader,
    User,
    UserRole,
)
from app.domain.brokerage.ports import NotificationPort
from app.infrastructure.brokerage.database import (
    build_engine,
    build_session_factory,
    init_db,
)
from app.infrastructure.brokerage.unit_of_work import SqlAlchemyUnitOfWork
from app.main import create_app
from app.shared.security.rate_limiting import limiter


class RecordingNotifier(NotificationPort):
    """Notifier that keeps every message in memory."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, str, str]] = []
        self.types: list[NotificationType] = []

    def notify(
        self,
        user_id: int,
        subject: str,
        message: str,
        notification_type: NotificationType = NotificationType.GENERAL,
    ) -> None:
        self.sent.append((user_id, subject, message))
        self.types.append(notification_type)

    def subjects_for(self, user_id: int) -> list[str]:
        return [subject for uid, subject, _ in self.sent if uid == user_id]


class LedgerFactory:
    """Writes fixture data straight through the repositories."""

    def __init__(self, uow_factory) -> None:
        self._uow_factory = uow_factory
        self._counter = 0

    def user(self, balance: str = "0", username: str | None = None) -> User:
        self._counter += 1
        name = username or f"user{self._counter}"
        with self._uow_factory() as uow:
            user = uow.users.add(name, f"{name}@example.com", name.title(), UserRole.USER)
            if Decimal(balance) > 0:
                user = uow.users.adjust_balance(
                    user.id, Decimal(balance), BalanceDirection.CREDIT
                )
            uow.commit()
        return user

    def asset(self, symbol: str = "AAPL", price: str = "10") -> Asset:
        with self._uow_factory() as uow:
            asset = uow.assets.add(symbol, f"{symbol} Inc.", AssetType.STOCK, Decimal(price))
            uow.commit()
        return asset

    def trader(self, user: User) -> Trader:
        with self._uow_factory() as uow:
            trader = uow.traders.add(user.id, "Test trader")
            uow.commit()
        return trader

    def plan(
        self, minimum: str = "100", maximum: str | None = "1000", days: int = 30
    ) -> InvestmentPlan:
        with self._uow_factory() as uow:
            plan = uow.investment_plans.add(
                name=f"Plan {minimum}",
                description="Test plan",
                min_amount=Decimal(minimum),
                max_amount=Decimal(maximum) if maximum is not None else None,
                roi_percentage=Decimal("7.0"),
                lock_period_days=days,
                features=["Test"],
            )
            uow.commit()
        return plan

    def balance(self, user_id: int) -> Decimal:
        with self._uow_factory() as uow:
            return uow.users.get(user_id).balance

    def followers(self, trader_id: int) -> int:
        with self._uow_factory() as uow:
            return uow.traders.get(trader_id).followers

    def relationship(self, relationship_id: int) -> CopyRelationship | None:
        with self._uow_factory() as uow:
            return uow.copy_relationships.get(relationship_id)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_uow_factory(tmp_path):
    """Unit-of-work factory over a SQLite file, safe to share across threads."""
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db(engine)
    yield partial(SqlAlchemyUnitOfWork, build_session_factory(engine))
    engine.dispose()


@pytest.fixture
def file_ledger(file_uow_factory) -> LedgerFactory:
    return LedgerFactory(file_uow_factory)


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def uow_factory(session_factory):
    return partial(SqlAlchemyUnitOfWork, session_factory)


@pytest.fixture
def ledger(uow_factory) -> LedgerFactory:
    return LedgerFactory(uow_factory)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def api_app():
    app = create_app(database_url="sqlite://")
    limiter.reset()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    with TestClient(api_app) as test_client:
        yield test_client
