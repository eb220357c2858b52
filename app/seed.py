"""
Demo and reference data for a fresh ledger store.

Seeding goes through the regular use cases, never straight to the tables.
Running it twice is harmless: existing accounts, assets, traders and
plans (matched by name) are left alone.
"""

import logging
from decimal import Decimal

from app.application.brokerage.create_asset import CreateAssetUseCase
from app.application.brokerage.create_investment_plan import CreateInvestmentPlanUseCase
from app.application.brokerage.dtos import (
    CreateAssetCommand,
    CreateInvestmentPlanCommand,
    OpenAccountCommand,
    RegisterTraderCommand,
)
from app.application.brokerage.open_account import OpenAccountUseCase
from app.application.brokerage.register_trader import RegisterTraderUseCase
from app.domain.brokerage.entities import AssetType, User, UserRole
from app.domain.brokerage.errors import DuplicateError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)

ACCOUNTS = [
    ("admin", "admin@example.com", "Administrator", UserRole.ADMIN),
    ("demo", "demo@example.com", "John Smith", UserRole.USER),
]

ASSETS = [
    ("AAPL", "Apple Inc.", AssetType.STOCK, "182.63"),
    ("MSFT", "Microsoft Corporation", AssetType.STOCK, "334.27"),
    ("AMZN", "Amazon.com Inc.", AssetType.STOCK, "129.12"),
    ("GOOGL", "Alphabet Inc.", AssetType.STOCK, "134.99"),
    ("TSLA", "Tesla Inc.", AssetType.STOCK, "238.45"),
    ("NVDA", "NVIDIA Corporation", AssetType.STOCK, "487.98"),
    ("BTC/USD", "Bitcoin", AssetType.CRYPTO, "38245.86"),
    ("ETH/USD", "Ethereum", AssetType.CRYPTO, "2256.78"),
    ("SOL/USD", "Solana", AssetType.CRYPTO, "76.32"),
    ("EUR/USD", "Euro/US Dollar", AssetType.FOREX, "1.0742"),
    ("GBP/USD", "British Pound/US Dollar", AssetType.FOREX, "1.2654"),
    ("USD/JPY", "US Dollar/Japanese Yen", AssetType.FOREX, "153.67"),
]

TRADERS = [
    ("michael", "michael@example.com", "Michael Thompson",
     "Professional trader with 10 years of experience"),
    ("sarah", "sarah@example.com", "Sarah Johnson", "Cryptocurrency specialist"),
    ("robert", "robert@example.com", "Robert Kim", "Forex and commodities expert"),
]

PLANS = [
    ("Starter", "Perfect for beginners", "100", "999", "7.0", "30 days",
     ["24/7 Support", "30-day lock period"]),
    ("Premium", "For intermediate traders", "1000", "9999", "11.0", "15 days",
     ["Priority Support", "15-day lock period"]),
    ("Elite", "For professional investors", "10000", None, "16.5", "1 week",
     ["Dedicated Account Manager", "7-day lock period"]),
]


def _open_or_get(
    uow_factory: UnitOfWorkFactory, username: str, email: str, full_name: str, role: UserRole
) -> User:
    try:
        return OpenAccountUseCase(uow_factory).execute(
            OpenAccountCommand(username=username, email=email, full_name=full_name, role=role)
        )
    except DuplicateError:
        with uow_factory() as uow:
            return uow.users.get_by_username(username)


def seed_demo_data(uow_factory: UnitOfWorkFactory) -> dict[str, int]:
    """Create demo accounts, assets, traders and investment plans.

    Returns:
        Number of newly created records per kind.
    """
    created = {"accounts": 0, "assets": 0, "traders": 0, "plans": 0}

    for username, email, full_name, role in ACCOUNTS:
        with uow_factory() as uow:
            exists = uow.users.get_by_username(username) is not None
        if not exists:
            _open_or_get(uow_factory, username, email, full_name, role)
            created["accounts"] += 1

    create_asset = CreateAssetUseCase(uow_factory)
    for symbol, name, asset_type, price in ASSETS:
        try:
            create_asset.execute(
                CreateAssetCommand(
                    symbol=symbol, name=name, asset_type=asset_type, price=Decimal(price)
                )
            )
        except DuplicateError:
            continue
        created["assets"] += 1

    register_trader = RegisterTraderUseCase(uow_factory)
    for username, email, full_name, bio in TRADERS:
        user = _open_or_get(uow_factory, username, email, full_name, UserRole.USER)
        try:
            register_trader.execute(RegisterTraderCommand(user_id=user.id, bio=bio))
        except DuplicateError:
            continue
        created["traders"] += 1

    with uow_factory() as uow:
        existing_plans = {p.name for p in uow.investment_plans.list_all(active_only=False)}
    create_plan = CreateInvestmentPlanUseCase(uow_factory)
    for name, description, minimum, maximum, roi, lock_period, features in PLANS:
        if name in existing_plans:
            continue
        create_plan.execute(
            CreateInvestmentPlanCommand(
                name=name,
                description=description,
                min_amount=Decimal(minimum),
                max_amount=Decimal(maximum) if maximum else None,
                roi_percentage=Decimal(roi),
                lock_period=lock_period,
                features=features,
            )
        )
        created["plans"] += 1

    logger.info("Seed complete: %s", created)
    return created
