"""
Dependency injection for the brokerage bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the brokerage context.

The session factory and notifier live on ``app.state`` and are set
by ``create_app``; tests may replace ``get_uow_factory`` or
``get_notifier`` through ``app.dependency_overrides``.
"""

from functools import partial

from fastapi import Depends, Request

from app.application.brokerage.add_to_watchlist import AddToWatchlistUseCase
from app.application.brokerage.complete_transaction import CompleteTransactionUseCase
from app.application.brokerage.create_asset import CreateAssetUseCase
from app.application.brokerage.create_investment import CreateInvestmentUseCase
from app.application.brokerage.create_investment_plan import CreateInvestmentPlanUseCase
from app.application.brokerage.execute_trade import ExecuteTradeUseCase
from app.application.brokerage.mark_notifications_read import MarkNotificationsReadUseCase
from app.application.brokerage.open_account import OpenAccountUseCase
from app.application.brokerage.place_order import PlaceOrderUseCase
from app.application.brokerage.register_trader import RegisterTraderUseCase
from app.application.brokerage.remove_from_watchlist import RemoveFromWatchlistUseCase
from app.application.brokerage.request_transaction import RequestTransactionUseCase
from app.application.brokerage.review_kyc_document import ReviewKycDocumentUseCase
from app.application.brokerage.review_transaction import ReviewTransactionUseCase
from app.application.brokerage.start_copying import StartCopyingUseCase
from app.application.brokerage.stop_copying import StopCopyingUseCase
from app.application.brokerage.submit_kyc_document import SubmitKycDocumentUseCase
from app.application.brokerage.update_asset import UpdateAssetUseCase
from app.application.brokerage.update_copy_settings import UpdateCopySettingsUseCase
from app.core.config import settings
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory
from app.infrastructure.brokerage.unit_of_work import SqlAlchemyUnitOfWork


def get_uow_factory(request: Request) -> UnitOfWorkFactory:
    """Return a factory of units of work bound to the app's database."""
    return partial(SqlAlchemyUnitOfWork, request.app.state.session_factory)


def get_notifier(request: Request) -> NotificationPort:
    return request.app.state.notifier


def get_execute_trade_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    notifier: NotificationPort = Depends(get_notifier),
) -> ExecuteTradeUseCase:
    """Build ExecuteTradeUseCase with its infrastructure dependencies."""
    return ExecuteTradeUseCase(uow_factory, notifier=notifier)


def get_place_order_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    executor: ExecuteTradeUseCase = Depends(get_execute_trade_use_case),
) -> PlaceOrderUseCase:
    """Build PlaceOrderUseCase; orders auto-execute when enabled in settings."""
    return PlaceOrderUseCase(
        uow_factory,
        executor=executor if settings.auto_execute_orders else None,
    )


def get_complete_transaction_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    notifier: NotificationPort = Depends(get_notifier),
) -> CompleteTransactionUseCase:
    return CompleteTransactionUseCase(uow_factory, notifier=notifier)


def get_request_transaction_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    notifier: NotificationPort = Depends(get_notifier),
) -> RequestTransactionUseCase:
    return RequestTransactionUseCase(uow_factory, notifier=notifier)


def get_review_transaction_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    notifier: NotificationPort = Depends(get_notifier),
) -> ReviewTransactionUseCase:
    return ReviewTransactionUseCase(uow_factory, notifier=notifier)


def get_start_copying_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    notifier: NotificationPort = Depends(get_notifier),
) -> StartCopyingUseCase:
    return StartCopyingUseCase(uow_factory, notifier=notifier)


def get_stop_copying_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> StopCopyingUseCase:
    return StopCopyingUseCase(uow_factory)


def get_update_copy_settings_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> UpdateCopySettingsUseCase:
    return UpdateCopySettingsUseCase(uow_factory)


def get_create_investment_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    notifier: NotificationPort = Depends(get_notifier),
) -> CreateInvestmentUseCase:
    return CreateInvestmentUseCase(uow_factory, notifier=notifier)


def get_create_investment_plan_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> CreateInvestmentPlanUseCase:
    return CreateInvestmentPlanUseCase(uow_factory)


def get_open_account_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> OpenAccountUseCase:
    return OpenAccountUseCase(uow_factory)


def get_register_trader_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> RegisterTraderUseCase:
    return RegisterTraderUseCase(uow_factory)


def get_create_asset_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> CreateAssetUseCase:
    return CreateAssetUseCase(uow_factory)


def get_submit_kyc_document_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> SubmitKycDocumentUseCase:
    return SubmitKycDocumentUseCase(uow_factory)


def get_review_kyc_document_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    notifier: NotificationPort = Depends(get_notifier),
) -> ReviewKycDocumentUseCase:
    return ReviewKycDocumentUseCase(uow_factory, notifier=notifier)


def get_update_asset_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> UpdateAssetUseCase:
    return UpdateAssetUseCase(uow_factory)


def get_add_to_watchlist_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> AddToWatchlistUseCase:
    return AddToWatchlistUseCase(uow_factory)


def get_remove_from_watchlist_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> RemoveFromWatchlistUseCase:
    return RemoveFromWatchlistUseCase(uow_factory)


def get_mark_notifications_read_use_case(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> MarkNotificationsReadUseCase:
    return MarkNotificationsReadUseCase(uow_factory)
