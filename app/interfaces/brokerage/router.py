"""
FastAPI router for the brokerage bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.

Order entry and money movement routes are rate limited with
ORDER_RATE_LIMIT; slowapi needs the raw ``request`` argument on
those endpoints, so their bodies are named ``payload``.
Authentication and authorization of admin routes are handled
outside this service.
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.application.brokerage.add_to_watchlist import AddToWatchlistUseCase
from app.application.brokerage.complete_transaction import CompleteTransactionUseCase
from app.application.brokerage.create_asset import CreateAssetUseCase
from app.application.brokerage.create_investment import CreateInvestmentUseCase
from app.application.brokerage.create_investment_plan import CreateInvestmentPlanUseCase
from app.application.brokerage.dtos import (
    AddToWatchlistCommand,
    CreateAssetCommand,
    CreateInvestmentCommand,
    CreateInvestmentPlanCommand,
    OpenAccountCommand,
    PlaceOrderCommand,
    RegisterTraderCommand,
    RequestTransactionCommand,
    ReviewKycDocumentCommand,
    ReviewTransactionCommand,
    StartCopyingCommand,
    SubmitKycDocumentCommand,
    UpdateAssetCommand,
    UpdateCopySettingsCommand,
    WatchlistEntry,
)
from app.application.brokerage.execute_trade import ExecuteTradeUseCase
from app.application.brokerage.mark_notifications_read import MarkNotificationsReadUseCase
from app.application.brokerage.open_account import OpenAccountUseCase
from app.application.brokerage.place_order import PlaceOrderUseCase
from app.application.brokerage.queries import (
    GetTradeUseCase,
    GetUserUseCase,
    ListAssetsUseCase,
    ListCopyRelationshipsUseCase,
    ListInvestmentPlansUseCase,
    ListKycDocumentsUseCase,
    ListNotificationsUseCase,
    ListTradeCopiesUseCase,
    ListTradersUseCase,
    ListTransactionsUseCase,
    ListUserInvestmentsUseCase,
    ListUserTradesUseCase,
    ListUserTransactionsUseCase,
    ListWatchlistUseCase,
)
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
from app.domain.brokerage.entities import AssetType, TransactionStatus, VerificationStatus
from app.domain.brokerage.ports import UnitOfWorkFactory
from app.interfaces.brokerage.dependencies import (
    get_add_to_watchlist_use_case,
    get_complete_transaction_use_case,
    get_create_asset_use_case,
    get_create_investment_plan_use_case,
    get_create_investment_use_case,
    get_execute_trade_use_case,
    get_mark_notifications_read_use_case,
    get_open_account_use_case,
    get_place_order_use_case,
    get_register_trader_use_case,
    get_remove_from_watchlist_use_case,
    get_request_transaction_use_case,
    get_review_kyc_document_use_case,
    get_review_transaction_use_case,
    get_start_copying_use_case,
    get_stop_copying_use_case,
    get_submit_kyc_document_use_case,
    get_uow_factory,
    get_update_asset_use_case,
    get_update_copy_settings_use_case,
)
from app.interfaces.brokerage.schemas import (
    AssetResponse,
    CompleteTransactionResponse,
    CopyRelationshipResponse,
    CreateAssetRequest,
    CreateInvestmentPlanRequest,
    CreateInvestmentRequest,
    CreateInvestmentResponse,
    ErrorResponse,
    ExecuteTradeResponse,
    InvestmentPlanResponse,
    InvestmentResponse,
    KycDocumentRequest,
    KycDocumentResponse,
    MarkNotificationsReadResponse,
    NotificationResponse,
    OpenAccountRequest,
    PlaceOrderRequest,
    PlaceOrderResponse,
    RegisterTraderRequest,
    ReviewKycDocumentRequest,
    ReviewTransactionRequest,
    StartCopyingRequest,
    StopCopyingResponse,
    TradeResponse,
    TraderResponse,
    TransactionRequest,
    TransactionResponse,
    UpdateAssetRequest,
    UpdateCopySettingsRequest,
    UserResponse,
    WatchlistItemResponse,
    WatchlistRequest,
)
from app.shared.security.rate_limiting import ORDER_RATE_LIMIT, limiter

router = APIRouter(prefix="/brokerage", tags=["brokerage"])

_NOT_FOUND = {404: {"model": ErrorResponse}}
_CONFLICT = {409: {"model": ErrorResponse}}
_INVALID = {422: {"model": ErrorResponse}}
_INSUFFICIENT = {400: {"model": ErrorResponse}}


# ------------------------------------------------------------------
# Accounts
# ------------------------------------------------------------------


@router.post(
    "/accounts",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_CONFLICT},
    summary="Open an account",
)
def open_account(
    payload: OpenAccountRequest,
    use_case: OpenAccountUseCase = Depends(get_open_account_use_case),
) -> UserResponse:
    """Create a user with a zero balance and unverified KYC status."""
    user = use_case.execute(
        OpenAccountCommand(
            username=payload.username,
            email=payload.email,
            full_name=payload.full_name,
            role=payload.role,
        )
    )
    return UserResponse.model_validate(user)


@router.get(
    "/accounts/{user_id}",
    response_model=UserResponse,
    responses={**_NOT_FOUND},
    summary="Get an account with its balance",
)
def get_account(
    user_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> UserResponse:
    return UserResponse.model_validate(GetUserUseCase(uow_factory).execute(user_id))


@router.get(
    "/accounts/{user_id}/trades",
    response_model=list[TradeResponse],
    responses={**_NOT_FOUND},
    summary="List an account's trades, newest first",
)
def list_account_trades(
    user_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> list[TradeResponse]:
    trades = ListUserTradesUseCase(uow_factory).execute(user_id)
    return [TradeResponse.model_validate(t) for t in trades]


@router.get(
    "/accounts/{user_id}/transactions",
    response_model=list[TransactionResponse],
    responses={**_NOT_FOUND},
    summary="List an account's transactions",
)
def list_account_transactions(
    user_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> list[TransactionResponse]:
    transactions = ListUserTransactionsUseCase(uow_factory).execute(user_id)
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.get(
    "/accounts/{user_id}/investments",
    response_model=list[InvestmentResponse],
    responses={**_NOT_FOUND},
    summary="List an account's investments",
)
def list_account_investments(
    user_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> list[InvestmentResponse]:
    investments = ListUserInvestmentsUseCase(uow_factory).execute(user_id)
    return [InvestmentResponse.model_validate(i) for i in investments]


@router.get(
    "/accounts/{user_id}/copy-relationships",
    response_model=list[CopyRelationshipResponse],
    responses={**_NOT_FOUND},
    summary="List the traders an account copies",
)
def list_account_copy_relationships(
    user_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> list[CopyRelationshipResponse]:
    relationships = ListCopyRelationshipsUseCase(uow_factory).execute(user_id)
    return [CopyRelationshipResponse.model_validate(r) for r in relationships]


@router.post(
    "/kyc-documents",
    response_model=KycDocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND},
    summary="Submit a KYC document",
)
def submit_kyc_document(
    payload: KycDocumentRequest,
    use_case: SubmitKycDocumentUseCase = Depends(get_submit_kyc_document_use_case),
) -> KycDocumentResponse:
    document = use_case.execute(
        SubmitKycDocumentCommand(
            user_id=payload.user_id,
            document_type=payload.document_type,
            document_number=payload.document_number,
            expiry_date=payload.expiry_date,
        )
    )
    return KycDocumentResponse.model_validate(document)


# ------------------------------------------------------------------
# Market data and traders
# ------------------------------------------------------------------


@router.get(
    "/assets",
    response_model=list[AssetResponse],
    summary="List tradable assets",
)
def list_assets(
    asset_type: AssetType | None = Query(default=None),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> list[AssetResponse]:
    assets = ListAssetsUseCase(uow_factory).execute(asset_type)
    return [AssetResponse.model_validate(a) for a in assets]


@router.get(
    "/traders",
    response_model=list[TraderResponse],
    summary="List copyable traders, most followed first",
)
def list_traders(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> list[TraderResponse]:
    return [TraderResponse.model_validate(t) for t in ListTradersUseCase(uow_factory).execute()]


@router.post(
    "/traders",
    response_model=TraderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Publish an account as a copyable trader",
)
def register_trader(
    payload: RegisterTraderRequest,
    use_case: RegisterTraderUseCase = Depends(get_register_trader_use_case),
) -> TraderResponse:
    trader = use_case.execute(
        RegisterTraderCommand(user_id=payload.user_id, bio=payload.bio)
    )
    return TraderResponse.model_validate(trader)


# ------------------------------------------------------------------
# Orders and trades
# ------------------------------------------------------------------


@router.post(
    "/orders",
    response_model=PlaceOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Place an order",
    description=(
        "Creates a pending trade at the given or current price. When "
        "auto-execution is enabled the trade is executed immediately; an "
        "order the balance cannot cover stays pending with a rejection reason."
    ),
)
@limiter.limit(ORDER_RATE_LIMIT)
def place_order(
    request: Request,
    payload: PlaceOrderRequest,
    use_case: PlaceOrderUseCase = Depends(get_place_order_use_case),
) -> PlaceOrderResponse:
    result = use_case.execute(
        PlaceOrderCommand(
            user_id=payload.user_id,
            asset_id=payload.asset_id,
            direction=payload.direction,
            amount=payload.amount,
            price=payload.price,
        )
    )
    return PlaceOrderResponse.model_validate(result)


@router.get(
    "/trades/{trade_id}",
    response_model=TradeResponse,
    responses={**_NOT_FOUND},
    summary="Get a trade",
)
def get_trade(
    trade_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> TradeResponse:
    return TradeResponse.model_validate(GetTradeUseCase(uow_factory).execute(trade_id))


@router.get(
    "/trades/{trade_id}/copies",
    response_model=list[TradeResponse],
    responses={**_NOT_FOUND},
    summary="List follower copies of a trade",
)
def list_trade_copies(
    trade_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> list[TradeResponse]:
    copies = ListTradeCopiesUseCase(uow_factory).execute(trade_id)
    return [TradeResponse.model_validate(t) for t in copies]


@router.post(
    "/trades/{trade_id}/execute",
    response_model=ExecuteTradeResponse,
    responses={**_INSUFFICIENT, **_NOT_FOUND},
    summary="Execute a pending trade",
    description=(
        "Settles the trade against its owner's balance and creates pending "
        "copies for the owner's active followers. Executing a trade that is "
        "no longer pending returns it unchanged with executed=false."
    ),
)
@limiter.limit(ORDER_RATE_LIMIT)
def execute_trade(
    request: Request,
    trade_id: int,
    use_case: ExecuteTradeUseCase = Depends(get_execute_trade_use_case),
) -> ExecuteTradeResponse:
    return ExecuteTradeResponse.model_validate(use_case.execute(trade_id))


# ------------------------------------------------------------------
# Copy trading
# ------------------------------------------------------------------


@router.post(
    "/copy-relationships",
    response_model=CopyRelationshipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, **_CONFLICT, **_INVALID},
    summary="Start copying a trader",
)
def start_copying(
    payload: StartCopyingRequest,
    use_case: StartCopyingUseCase = Depends(get_start_copying_use_case),
) -> CopyRelationshipResponse:
    allocation = (
        payload.allocation_percentage
        if payload.allocation_percentage is not None
        else settings.default_allocation_percentage
    )
    relationship = use_case.execute(
        StartCopyingCommand(
            follower_id=payload.follower_id,
            trader_id=payload.trader_id,
            allocation_percentage=allocation,
        )
    )
    return CopyRelationshipResponse.model_validate(relationship)


@router.patch(
    "/copy-relationships/{relationship_id}",
    response_model=CopyRelationshipResponse,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Change allocation or pause/resume copying",
)
def update_copy_settings(
    relationship_id: int,
    payload: UpdateCopySettingsRequest,
    use_case: UpdateCopySettingsUseCase = Depends(get_update_copy_settings_use_case),
) -> CopyRelationshipResponse:
    relationship = use_case.execute(
        UpdateCopySettingsCommand(
            relationship_id=relationship_id,
            follower_id=payload.follower_id,
            allocation_percentage=payload.allocation_percentage,
            status=payload.status,
        )
    )
    return CopyRelationshipResponse.model_validate(relationship)


@router.delete(
    "/copy-relationships/{relationship_id}",
    response_model=StopCopyingResponse,
    responses={**_NOT_FOUND},
    summary="Stop copying a trader",
)
def stop_copying(
    relationship_id: int,
    follower_id: int = Query(..., gt=0),
    use_case: StopCopyingUseCase = Depends(get_stop_copying_use_case),
) -> StopCopyingResponse:
    return StopCopyingResponse(stopped=use_case.execute(relationship_id, follower_id))


# ------------------------------------------------------------------
# Money movement
# ------------------------------------------------------------------


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_INSUFFICIENT, **_NOT_FOUND, **_INVALID},
    summary="Request a deposit or withdrawal",
)
@limiter.limit(ORDER_RATE_LIMIT)
def request_transaction(
    request: Request,
    payload: TransactionRequest,
    use_case: RequestTransactionUseCase = Depends(get_request_transaction_use_case),
) -> TransactionResponse:
    transaction = use_case.execute(
        RequestTransactionCommand(
            user_id=payload.user_id,
            transaction_type=payload.transaction_type,
            amount=payload.amount,
            method=payload.method,
            transaction_ref=payload.transaction_ref,
            payment_notes=payload.payment_notes,
            withdrawal_address=payload.withdrawal_address,
        )
    )
    return TransactionResponse.model_validate(transaction)


@router.post(
    "/transactions/{transaction_id}/complete",
    response_model=CompleteTransactionResponse,
    responses={**_INSUFFICIENT, **_NOT_FOUND},
    summary="Complete a pending deposit or withdrawal",
)
@limiter.limit(ORDER_RATE_LIMIT)
def complete_transaction(
    request: Request,
    transaction_id: int,
    use_case: CompleteTransactionUseCase = Depends(get_complete_transaction_use_case),
) -> CompleteTransactionResponse:
    return CompleteTransactionResponse.model_validate(use_case.execute(transaction_id))


# ------------------------------------------------------------------
# Investments
# ------------------------------------------------------------------


@router.get(
    "/investment-plans",
    response_model=list[InvestmentPlanResponse],
    summary="List investment plans",
)
def list_investment_plans(
    active_only: bool = Query(default=True),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> list[InvestmentPlanResponse]:
    plans = ListInvestmentPlansUseCase(uow_factory).execute(active_only)
    return [InvestmentPlanResponse.model_validate(p) for p in plans]


@router.post(
    "/investments",
    response_model=CreateInvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_INSUFFICIENT, **_NOT_FOUND, **_INVALID},
    summary="Invest in a plan",
    description="Debits the amount from the balance immediately.",
)
@limiter.limit(ORDER_RATE_LIMIT)
def create_investment(
    request: Request,
    payload: CreateInvestmentRequest,
    use_case: CreateInvestmentUseCase = Depends(get_create_investment_use_case),
) -> CreateInvestmentResponse:
    result = use_case.execute(
        CreateInvestmentCommand(
            user_id=payload.user_id, plan_id=payload.plan_id, amount=payload.amount
        )
    )
    return CreateInvestmentResponse.model_validate(result)


# ------------------------------------------------------------------
# Watchlist and notifications
# ------------------------------------------------------------------


def _watchlist_response(entry: WatchlistEntry) -> WatchlistItemResponse:
    return WatchlistItemResponse(
        id=entry.item.id,
        user_id=entry.item.user_id,
        asset_id=entry.item.asset_id,
        created_at=entry.item.created_at,
        asset=AssetResponse.model_validate(entry.asset),
    )


@router.post(
    "/watchlist",
    response_model=WatchlistItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Watch an asset",
)
def add_to_watchlist(
    payload: WatchlistRequest,
    use_case: AddToWatchlistUseCase = Depends(get_add_to_watchlist_use_case),
) -> WatchlistItemResponse:
    entry = use_case.execute(
        AddToWatchlistCommand(user_id=payload.user_id, asset_id=payload.asset_id)
    )
    return _watchlist_response(entry)


@router.get(
    "/accounts/{user_id}/watchlist",
    response_model=list[WatchlistItemResponse],
    responses={**_NOT_FOUND},
    summary="List an account's watchlist with current prices",
)
def list_watchlist(
    user_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)
) -> list[WatchlistItemResponse]:
    entries = ListWatchlistUseCase(uow_factory).execute(user_id)
    return [_watchlist_response(e) for e in entries]


@router.delete(
    "/watchlist/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**_NOT_FOUND},
    summary="Stop watching an asset",
)
def remove_from_watchlist(
    item_id: int,
    user_id: int = Query(..., gt=0),
    use_case: RemoveFromWatchlistUseCase = Depends(get_remove_from_watchlist_use_case),
) -> Response:
    use_case.execute(item_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/accounts/{user_id}/notifications",
    response_model=list[NotificationResponse],
    responses={**_NOT_FOUND},
    summary="List an account's notifications, newest first",
)
def list_notifications(
    user_id: int,
    unread_only: bool = Query(default=False),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> list[NotificationResponse]:
    notifications = ListNotificationsUseCase(uow_factory).execute(user_id, unread_only)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.post(
    "/accounts/{user_id}/notifications/read",
    response_model=MarkNotificationsReadResponse,
    responses={**_NOT_FOUND},
    summary="Mark all of an account's notifications read",
)
def mark_all_notifications_read(
    user_id: int,
    use_case: MarkNotificationsReadUseCase = Depends(get_mark_notifications_read_use_case),
) -> MarkNotificationsReadResponse:
    return MarkNotificationsReadResponse(marked=use_case.execute(user_id))


@router.post(
    "/accounts/{user_id}/notifications/{notification_id}/read",
    response_model=MarkNotificationsReadResponse,
    responses={**_NOT_FOUND},
    summary="Mark one notification read",
)
def mark_notification_read(
    user_id: int,
    notification_id: int,
    use_case: MarkNotificationsReadUseCase = Depends(get_mark_notifications_read_use_case),
) -> MarkNotificationsReadResponse:
    return MarkNotificationsReadResponse(marked=use_case.execute(user_id, notification_id))


# ------------------------------------------------------------------
# Administration
# ------------------------------------------------------------------


@router.post(
    "/admin/assets",
    response_model=AssetResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_CONFLICT, **_INVALID},
    summary="List a new asset",
)
def create_asset(
    payload: CreateAssetRequest,
    use_case: CreateAssetUseCase = Depends(get_create_asset_use_case),
) -> AssetResponse:
    asset = use_case.execute(
        CreateAssetCommand(
            symbol=payload.symbol,
            name=payload.name,
            asset_type=payload.asset_type,
            price=payload.price,
        )
    )
    return AssetResponse.model_validate(asset)


@router.get(
    "/admin/assets",
    response_model=list[AssetResponse],
    summary="List all assets, delisted ones included",
)
def list_all_assets(
    asset_type: AssetType | None = Query(default=None),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> list[AssetResponse]:
    assets = ListAssetsUseCase(uow_factory).execute(asset_type, active_only=False)
    return [AssetResponse.model_validate(a) for a in assets]


@router.patch(
    "/admin/assets/{asset_id}",
    response_model=AssetResponse,
    responses={**_NOT_FOUND, **_INVALID},
    summary="Edit an asset's name, price or listing",
)
def update_asset(
    asset_id: int,
    payload: UpdateAssetRequest,
    use_case: UpdateAssetUseCase = Depends(get_update_asset_use_case),
) -> AssetResponse:
    asset = use_case.execute(
        UpdateAssetCommand(
            asset_id=asset_id,
            name=payload.name,
            price=payload.price,
            is_active=payload.is_active,
        )
    )
    return AssetResponse.model_validate(asset)


@router.delete(
    "/admin/assets/{asset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**_NOT_FOUND},
    summary="Delist an asset",
)
def delist_asset(
    asset_id: int,
    use_case: UpdateAssetUseCase = Depends(get_update_asset_use_case),
) -> Response:
    """Trades and watchlists keep referring to the asset, so it is only hidden."""
    use_case.execute(UpdateAssetCommand(asset_id=asset_id, is_active=False))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/admin/investment-plans",
    response_model=InvestmentPlanResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_INVALID},
    summary="Add an investment plan",
)
def create_investment_plan(
    payload: CreateInvestmentPlanRequest,
    use_case: CreateInvestmentPlanUseCase = Depends(get_create_investment_plan_use_case),
) -> InvestmentPlanResponse:
    plan = use_case.execute(
        CreateInvestmentPlanCommand(
            name=payload.name,
            description=payload.description,
            min_amount=payload.min_amount,
            max_amount=payload.max_amount,
            roi_percentage=payload.roi_percentage,
            lock_period=payload.lock_period,
            features=payload.features,
        )
    )
    return InvestmentPlanResponse.model_validate(plan)


@router.get(
    "/admin/transactions",
    response_model=list[TransactionResponse],
    summary="List transactions, optionally by status",
)
def list_transactions(
    status_filter: TransactionStatus | None = Query(default=None, alias="status"),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> list[TransactionResponse]:
    transactions = ListTransactionsUseCase(uow_factory).execute(status_filter)
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.post(
    "/admin/transactions/{transaction_id}/review",
    response_model=TransactionResponse,
    responses={**_INSUFFICIENT, **_NOT_FOUND, **_CONFLICT},
    summary="Approve or reject a pending transaction",
)
@limiter.limit(ORDER_RATE_LIMIT)
def review_transaction(
    request: Request,
    transaction_id: int,
    payload: ReviewTransactionRequest,
    use_case: ReviewTransactionUseCase = Depends(get_review_transaction_use_case),
) -> TransactionResponse:
    transaction = use_case.execute(
        ReviewTransactionCommand(
            transaction_id=transaction_id,
            action=payload.action,
            admin_id=payload.admin_id,
            notes=payload.notes,
        )
    )
    return TransactionResponse.model_validate(transaction)


@router.get(
    "/admin/kyc-documents",
    response_model=list[KycDocumentResponse],
    summary="KYC review queue",
)
def list_kyc_documents(
    status_filter: VerificationStatus | None = Query(
        default=VerificationStatus.PENDING, alias="status"
    ),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
) -> list[KycDocumentResponse]:
    documents = ListKycDocumentsUseCase(uow_factory).execute(status_filter)
    return [KycDocumentResponse.model_validate(d) for d in documents]


@router.post(
    "/admin/kyc-documents/{document_id}/review",
    response_model=KycDocumentResponse,
    responses={**_NOT_FOUND, **_CONFLICT, **_INVALID},
    summary="Verify or reject a KYC document",
)
def review_kyc_document(
    document_id: int,
    payload: ReviewKycDocumentRequest,
    use_case: ReviewKycDocumentUseCase = Depends(get_review_kyc_document_use_case),
) -> KycDocumentResponse:
    document = use_case.execute(
        ReviewKycDocumentCommand(
            document_id=document_id,
            status=payload.status,
            rejection_reason=payload.rejection_reason,
        )
    )
    return KycDocumentResponse.model_validate(document)
