"""
Tests for the brokerage application layer.

Use cases run against a real in-memory SQLite ledger so that
atomicity (commit/rollback) is exercised, not mocked.
"""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

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
    ReviewAction,
    ReviewKycDocumentCommand,
    ReviewTransactionCommand,
    StartCopyingCommand,
    SubmitKycDocumentCommand,
    UpdateAssetCommand,
    UpdateCopySettingsCommand,
)
from app.application.brokerage.execute_trade import ExecuteTradeUseCase
from app.application.brokerage.mark_notifications_read import MarkNotificationsReadUseCase
from app.application.brokerage.notifications import send_notification
from app.application.brokerage.open_account import OpenAccountUseCase
from app.application.brokerage.place_order import PlaceOrderUseCase
from app.application.brokerage.queries import (
    GetUserUseCase,
    ListAssetsUseCase,
    ListKycDocumentsUseCase,
    ListNotificationsUseCase,
    ListTradeCopiesUseCase,
    ListTransactionsUseCase,
    ListUserInvestmentsUseCase,
    ListUserTradesUseCase,
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
from app.domain.brokerage.entities import (
    AssetType,
    BalanceDirection,
    CopyStatus,
    KycStatus,
    NewTrade,
    NotificationType,
    TradeDirection,
    TradeStatus,
    TransactionStatus,
    TransactionType,
    VerificationStatus,
)
from app.domain.brokerage.errors import (
    AlreadyCopyingError,
    AssetNotFoundError,
    CopyRelationshipNotFoundError,
    DuplicateAccountError,
    DuplicateAssetError,
    DuplicateTraderError,
    DuplicateWatchlistItemError,
    InsufficientBalanceError,
    InvalidAllocationError,
    InvalidAmountError,
    InvalidStateError,
    InvestmentLimitError,
    InvestmentPlanNotFoundError,
    NotificationNotFoundError,
    SelfCopyError,
    TradeNotFoundError,
    UnsupportedOperationError,
    UserNotFoundError,
    WatchlistItemNotFoundError,
)
from app.domain.brokerage.ports import NotificationPort
from app.infrastructure.brokerage.copy_relationship_repository import (
    CopyRelationshipRepositoryAdapter,
)
from app.infrastructure.brokerage.trade_repository import TradeRepositoryAdapter

FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def _fixed_clock() -> datetime:
    return FIXED_NOW


def _add_trade(
    uow_factory, user_id, asset_id, amount="10", price="10", direction=TradeDirection.BUY
):
    with uow_factory() as uow:
        trade = uow.trades.add(
            NewTrade(
                user_id=user_id,
                asset_id=asset_id,
                direction=direction,
                amount=Decimal(amount),
                price=Decimal(price),
            )
        )
        uow.commit()
    return trade


def _run_concurrently(*calls):
    """Run each call in its own thread and return ``(result, error)`` per call."""
    outcomes = [(None, None)] * len(calls)

    def run(index, call):
        try:
            outcomes[index] = (call(), None)
        except Exception as exc:
            outcomes[index] = (None, exc)

    threads = [
        threading.Thread(target=run, args=(index, call)) for index, call in enumerate(calls)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    assert not any(thread.is_alive() for thread in threads)
    return outcomes


@pytest.fixture
def copy_setup(ledger, uow_factory):
    """Trader T with followers F1 (50%) and F2 (25%)."""
    trader_user = ledger.user(balance="1000", username="trader")
    trader = ledger.trader(trader_user)
    f1 = ledger.user(balance="1000", username="follower1")
    f2 = ledger.user(balance="1000", username="follower2")
    start = StartCopyingUseCase(uow_factory)
    start.execute(StartCopyingCommand(f1.id, trader.id, Decimal("50")))
    start.execute(StartCopyingCommand(f2.id, trader.id, Decimal("25")))
    asset = ledger.asset(symbol="BTC", price="10")
    return trader_user, trader, f1, f2, asset


class TestExecuteTrade:
    """Tests for ExecuteTradeUseCase."""

    def test_buy_debits_owner(self, ledger, uow_factory) -> None:
        """Executing a buy debits amount * price and stamps executed_at."""
        user = ledger.user(balance="500")
        asset = ledger.asset()
        trade = _add_trade(uow_factory, user.id, asset.id, amount="10", price="25")

        result = ExecuteTradeUseCase(uow_factory, clock=_fixed_clock).execute(trade.id)

        assert result.executed
        assert result.trade.status is TradeStatus.EXECUTED
        assert result.trade.executed_at == FIXED_NOW
        assert ledger.balance(user.id) == Decimal("250.00")

    def test_sell_credits_owner(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="0")
        asset = ledger.asset()
        trade = _add_trade(
            uow_factory, user.id, asset.id, amount="2", price="15.5",
            direction=TradeDirection.SELL,
        )
        ExecuteTradeUseCase(uow_factory).execute(trade.id)
        assert ledger.balance(user.id) == Decimal("31.00")

    def test_execute_twice_settles_once(self, ledger, uow_factory) -> None:
        """A second execution is a no-op that reports executed=False."""
        user = ledger.user(balance="500")
        asset = ledger.asset()
        trade = _add_trade(uow_factory, user.id, asset.id)
        use_case = ExecuteTradeUseCase(uow_factory)

        first = use_case.execute(trade.id)
        second = use_case.execute(trade.id)

        assert first.executed
        assert not second.executed
        assert second.trade.status is TradeStatus.EXECUTED
        assert ledger.balance(user.id) == Decimal("400.00")

    def test_insufficient_balance_leaves_trade_pending(self, ledger, uow_factory) -> None:
        """A failed settlement rolls back the status flip as well."""
        user = ledger.user(balance="50")
        asset = ledger.asset()
        trade = _add_trade(uow_factory, user.id, asset.id)

        with pytest.raises(InsufficientBalanceError):
            ExecuteTradeUseCase(uow_factory).execute(trade.id)

        with uow_factory() as uow:
            assert uow.trades.get(trade.id).status is TradeStatus.PENDING
        assert ledger.balance(user.id) == Decimal("50.00")

    def test_unknown_trade(self, uow_factory) -> None:
        with pytest.raises(TradeNotFoundError):
            ExecuteTradeUseCase(uow_factory).execute(404)

    def test_fan_out_creates_scaled_pending_copies(
        self, copy_setup, uow_factory, ledger, notifier
    ) -> None:
        """T buys 10: F1 gets a pending copy of 5, F2 a pending copy of 2.5."""
        trader_user, _, f1, f2, asset = copy_setup
        trade = _add_trade(uow_factory, trader_user.id, asset.id, amount="10")

        result = ExecuteTradeUseCase(uow_factory, notifier=notifier).execute(trade.id)

        assert len(result.copy_trade_ids) == 2
        assert result.failed_follower_ids == ()
        copies = ListTradeCopiesUseCase(uow_factory).execute(trade.id)
        by_user = {copy.user_id: copy for copy in copies}
        assert by_user[f1.id].amount == Decimal("5")
        assert by_user[f2.id].amount == Decimal("2.5")
        for copy in copies:
            assert copy.status is TradeStatus.PENDING
            assert copy.copied_from_trade_id == trade.id
            assert copy.price == trade.price
            assert copy.direction is TradeDirection.BUY
        # Copies are pending, so follower balances are untouched.
        assert ledger.balance(f1.id) == Decimal("1000.00")
        assert "Trade copied" in notifier.subjects_for(f1.id)
        assert "Trade executed" in notifier.subjects_for(trader_user.id)

    def test_copy_never_fans_out(self, copy_setup, uow_factory, ledger) -> None:
        """Executing a copy settles the follower but creates no new copies."""
        trader_user, _, f1, _, asset = copy_setup
        follower_trader = ledger.trader(f1)
        third = ledger.user(balance="100")
        StartCopyingUseCase(uow_factory).execute(
            StartCopyingCommand(third.id, follower_trader.id, Decimal("100"))
        )
        trade = _add_trade(uow_factory, trader_user.id, asset.id, amount="10")
        use_case = ExecuteTradeUseCase(uow_factory)
        result = use_case.execute(trade.id)
        f1_copy_id = next(
            copy.id
            for copy in ListTradeCopiesUseCase(uow_factory).execute(trade.id)
            if copy.user_id == f1.id
        )
        assert f1_copy_id in result.copy_trade_ids

        copy_result = use_case.execute(f1_copy_id)

        assert copy_result.executed
        assert copy_result.copy_trade_ids == ()
        assert ListTradeCopiesUseCase(uow_factory).execute(f1_copy_id) == []
        assert ledger.balance(f1.id) == Decimal("950.00")
        assert ListUserTradesUseCase(uow_factory).execute(third.id) == []

    def test_second_execution_does_not_fan_out_again(self, copy_setup, uow_factory) -> None:
        trader_user, _, _, _, asset = copy_setup
        trade = _add_trade(uow_factory, trader_user.id, asset.id)
        use_case = ExecuteTradeUseCase(uow_factory)
        use_case.execute(trade.id)
        use_case.execute(trade.id)
        assert len(ListTradeCopiesUseCase(uow_factory).execute(trade.id)) == 2

    def test_paused_follower_gets_no_copy(self, copy_setup, uow_factory) -> None:
        trader_user, trader, f1, f2, asset = copy_setup
        with uow_factory() as uow:
            relationship = uow.copy_relationships.find(f2.id, trader.id)
        UpdateCopySettingsUseCase(uow_factory).execute(
            UpdateCopySettingsCommand(relationship.id, f2.id, status=CopyStatus.PAUSED)
        )
        trade = _add_trade(uow_factory, trader_user.id, asset.id)

        result = ExecuteTradeUseCase(uow_factory).execute(trade.id)

        copies = ListTradeCopiesUseCase(uow_factory).execute(trade.id)
        assert [copy.user_id for copy in copies] == [f1.id]
        assert len(result.copy_trade_ids) == 1

    def test_failing_follower_does_not_block_others(
        self, copy_setup, uow_factory, ledger, monkeypatch
    ) -> None:
        """One follower's copy failing leaves the original and other copies intact."""
        trader_user, _, f1, f2, asset = copy_setup
        trade = _add_trade(uow_factory, trader_user.id, asset.id, amount="10")
        original_add = TradeRepositoryAdapter.add

        def flaky_add(self, new_trade):
            if new_trade.user_id == f1.id:
                raise RuntimeError("storage unavailable")
            return original_add(self, new_trade)

        monkeypatch.setattr(TradeRepositoryAdapter, "add", flaky_add)

        result = ExecuteTradeUseCase(uow_factory).execute(trade.id)

        assert result.executed
        assert result.failed_follower_ids == (f1.id,)
        assert len(result.copy_trade_ids) == 1
        copies = ListTradeCopiesUseCase(uow_factory).execute(trade.id)
        assert [copy.user_id for copy in copies] == [f2.id]
        assert ledger.balance(trader_user.id) == Decimal("900.00")

    def test_copy_rounding_to_zero_is_reported(self, ledger, uow_factory) -> None:
        trader_user = ledger.user(balance="100")
        trader = ledger.trader(trader_user)
        follower = ledger.user()
        StartCopyingUseCase(uow_factory).execute(
            StartCopyingCommand(follower.id, trader.id, Decimal("1"))
        )
        asset = ledger.asset(price="1")
        trade = _add_trade(uow_factory, trader_user.id, asset.id, amount="0.00000010", price="1")

        result = ExecuteTradeUseCase(uow_factory).execute(trade.id)

        assert result.executed
        assert result.copy_trade_ids == ()
        assert result.failed_follower_ids == (follower.id,)

    def test_notification_failure_is_swallowed(self, ledger, uow_factory) -> None:
        class BrokenNotifier(NotificationPort):
            def notify(self, user_id, subject, message, notification_type=None):
                raise ConnectionError("smtp down")

        user = ledger.user(balance="200")
        asset = ledger.asset()
        trade = _add_trade(uow_factory, user.id, asset.id)

        result = ExecuteTradeUseCase(uow_factory, notifier=BrokenNotifier()).execute(trade.id)

        assert result.executed
        assert ledger.balance(user.id) == Decimal("100.00")

    def test_concurrent_executions_settle_once(
        self, file_ledger, file_uow_factory, monkeypatch
    ) -> None:
        """Two executors both read the trade as pending; only one settles it."""
        user = file_ledger.user(balance="1000")
        asset = file_ledger.asset(price="10")
        trade = _add_trade(file_uow_factory, user.id, asset.id, amount="1", price="10")
        barrier = threading.Barrier(2, timeout=10)
        original_get = TradeRepositoryAdapter.get

        def get_then_wait(self, trade_id, for_update=False):
            found = original_get(self, trade_id, for_update=for_update)
            if for_update:
                barrier.wait()
            return found

        monkeypatch.setattr(TradeRepositoryAdapter, "get", get_then_wait)
        use_case = ExecuteTradeUseCase(file_uow_factory)

        outcomes = _run_concurrently(
            lambda: use_case.execute(trade.id), lambda: use_case.execute(trade.id)
        )
        monkeypatch.undo()

        assert [error for _, error in outcomes] == [None, None]
        assert sorted(result.executed for result, _ in outcomes) == [False, True]
        assert file_ledger.balance(user.id) == Decimal("990.00")
        trades = ListUserTradesUseCase(file_uow_factory).execute(user.id)
        assert [t.status for t in trades] == [TradeStatus.EXECUTED]


class TestPlaceOrder:
    """Tests for PlaceOrderUseCase."""

    def test_price_defaults_to_asset_price(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="100")
        asset = ledger.asset(price="12.5")
        result = PlaceOrderUseCase(uow_factory).execute(
            PlaceOrderCommand(user.id, asset.id, TradeDirection.BUY, Decimal("2"))
        )
        assert result.trade.price == Decimal("12.5")
        assert result.trade.status is TradeStatus.PENDING
        assert not result.executed

    def test_with_executor_settles_immediately(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="100")
        asset = ledger.asset(price="10")
        use_case = PlaceOrderUseCase(uow_factory, executor=ExecuteTradeUseCase(uow_factory))
        result = use_case.execute(
            PlaceOrderCommand(user.id, asset.id, TradeDirection.BUY, Decimal("3"))
        )
        assert result.executed
        assert ledger.balance(user.id) == Decimal("70.00")

    def test_uncovered_order_stays_pending_with_reason(self, ledger, uow_factory) -> None:
        """An order the balance cannot cover is recorded but not executed."""
        user = ledger.user(balance="5")
        asset = ledger.asset(price="10")
        use_case = PlaceOrderUseCase(uow_factory, executor=ExecuteTradeUseCase(uow_factory))
        result = use_case.execute(
            PlaceOrderCommand(user.id, asset.id, TradeDirection.BUY, Decimal("1"))
        )
        assert not result.executed
        assert result.trade.status is TradeStatus.PENDING
        assert "Insufficient balance" in result.rejection_reason
        assert ledger.balance(user.id) == Decimal("5.00")

    def test_zero_amount_rejected(self, ledger, uow_factory) -> None:
        user = ledger.user()
        asset = ledger.asset()
        with pytest.raises(InvalidAmountError):
            PlaceOrderUseCase(uow_factory).execute(
                PlaceOrderCommand(user.id, asset.id, TradeDirection.BUY, Decimal("0"))
            )

    def test_unknown_asset(self, ledger, uow_factory) -> None:
        user = ledger.user()
        with pytest.raises(AssetNotFoundError):
            PlaceOrderUseCase(uow_factory).execute(
                PlaceOrderCommand(user.id, 999, TradeDirection.SELL, Decimal("1"))
            )


class TestTransactions:
    """Tests for deposit/withdrawal request, completion and review."""

    def _request(self, uow_factory, user_id, kind, amount, notifier=None):
        return RequestTransactionUseCase(uow_factory, notifier).execute(
            RequestTransactionCommand(user_id, kind, Decimal(amount), "bank_transfer")
        )

    def test_deposit_completion_credits_balance(self, ledger, uow_factory, notifier) -> None:
        """Deposit 100 from 0 -> balance 100.00 with completed_at set."""
        user = ledger.user()
        deposit = self._request(uow_factory, user.id, TransactionType.DEPOSIT, "100")
        assert deposit.status is TransactionStatus.PENDING
        assert ledger.balance(user.id) == Decimal("0.00")

        result = CompleteTransactionUseCase(uow_factory, notifier, _fixed_clock).execute(
            deposit.id
        )

        assert result.completed
        assert result.transaction.status is TransactionStatus.COMPLETED
        assert result.transaction.completed_at is not None
        assert ledger.balance(user.id) == Decimal("100.00")
        assert "Deposit completed" in notifier.subjects_for(user.id)

    def test_complete_twice_settles_once(self, ledger, uow_factory) -> None:
        user = ledger.user()
        deposit = self._request(uow_factory, user.id, TransactionType.DEPOSIT, "100")
        use_case = CompleteTransactionUseCase(uow_factory)
        use_case.execute(deposit.id)
        second = use_case.execute(deposit.id)
        assert not second.completed
        assert ledger.balance(user.id) == Decimal("100.00")

    def test_uncovered_withdrawal_stays_pending(self, ledger, uow_factory) -> None:
        """A withdrawal that no longer fits the balance is not completed."""
        user = ledger.user(balance="100")
        withdrawal = self._request(uow_factory, user.id, TransactionType.WITHDRAWAL, "80")
        with uow_factory() as uow:
            uow.users.adjust_balance(user.id, Decimal("50"), BalanceDirection.DEBIT)
            uow.commit()

        with pytest.raises(InsufficientBalanceError):
            CompleteTransactionUseCase(uow_factory).execute(withdrawal.id)

        with uow_factory() as uow:
            stored = uow.transactions.get(withdrawal.id)
        assert stored.status is TransactionStatus.PENDING
        assert stored.completed_at is None
        assert ledger.balance(user.id) == Decimal("50.00")

    def test_withdrawal_request_above_balance_rejected(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="10")
        with pytest.raises(InsufficientBalanceError):
            self._request(uow_factory, user.id, TransactionType.WITHDRAWAL, "10.01")

    def test_investment_request_unsupported(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="10")
        with pytest.raises(UnsupportedOperationError):
            self._request(uow_factory, user.id, TransactionType.INVESTMENT, "5")

    def test_review_approve_records_reviewer(self, ledger, uow_factory) -> None:
        admin = ledger.user(username="admin")
        user = ledger.user()
        deposit = self._request(uow_factory, user.id, TransactionType.DEPOSIT, "40")

        reviewed = ReviewTransactionUseCase(uow_factory, clock=_fixed_clock).execute(
            ReviewTransactionCommand(deposit.id, ReviewAction.APPROVE, admin.id, "ok")
        )

        assert reviewed.status is TransactionStatus.COMPLETED
        assert reviewed.reviewed_by == admin.id
        assert reviewed.admin_notes == "ok"
        assert ledger.balance(user.id) == Decimal("40.00")

    def test_review_reject_marks_failed_without_balance_change(
        self, ledger, uow_factory, notifier
    ) -> None:
        admin = ledger.user(username="admin")
        user = ledger.user(balance="100")
        withdrawal = self._request(uow_factory, user.id, TransactionType.WITHDRAWAL, "60")
        use_case = ReviewTransactionUseCase(uow_factory, notifier)

        reviewed = use_case.execute(
            ReviewTransactionCommand(withdrawal.id, ReviewAction.REJECT, admin.id, "KYC missing")
        )

        assert reviewed.status is TransactionStatus.FAILED
        assert reviewed.completed_at is None
        assert ledger.balance(user.id) == Decimal("100.00")
        assert "Withdrawal rejected" in notifier.subjects_for(user.id)

        with pytest.raises(InvalidStateError):
            use_case.execute(
                ReviewTransactionCommand(withdrawal.id, ReviewAction.APPROVE, admin.id)
            )

    def test_pending_queue(self, ledger, uow_factory) -> None:
        user = ledger.user()
        first = self._request(uow_factory, user.id, TransactionType.DEPOSIT, "10")
        second = self._request(uow_factory, user.id, TransactionType.DEPOSIT, "20")
        CompleteTransactionUseCase(uow_factory).execute(first.id)

        pending = ListTransactionsUseCase(uow_factory).execute(TransactionStatus.PENDING)

        assert [transaction.id for transaction in pending] == [second.id]


class TestCopyRelationships:
    """Tests for start/stop/update and the follower count."""

    def test_start_increments_followers(self, ledger, uow_factory, notifier) -> None:
        trader_user = ledger.user()
        trader = ledger.trader(trader_user)
        follower = ledger.user()

        relationship = StartCopyingUseCase(uow_factory, notifier).execute(
            StartCopyingCommand(follower.id, trader.id, Decimal("40"))
        )

        assert relationship.status is CopyStatus.ACTIVE
        assert relationship.allocation_percentage == Decimal("40.00")
        assert ledger.followers(trader.id) == 1
        assert "New follower" in notifier.subjects_for(trader_user.id)

    def test_stop_decrements_and_repeat_is_rejected(self, ledger, uow_factory) -> None:
        """Stopping twice never drives the count below zero."""
        trader = ledger.trader(ledger.user())
        follower = ledger.user()
        relationship = StartCopyingUseCase(uow_factory).execute(
            StartCopyingCommand(follower.id, trader.id)
        )
        stop = StopCopyingUseCase(uow_factory)

        assert stop.execute(relationship.id, follower.id) is True
        assert ledger.followers(trader.id) == 0
        with pytest.raises(CopyRelationshipNotFoundError):
            stop.execute(relationship.id, follower.id)
        assert ledger.followers(trader.id) == 0
        assert ledger.relationship(relationship.id) is None

    def test_stop_by_other_user_rejected(self, ledger, uow_factory) -> None:
        trader = ledger.trader(ledger.user())
        follower = ledger.user()
        intruder = ledger.user()
        relationship = StartCopyingUseCase(uow_factory).execute(
            StartCopyingCommand(follower.id, trader.id)
        )
        with pytest.raises(CopyRelationshipNotFoundError):
            StopCopyingUseCase(uow_factory).execute(relationship.id, intruder.id)
        assert ledger.followers(trader.id) == 1

    def test_stopping_paused_relationship_keeps_count(self, ledger, uow_factory) -> None:
        trader = ledger.trader(ledger.user())
        follower = ledger.user()
        relationship = StartCopyingUseCase(uow_factory).execute(
            StartCopyingCommand(follower.id, trader.id)
        )
        UpdateCopySettingsUseCase(uow_factory).execute(
            UpdateCopySettingsCommand(relationship.id, follower.id, status=CopyStatus.PAUSED)
        )
        assert ledger.followers(trader.id) == 0

        StopCopyingUseCase(uow_factory).execute(relationship.id, follower.id)

        assert ledger.followers(trader.id) == 0

    def test_resume_and_change_allocation(self, ledger, uow_factory) -> None:
        trader = ledger.trader(ledger.user())
        follower = ledger.user()
        relationship = StartCopyingUseCase(uow_factory).execute(
            StartCopyingCommand(follower.id, trader.id)
        )
        update = UpdateCopySettingsUseCase(uow_factory)
        update.execute(
            UpdateCopySettingsCommand(relationship.id, follower.id, status=CopyStatus.PAUSED)
        )
        updated = update.execute(
            UpdateCopySettingsCommand(
                relationship.id,
                follower.id,
                allocation_percentage=Decimal("12.5"),
                status=CopyStatus.ACTIVE,
            )
        )
        assert updated.status is CopyStatus.ACTIVE
        assert updated.allocation_percentage == Decimal("12.50")
        assert ledger.followers(trader.id) == 1

    def test_self_copy_rejected(self, ledger, uow_factory) -> None:
        trader_user = ledger.user()
        trader = ledger.trader(trader_user)
        with pytest.raises(SelfCopyError):
            StartCopyingUseCase(uow_factory).execute(
                StartCopyingCommand(trader_user.id, trader.id)
            )

    def test_duplicate_relationship_rejected(self, ledger, uow_factory) -> None:
        trader = ledger.trader(ledger.user())
        follower = ledger.user()
        start = StartCopyingUseCase(uow_factory)
        start.execute(StartCopyingCommand(follower.id, trader.id))
        with pytest.raises(AlreadyCopyingError):
            start.execute(StartCopyingCommand(follower.id, trader.id, Decimal("10")))
        assert ledger.followers(trader.id) == 1

    def test_allocation_out_of_range(self, ledger, uow_factory) -> None:
        trader = ledger.trader(ledger.user())
        follower = ledger.user()
        with pytest.raises(InvalidAllocationError):
            StartCopyingUseCase(uow_factory).execute(
                StartCopyingCommand(follower.id, trader.id, Decimal("150"))
            )
        assert ledger.followers(trader.id) == 0

    @staticmethod
    def _two_followers(ledger, uow_factory):
        trader = ledger.trader(ledger.user())
        first = ledger.user()
        second = ledger.user()
        start = StartCopyingUseCase(uow_factory)
        relationship = start.execute(StartCopyingCommand(first.id, trader.id))
        start.execute(StartCopyingCommand(second.id, trader.id))
        assert ledger.followers(trader.id) == 2
        return trader, first, relationship

    @staticmethod
    def _wait_after_first_read(monkeypatch) -> None:
        """Hold each thread after its first read until the other has read too."""
        barrier = threading.Barrier(2, timeout=10)
        seen = threading.local()
        original_get = CopyRelationshipRepositoryAdapter.get

        def get_then_wait(self, relationship_id):
            found = original_get(self, relationship_id)
            if not getattr(seen, "read", False):
                seen.read = True
                barrier.wait()
            return found

        monkeypatch.setattr(CopyRelationshipRepositoryAdapter, "get", get_then_wait)

    def test_concurrent_pauses_count_once(
        self, file_ledger, file_uow_factory, monkeypatch
    ) -> None:
        trader, follower, relationship = self._two_followers(file_ledger, file_uow_factory)
        self._wait_after_first_read(monkeypatch)
        update = UpdateCopySettingsUseCase(file_uow_factory)
        command = UpdateCopySettingsCommand(
            relationship.id, follower.id, status=CopyStatus.PAUSED
        )

        outcomes = _run_concurrently(
            lambda: update.execute(command), lambda: update.execute(command)
        )
        monkeypatch.undo()

        assert [error for _, error in outcomes] == [None, None]
        assert all(result.status is CopyStatus.PAUSED for result, _ in outcomes)
        assert file_ledger.followers(trader.id) == 1
        assert file_ledger.relationship(relationship.id).status is CopyStatus.PAUSED

    def test_concurrent_stops_count_once(
        self, file_ledger, file_uow_factory, monkeypatch
    ) -> None:
        trader, follower, relationship = self._two_followers(file_ledger, file_uow_factory)
        self._wait_after_first_read(monkeypatch)
        stop = StopCopyingUseCase(file_uow_factory)

        outcomes = _run_concurrently(
            lambda: stop.execute(relationship.id, follower.id),
            lambda: stop.execute(relationship.id, follower.id),
        )
        monkeypatch.undo()

        results = [result for result, error in outcomes if error is None]
        errors = [error for _, error in outcomes if error is not None]
        assert results == [True]
        assert len(errors) == 1
        assert isinstance(errors[0], CopyRelationshipNotFoundError)
        assert file_ledger.followers(trader.id) == 1
        assert file_ledger.relationship(relationship.id) is None

    def test_concurrent_pause_and_stop_count_once(
        self, file_ledger, file_uow_factory, monkeypatch
    ) -> None:
        """Whichever request lands first, the stopped follower is counted out once."""
        trader, follower, relationship = self._two_followers(file_ledger, file_uow_factory)
        self._wait_after_first_read(monkeypatch)
        update = UpdateCopySettingsUseCase(file_uow_factory)
        stop = StopCopyingUseCase(file_uow_factory)

        (_, pause_error), (stopped, stop_error) = _run_concurrently(
            lambda: update.execute(
                UpdateCopySettingsCommand(
                    relationship.id, follower.id, status=CopyStatus.PAUSED
                )
            ),
            lambda: stop.execute(relationship.id, follower.id),
        )
        monkeypatch.undo()

        assert stop_error is None
        assert stopped is True
        assert pause_error is None or isinstance(pause_error, CopyRelationshipNotFoundError)
        assert file_ledger.followers(trader.id) == 1
        assert file_ledger.relationship(relationship.id) is None

    def test_conflicting_status_change_is_reported(
        self, ledger, uow_factory, monkeypatch
    ) -> None:
        """A status swap that matches nothing reports the status actually stored."""
        trader, follower, relationship = self._two_followers(ledger, uow_factory)
        update = UpdateCopySettingsUseCase(uow_factory)
        update.execute(
            UpdateCopySettingsCommand(relationship.id, follower.id, status=CopyStatus.PAUSED)
        )
        monkeypatch.setattr(
            CopyRelationshipRepositoryAdapter,
            "change_status",
            lambda self, relationship_id, expected, new: False,
        )

        with pytest.raises(InvalidStateError):
            update.execute(
                UpdateCopySettingsCommand(
                    relationship.id, follower.id, status=CopyStatus.ACTIVE
                )
            )
        assert ledger.followers(trader.id) == 1


class TestInvestments:
    """Tests for CreateInvestmentUseCase and the plan catalogue."""

    def test_investing_more_than_balance_fails_cleanly(self, ledger, uow_factory) -> None:
        """Invest 200 with balance 150: error, no investment row, balance kept."""
        user = ledger.user(balance="150")
        plan = ledger.plan(minimum="100", maximum="1000")

        with pytest.raises(InsufficientBalanceError):
            CreateInvestmentUseCase(uow_factory).execute(
                CreateInvestmentCommand(user.id, plan.id, Decimal("200"))
            )

        assert ledger.balance(user.id) == Decimal("150.00")
        assert ListUserInvestmentsUseCase(uow_factory).execute(user.id) == []

    def test_investment_debits_and_records_transaction(
        self, ledger, uow_factory, notifier
    ) -> None:
        """Invest 200 with balance 500: balance 300 plus a completed record."""
        user = ledger.user(balance="500")
        plan = ledger.plan(minimum="100", maximum="1000", days=30)

        result = CreateInvestmentUseCase(uow_factory, notifier, _fixed_clock).execute(
            CreateInvestmentCommand(user.id, plan.id, Decimal("200"))
        )

        assert result.balance == Decimal("300.00")
        assert ledger.balance(user.id) == Decimal("300.00")
        assert result.investment.amount == Decimal("200.00")
        assert result.investment.end_date - result.investment.start_date == timedelta(days=30)
        assert result.transaction.transaction_type is TransactionType.INVESTMENT
        assert result.transaction.status is TransactionStatus.COMPLETED
        assert result.transaction.description == f"Investment in {plan.name}"
        assert "Investment created" in notifier.subjects_for(user.id)

    def test_amount_outside_plan_limits(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="5000")
        plan = ledger.plan(minimum="100", maximum="1000")
        use_case = CreateInvestmentUseCase(uow_factory)
        with pytest.raises(InvestmentLimitError):
            use_case.execute(CreateInvestmentCommand(user.id, plan.id, Decimal("50")))
        with pytest.raises(InvestmentLimitError):
            use_case.execute(CreateInvestmentCommand(user.id, plan.id, Decimal("1500")))
        assert ledger.balance(user.id) == Decimal("5000.00")

    def test_unknown_plan(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="500")
        with pytest.raises(InvestmentPlanNotFoundError):
            CreateInvestmentUseCase(uow_factory).execute(
                CreateInvestmentCommand(user.id, 42, Decimal("100"))
            )

    def test_create_plan_parses_lock_period(self, uow_factory) -> None:
        plan = CreateInvestmentPlanUseCase(uow_factory).execute(
            CreateInvestmentPlanCommand(
                name="Growth",
                description="Balanced growth",
                min_amount=Decimal("1000"),
                max_amount=Decimal("0"),
                roi_percentage=Decimal("12.5"),
                lock_period="3 months",
                features=["Weekly reports"],
            )
        )
        assert plan.lock_period_days == 90
        assert plan.max_amount is None
        assert plan.features == ["Weekly reports"]

    def test_create_plan_with_max_below_min(self, uow_factory) -> None:
        with pytest.raises(InvestmentLimitError):
            CreateInvestmentPlanUseCase(uow_factory).execute(
                CreateInvestmentPlanCommand(
                    name="Broken",
                    description="",
                    min_amount=Decimal("500"),
                    max_amount=Decimal("100"),
                    roi_percentage=Decimal("5"),
                    lock_period=30,
                )
            )


class TestAccountsAndReferenceData:
    """Tests for account opening, trader registration, assets and KYC."""

    def test_open_account_normalizes_email(self, uow_factory) -> None:
        user = OpenAccountUseCase(uow_factory).execute(
            OpenAccountCommand("  jdoe ", "JDoe@Example.COM", "Jane Doe")
        )
        assert user.username == "jdoe"
        assert user.email == "jdoe@example.com"
        assert user.balance == Decimal("0.00")
        assert GetUserUseCase(uow_factory).execute(user.id).email == "jdoe@example.com"

    def test_duplicate_email_rejected(self, uow_factory) -> None:
        use_case = OpenAccountUseCase(uow_factory)
        use_case.execute(OpenAccountCommand("first", "same@example.com", "First"))
        with pytest.raises(DuplicateAccountError):
            use_case.execute(OpenAccountCommand("second", "SAME@example.com", "Second"))

    def test_register_trader_once(self, ledger, uow_factory) -> None:
        user = ledger.user()
        use_case = RegisterTraderUseCase(uow_factory)
        trader = use_case.execute(RegisterTraderCommand(user.id, "Momentum"))
        assert trader.followers == 0
        with pytest.raises(DuplicateTraderError):
            use_case.execute(RegisterTraderCommand(user.id))

    def test_create_asset_uppercases_symbol(self, uow_factory) -> None:
        use_case = CreateAssetUseCase(uow_factory)
        asset = use_case.execute(
            CreateAssetCommand("eth", "Ethereum", AssetType.CRYPTO, Decimal("2045.67"))
        )
        assert asset.symbol == "ETH"
        with pytest.raises(DuplicateAssetError):
            use_case.execute(
                CreateAssetCommand("ETH", "Ether", AssetType.CRYPTO, Decimal("1"))
            )

    def test_kyc_submit_and_verify(self, ledger, uow_factory, notifier) -> None:
        user = ledger.user()
        document = SubmitKycDocumentUseCase(uow_factory).execute(
            SubmitKycDocumentCommand(user.id, "passport", "X1234567", "2030-01-01")
        )
        assert document.verification_status is VerificationStatus.PENDING
        assert GetUserUseCase(uow_factory).execute(user.id).kyc_status is KycStatus.PENDING
        queue = ListKycDocumentsUseCase(uow_factory).execute()
        assert [item.id for item in queue] == [document.id]

        reviewed = ReviewKycDocumentUseCase(uow_factory, notifier).execute(
            ReviewKycDocumentCommand(document.id, VerificationStatus.VERIFIED)
        )

        assert reviewed.verification_status is VerificationStatus.VERIFIED
        assert GetUserUseCase(uow_factory).execute(user.id).kyc_status is KycStatus.VERIFIED
        assert notifier.subjects_for(user.id) == ["KYC review"]

    def test_kyc_reject_returns_user_to_unverified(self, ledger, uow_factory) -> None:
        user = ledger.user()
        document = SubmitKycDocumentUseCase(uow_factory).execute(
            SubmitKycDocumentCommand(user.id, "id_card", "ID-1")
        )
        use_case = ReviewKycDocumentUseCase(uow_factory)

        reviewed = use_case.execute(
            ReviewKycDocumentCommand(document.id, VerificationStatus.REJECTED, "Blurry scan")
        )

        assert reviewed.rejection_reason == "Blurry scan"
        assert GetUserUseCase(uow_factory).execute(user.id).kyc_status is KycStatus.UNVERIFIED
        with pytest.raises(InvalidStateError):
            use_case.execute(
                ReviewKycDocumentCommand(document.id, VerificationStatus.VERIFIED)
            )

    def test_kyc_review_to_pending_unsupported(self, ledger, uow_factory) -> None:
        with pytest.raises(UnsupportedOperationError):
            ReviewKycDocumentUseCase(uow_factory).execute(
                ReviewKycDocumentCommand(1, VerificationStatus.PENDING)
            )


class TestAssetAdministration:
    """Tests for UpdateAssetUseCase and delisting."""

    def test_update_price_and_name(self, ledger, uow_factory) -> None:
        asset = ledger.asset(price="10")

        updated = UpdateAssetUseCase(uow_factory).execute(
            UpdateAssetCommand(asset.id, name="  Apple  ", price=Decimal("12.5"))
        )

        assert updated.name == "Apple"
        assert updated.price == Decimal("12.500000")
        assert updated.is_active

    def test_pending_trade_keeps_its_price(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="100")
        asset = ledger.asset(price="10")
        trade = _add_trade(uow_factory, user.id, asset.id, amount="1", price="10")
        UpdateAssetUseCase(uow_factory).execute(UpdateAssetCommand(asset.id, price=Decimal("50")))

        ExecuteTradeUseCase(uow_factory).execute(trade.id)

        assert ledger.balance(user.id) == Decimal("90.00")

    def test_non_positive_price_rejected(self, ledger, uow_factory) -> None:
        asset = ledger.asset()
        with pytest.raises(InvalidAmountError):
            UpdateAssetUseCase(uow_factory).execute(
                UpdateAssetCommand(asset.id, price=Decimal("0"))
            )

    def test_unknown_asset(self, uow_factory) -> None:
        with pytest.raises(AssetNotFoundError):
            UpdateAssetUseCase(uow_factory).execute(UpdateAssetCommand(404, name="Gone"))

    def test_delisted_asset_is_hidden_and_rejects_orders(self, ledger, uow_factory) -> None:
        user = ledger.user(balance="100")
        listed = ledger.asset(symbol="AAPL")
        delisted = ledger.asset(symbol="OLD")
        UpdateAssetUseCase(uow_factory).execute(
            UpdateAssetCommand(delisted.id, is_active=False)
        )

        visible = ListAssetsUseCase(uow_factory).execute()
        everything = ListAssetsUseCase(uow_factory).execute(active_only=False)

        assert [asset.id for asset in visible] == [listed.id]
        assert {asset.id for asset in everything} == {listed.id, delisted.id}
        with pytest.raises(AssetNotFoundError):
            PlaceOrderUseCase(uow_factory).execute(
                PlaceOrderCommand(user.id, delisted.id, TradeDirection.BUY, Decimal("1"))
            )
        with pytest.raises(AssetNotFoundError):
            AddToWatchlistUseCase(uow_factory).execute(
                AddToWatchlistCommand(user.id, delisted.id)
            )


class TestWatchlist:
    def test_add_list_and_remove(self, ledger, uow_factory) -> None:
        user = ledger.user()
        apple = ledger.asset(symbol="AAPL", price="10")
        bitcoin = ledger.asset(symbol="BTC", price="20")
        add = AddToWatchlistUseCase(uow_factory)

        first = add.execute(AddToWatchlistCommand(user.id, apple.id))
        add.execute(AddToWatchlistCommand(user.id, bitcoin.id))

        assert first.asset.symbol == "AAPL"
        entries = ListWatchlistUseCase(uow_factory).execute(user.id)
        assert {entry.asset.symbol for entry in entries} == {"AAPL", "BTC"}

        RemoveFromWatchlistUseCase(uow_factory).execute(first.item.id, user.id)

        entries = ListWatchlistUseCase(uow_factory).execute(user.id)
        assert [entry.asset.symbol for entry in entries] == ["BTC"]

    def test_listed_price_follows_asset_updates(self, ledger, uow_factory) -> None:
        user = ledger.user()
        asset = ledger.asset(price="10")
        AddToWatchlistUseCase(uow_factory).execute(AddToWatchlistCommand(user.id, asset.id))
        UpdateAssetUseCase(uow_factory).execute(UpdateAssetCommand(asset.id, price=Decimal("11")))

        (entry,) = ListWatchlistUseCase(uow_factory).execute(user.id)

        assert entry.asset.price == Decimal("11.000000")

    def test_duplicate_rejected(self, ledger, uow_factory) -> None:
        user = ledger.user()
        asset = ledger.asset()
        add = AddToWatchlistUseCase(uow_factory)
        add.execute(AddToWatchlistCommand(user.id, asset.id))
        with pytest.raises(DuplicateWatchlistItemError):
            add.execute(AddToWatchlistCommand(user.id, asset.id))
        assert len(ListWatchlistUseCase(uow_factory).execute(user.id)) == 1

    def test_unknown_user_or_asset(self, ledger, uow_factory) -> None:
        user = ledger.user()
        asset = ledger.asset()
        add = AddToWatchlistUseCase(uow_factory)
        with pytest.raises(UserNotFoundError):
            add.execute(AddToWatchlistCommand(999, asset.id))
        with pytest.raises(AssetNotFoundError):
            add.execute(AddToWatchlistCommand(user.id, 999))
        with pytest.raises(UserNotFoundError):
            ListWatchlistUseCase(uow_factory).execute(999)

    def test_remove_other_users_item_rejected(self, ledger, uow_factory) -> None:
        owner = ledger.user()
        other = ledger.user()
        asset = ledger.asset()
        entry = AddToWatchlistUseCase(uow_factory).execute(
            AddToWatchlistCommand(owner.id, asset.id)
        )
        remove = RemoveFromWatchlistUseCase(uow_factory)

        with pytest.raises(WatchlistItemNotFoundError):
            remove.execute(entry.item.id, other.id)
        remove.execute(entry.item.id, owner.id)
        with pytest.raises(WatchlistItemNotFoundError):
            remove.execute(entry.item.id, owner.id)


class TestNotificationInbox:
    """Notifications stored per user and marked read."""

    @staticmethod
    def _store(uow_factory, user_id, title, notification_type=NotificationType.GENERAL):
        with uow_factory() as uow:
            notification = uow.notifications.add(
                user_id, title, f"{title} body", notification_type
            )
            uow.commit()
        return notification

    def test_list_newest_first_and_unread_filter(self, ledger, uow_factory) -> None:
        user = ledger.user()
        first = self._store(uow_factory, user.id, "First")
        second = self._store(uow_factory, user.id, "Second", NotificationType.TRADE)
        MarkNotificationsReadUseCase(uow_factory).execute(user.id, first.id)
        list_notifications = ListNotificationsUseCase(uow_factory)

        everything = list_notifications.execute(user.id)
        unread = list_notifications.execute(user.id, unread_only=True)

        assert [n.id for n in everything] == [second.id, first.id]
        assert [n.id for n in unread] == [second.id]
        assert unread[0].notification_type is NotificationType.TRADE

    def test_mark_all_read_counts_changes(self, ledger, uow_factory) -> None:
        user = ledger.user()
        other = ledger.user()
        for title in ("One", "Two"):
            self._store(uow_factory, user.id, title)
        self._store(uow_factory, other.id, "Theirs")
        mark = MarkNotificationsReadUseCase(uow_factory)

        assert mark.execute(user.id) == 2
        assert mark.execute(user.id) == 0
        assert len(ListNotificationsUseCase(uow_factory).execute(other.id, unread_only=True)) == 1

    def test_other_users_notification_rejected(self, ledger, uow_factory) -> None:
        owner = ledger.user()
        other = ledger.user()
        notification = self._store(uow_factory, owner.id, "Private")
        mark = MarkNotificationsReadUseCase(uow_factory)

        with pytest.raises(NotificationNotFoundError):
            mark.execute(other.id, notification.id)
        with pytest.raises(NotificationNotFoundError):
            mark.execute(owner.id, 404)
        with pytest.raises(UserNotFoundError):
            mark.execute(999)


class TestSendNotification:
    def test_none_notifier_is_noop(self) -> None:
        send_notification(None, 1, "subject", "message")

    def test_delivers_to_notifier(self, notifier) -> None:
        send_notification(notifier, 7, "Hello", "World")
        assert notifier.sent == [(7, "Hello", "World")]

    def test_forwards_notification_type(self, notifier) -> None:
        send_notification(notifier, 7, "Trade executed", "Done", NotificationType.TRADE)
        assert notifier.types == [NotificationType.TRADE]
