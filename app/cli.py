"""
CLI entry point for ledger operations.

Usage:
    # Create the ledger tables
    python -m app.cli init-db

    # Load demo accounts, assets, traders and plans
    python -m app.cli seed

    # Execute a pending trade (and fan it out to followers)
    python -m app.cli execute-trade 42

    # Complete a pending deposit or withdrawal
    python -m app.cli complete-transaction 7

    # Run the HTTP API
    python -m app.cli serve --port 8000
"""

import argparse
import logging
import sys
from functools import partial

from app.core.config import settings
from app.domain.brokerage.errors import BrokerageDomainError
from app.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def _uow_factory(args: argparse.Namespace):
    from app.infrastructure.brokerage.database import build_engine, build_session_factory
    from app.infrastructure.brokerage.unit_of_work import SqlAlchemyUnitOfWork

    engine = build_engine(args.database_url, echo=settings.database_echo)
    return partial(SqlAlchemyUnitOfWork, build_session_factory(engine))


def _notifier(uow_factory):
    from app.infrastructure.brokerage.notifier import build_notifier

    return build_notifier(
        settings.notification_webhook_url,
        timeout=settings.notification_timeout_seconds,
        uow_factory=uow_factory if settings.notification_inbox_enabled else None,
    )


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create all ledger tables."""
    from app.infrastructure.brokerage.database import build_engine, init_db

    init_db(build_engine(args.database_url, echo=settings.database_echo))


def cmd_seed(args: argparse.Namespace) -> None:
    """Create tables if needed and load demo data."""
    from app.seed import seed_demo_data

    cmd_init_db(args)
    seed_demo_data(_uow_factory(args))


def cmd_execute_trade(args: argparse.Namespace) -> None:
    """Execute one pending trade."""
    from app.application.brokerage.execute_trade import ExecuteTradeUseCase

    uow_factory = _uow_factory(args)
    use_case = ExecuteTradeUseCase(uow_factory, notifier=_notifier(uow_factory))
    result = use_case.execute(args.trade_id)
    if not result.executed:
        logger.warning(
            "Trade %d not executed (status %s)", args.trade_id, result.trade.status.value
        )
        return
    logger.info(
        "Trade %d executed; %d copies created, %d followers failed",
        args.trade_id,
        len(result.copy_trade_ids),
        len(result.failed_follower_ids),
    )


def cmd_complete_transaction(args: argparse.Namespace) -> None:
    """Complete one pending deposit or withdrawal."""
    from app.application.brokerage.complete_transaction import CompleteTransactionUseCase

    uow_factory = _uow_factory(args)
    use_case = CompleteTransactionUseCase(uow_factory, notifier=_notifier(uow_factory))
    result = use_case.execute(args.transaction_id)
    if not result.completed:
        logger.warning(
            "Transaction %d not completed (status %s)",
            args.transaction_id,
            result.transaction.status.value,
        )
        return
    logger.info("Transaction %d completed", args.transaction_id)


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the FastAPI application with uvicorn."""
    import uvicorn

    from app.main import create_app

    uvicorn.run(create_app(args.database_url), host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Brokerage ledger CLI")
    parser.add_argument(
        "--database-url", default=settings.database_url, dest="database_url",
        help="SQLAlchemy database URL (default from settings)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create ledger tables")
    init_parser.set_defaults(func=cmd_init_db)

    seed_parser = subparsers.add_parser("seed", help="Load demo data")
    seed_parser.set_defaults(func=cmd_seed)

    exec_parser = subparsers.add_parser("execute-trade", help="Execute a pending trade")
    exec_parser.add_argument("trade_id", type=int, help="Trade id")
    exec_parser.set_defaults(func=cmd_execute_trade)

    complete_parser = subparsers.add_parser(
        "complete-transaction", help="Complete a pending deposit or withdrawal"
    )
    complete_parser.add_argument("transaction_id", type=int, help="Transaction id")
    complete_parser.set_defaults(func=cmd_complete_transaction)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default 8000)")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(level=settings.log_level, sql_echo=settings.database_echo)
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except BrokerageDomainError as exc:
        logger.error("%s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
