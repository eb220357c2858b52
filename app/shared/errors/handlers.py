"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.brokerage.errors import (
    AlreadyCopyingError,
    BrokerageDomainError,
    DuplicateError,
    EntityNotFoundError,
    InsufficientBalanceError,
    InvalidAllocationError,
    InvalidAmountError,
    InvalidStateError,
    InvestmentLimitError,
    SelfCopyError,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_404 = 404
HTTP_409 = 409
HTTP_422 = 422
HTTP_500 = 500


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Starlette resolves handlers along the exception's MRO, so the
    specific handlers below win over the BrokerageDomainError catch-all.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(InsufficientBalanceError)
    async def handle_insufficient_balance(
        _request: Request, exc: InsufficientBalanceError
    ) -> JSONResponse:
        """Handle debits that would overdraw a balance."""
        logger.warning("Insufficient balance: user_id=%d", exc.user_id)
        return _error_response(HTTP_400, "Insufficient balance", exc.message)

    @app.exception_handler(EntityNotFoundError)
    async def handle_not_found(
        _request: Request, exc: EntityNotFoundError
    ) -> JSONResponse:
        """Handle any missing entity."""
        logger.warning("%s not found: %s", exc.entity, exc.entity_id)
        return _error_response(HTTP_404, f"{exc.entity} not found")

    @app.exception_handler(InvalidAmountError)
    async def handle_invalid_amount(
        _request: Request, exc: InvalidAmountError
    ) -> JSONResponse:
        logger.warning("Invalid amount: %s", exc.amount)
        return _error_response(HTTP_422, "Invalid amount", exc.message)

    @app.exception_handler(InvestmentLimitError)
    async def handle_investment_limit(
        _request: Request, exc: InvestmentLimitError
    ) -> JSONResponse:
        logger.warning("Investment limit violated: %s", exc.amount)
        return _error_response(HTTP_422, "Amount outside plan limits", exc.message)

    @app.exception_handler(InvalidAllocationError)
    async def handle_invalid_allocation(
        _request: Request, exc: InvalidAllocationError
    ) -> JSONResponse:
        logger.warning("Invalid allocation: %s", exc.allocation)
        return _error_response(HTTP_422, "Invalid allocation percentage", exc.message)

    @app.exception_handler(SelfCopyError)
    async def handle_self_copy(
        _request: Request, exc: SelfCopyError
    ) -> JSONResponse:
        logger.warning("Self copy attempt: user_id=%d", exc.user_id)
        return _error_response(HTTP_422, "Cannot copy yourself")

    @app.exception_handler(UnsupportedOperationError)
    async def handle_unsupported(
        _request: Request, exc: UnsupportedOperationError
    ) -> JSONResponse:
        logger.warning("Unsupported operation: %s", exc.message)
        return _error_response(HTTP_422, "Unsupported operation", exc.message)

    @app.exception_handler(InvalidStateError)
    async def handle_invalid_state(
        _request: Request, exc: InvalidStateError
    ) -> JSONResponse:
        """Handle operations on entities that were already resolved."""
        logger.warning("Invalid state: %s", exc.message)
        return _error_response(HTTP_409, f"{exc.entity} is {exc.status}")

    @app.exception_handler(AlreadyCopyingError)
    async def handle_already_copying(
        _request: Request, exc: AlreadyCopyingError
    ) -> JSONResponse:
        logger.warning(
            "Already copying: follower_id=%d trader_id=%d", exc.follower_id, exc.trader_id
        )
        return _error_response(HTTP_409, "Already following this trader")

    @app.exception_handler(DuplicateError)
    async def handle_duplicate(
        _request: Request, exc: DuplicateError
    ) -> JSONResponse:
        logger.warning("Duplicate %s: %s", exc.entity, exc.key)
        return _error_response(HTTP_409, f"{exc.entity} already exists")

    @app.exception_handler(BrokerageDomainError)
    async def handle_brokerage_domain(
        _request: Request, exc: BrokerageDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled brokerage domain errors."""
        logger.error("Unhandled brokerage domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
