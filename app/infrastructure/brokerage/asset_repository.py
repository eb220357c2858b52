"""
Adapter: Asset repository.

Implements AssetRepository port. Assets are never deleted, since trades
and watchlists keep referring to them; delisting clears ``is_active``.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.brokerage.entities import Asset, AssetType
from app.domain.brokerage.errors import AssetNotFoundError, DuplicateAssetError
from app.domain.brokerage.ledger import to_price
from app.domain.brokerage.ports import AssetRepository
from app.infrastructure.brokerage.models import AssetRow


def _to_entity(row: AssetRow) -> Asset:
    return Asset(
        id=row.id,
        symbol=row.symbol,
        name=row.name,
        asset_type=AssetType(row.asset_type),
        price=to_price(row.price),
        is_active=row.is_active,
    )


class AssetRepositoryAdapter(AssetRepository):
    """SQLAlchemy implementation of the asset repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, asset_id: int) -> Optional[Asset]:
        row = self._session.get(AssetRow, asset_id)
        return _to_entity(row) if row else None

    def get_by_symbol(self, symbol: str) -> Optional[Asset]:
        row = self._session.execute(
            select(AssetRow).where(AssetRow.symbol == symbol)
        ).scalar_one_or_none()
        return _to_entity(row) if row else None

    def list_all(
        self, asset_type: Optional[AssetType] = None, active_only: bool = True
    ) -> list[Asset]:
        stmt = select(AssetRow)
        if active_only:
            stmt = stmt.where(AssetRow.is_active.is_(True))
        if asset_type is not None:
            stmt = stmt.where(AssetRow.asset_type == asset_type.value)
        rows = self._session.execute(stmt.order_by(AssetRow.symbol)).scalars()
        return [_to_entity(row) for row in rows]

    def add(
        self, symbol: str, name: str, asset_type: AssetType, price: Decimal
    ) -> Asset:
        row = AssetRow(
            symbol=symbol,
            name=name,
            asset_type=asset_type.value,
            price=to_price(price),
            is_active=True,
        )
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateAssetError(symbol) from exc
        return _to_entity(row)

    def update(
        self,
        asset_id: int,
        name: Optional[str] = None,
        price: Optional[Decimal] = None,
        is_active: Optional[bool] = None,
    ) -> Asset:
        row = self._session.get(AssetRow, asset_id)
        if row is None:
            raise AssetNotFoundError(asset_id)
        if name is not None:
            row.name = name
        if price is not None:
            row.price = to_price(price)
        if is_active is not None:
            row.is_active = is_active
        self._session.flush()
        return _to_entity(row)
