"""
SQLAlchemy implementations of the store protocols used by the costing core.

All stores built on the same AsyncSession share one asyncio.Lock (kept in
`session.info`), because the core fans lookups out with asyncio.gather and an
AsyncSession does not allow concurrent operations.
"""

import asyncio
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.converters import (
    model_to_ingredient_record,
    model_to_item,
    model_to_prep_sheet,
    model_to_recipe,
    model_to_transaction,
    prep_sheet_to_json,
)
from core.exceptions import ItemNotFoundError
from core.ledger import ItemState
from core.models import (
    IngredientRecord,
    InventoryItem,
    InventoryTransaction,
    PrepSheet,
    Recipe,
)
from db.exchange_rate import ExchangeRate
from db.ingredient import Ingredient
from db.inventory.transaction import InventoryTransaction as InventoryTransactionModel
from db.prep_sheet import PrepSheet as PrepSheetModel
from db.recipe import Recipe as RecipeModel
from db.recipe_component import RecipeComponent as RecipeComponentModel


def session_lock(session: AsyncSession) -> asyncio.Lock:
    return session.info.setdefault("costing_lock", asyncio.Lock())


class _SessionStore:
    def __init__(self, session: AsyncSession):
        self.session = session
        self._lock = session_lock(session)


class SqlRateProvider(_SessionStore):
    async def lookup(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        async with self._lock:
            result = await self.session.execute(
                select(ExchangeRate)
                .where(
                    ExchangeRate.from_currency == from_currency,
                    ExchangeRate.to_currency == to_currency,
                )
                .order_by(ExchangeRate.effective_date.desc(), ExchangeRate.id.desc())
                .limit(1)
            )
            return result.scalars().first()

    async def set_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        effective_date: Optional[date] = None,
        source: Optional[str] = "manual",
    ) -> ExchangeRate:
        """Insert or replace the rate for a pair on a given day."""
        effective_date = effective_date or date.today()
        async with self._lock:
            result = await self.session.execute(
                select(ExchangeRate).where(
                    ExchangeRate.from_currency == from_currency,
                    ExchangeRate.to_currency == to_currency,
                    ExchangeRate.effective_date == effective_date,
                )
            )
            row = result.scalars().first()
            if row is None:
                row = ExchangeRate(
                    from_currency=from_currency,
                    to_currency=to_currency,
                    effective_date=effective_date,
                )
                self.session.add(row)
            row.rate = rate
            row.source = source
            await self.session.commit()
            await self.session.refresh(row)
            return row


class SqlRecipeLookup(_SessionStore):
    async def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        async with self._lock:
            result = await self.session.execute(
                select(RecipeModel)
                .where(RecipeModel.id == recipe_id)
                .options(
                    selectinload(RecipeModel.components).selectinload(RecipeComponentModel.ingredient),
                    selectinload(RecipeModel.components).selectinload(RecipeComponentModel.sub_recipe),
                )
                .execution_options(populate_existing=True)
            )
            recipe = result.scalars().first()
            return model_to_recipe(recipe) if recipe else None

    async def get_ingredient(self, ingredient_id: int) -> Optional[IngredientRecord]:
        async with self._lock:
            ingredient = await self.session.get(Ingredient, ingredient_id)
            return model_to_ingredient_record(ingredient) if ingredient else None


class SqlItemStore(_SessionStore):
    """Stock and price live on the Ingredient row; `write` commits the pending ledger row too."""

    async def read(self, item_id: int) -> ItemState:
        async with self._lock:
            result = await self.session.execute(
                select(Ingredient).where(Ingredient.id == item_id).with_for_update()
            )
            ingredient = result.scalars().first()
            if ingredient is None:
                raise ItemNotFoundError(item_id)
            return ItemState(
                stock=float(ingredient.current_stock or 0),
                price=float(ingredient.price_per_unit or 0),
                currency=ingredient.currency,
            )

    async def write(self, item_id: int, state: ItemState) -> None:
        async with self._lock:
            ingredient = await self.session.get(Ingredient, item_id)
            if ingredient is None:
                raise ItemNotFoundError(item_id)
            ingredient.current_stock = state.stock
            ingredient.price_per_unit = state.price
            ingredient.currency = state.currency
            await self.session.commit()

    async def get_item(self, item_id: int) -> Optional[InventoryItem]:
        async with self._lock:
            ingredient = await self.session.get(Ingredient, item_id, populate_existing=True)
            return model_to_item(ingredient) if ingredient else None

    async def list_items(self) -> List[InventoryItem]:
        async with self._lock:
            result = await self.session.execute(select(Ingredient).order_by(Ingredient.name))
            return [model_to_item(row) for row in result.scalars().all()]


class SqlLedgerStore(_SessionStore):
    async def append(self, transaction: InventoryTransaction) -> InventoryTransaction:
        async with self._lock:
            row = InventoryTransactionModel(
                ingredient_id=transaction.item_id,
                transaction_type=transaction.type.value,
                quantity=transaction.quantity,
                cost_per_unit=transaction.cost_per_unit,
                total_cost=transaction.total_cost,
                currency=transaction.currency,
                reference=transaction.reference,
                notes=transaction.notes,
            )
            self.session.add(row)
            await self.session.flush()
            return model_to_transaction(row)

    async def list_for_item(self, item_id: int, limit: Optional[int] = None) -> List[InventoryTransaction]:
        query = (
            select(InventoryTransactionModel)
            .where(InventoryTransactionModel.ingredient_id == item_id)
            .order_by(InventoryTransactionModel.created_at.desc(), InventoryTransactionModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        async with self._lock:
            result = await self.session.execute(query)
            return [model_to_transaction(row) for row in result.scalars().all()]

    async def list_recent(self, limit: int = 50) -> List[InventoryTransaction]:
        async with self._lock:
            result = await self.session.execute(
                select(InventoryTransactionModel)
                .order_by(InventoryTransactionModel.created_at.desc(), InventoryTransactionModel.id.desc())
                .limit(limit)
            )
            return [model_to_transaction(row) for row in result.scalars().all()]


class SqlPrepSheetRepository(_SessionStore):
    async def save(self, sheet: PrepSheet) -> PrepSheet:
        async with self._lock:
            row = PrepSheetModel(
                name=sheet.name,
                date=sheet.date,
                shift=sheet.shift,
                prep_cook_name=sheet.prep_cook_name,
                notes=sheet.notes,
                **prep_sheet_to_json(sheet),
            )
            self.session.add(row)
            await self.session.commit()
            await self.session.refresh(row)
            return model_to_prep_sheet(row)

    async def get(self, sheet_id: int) -> Optional[PrepSheet]:
        async with self._lock:
            row = await self.session.get(PrepSheetModel, sheet_id)
            return model_to_prep_sheet(row) if row else None

    async def list(self, limit: int = 50) -> List[PrepSheet]:
        async with self._lock:
            result = await self.session.execute(
                select(PrepSheetModel)
                .order_by(PrepSheetModel.date.desc(), PrepSheetModel.id.desc())
                .limit(limit)
            )
            return [model_to_prep_sheet(row) for row in result.scalars().all()]

    async def delete(self, sheet_id: int) -> bool:
        async with self._lock:
            row = await self.session.get(PrepSheetModel, sheet_id)
            if row is None:
                return False
            await self.session.delete(row)
            await self.session.commit()
            return True
