"""
Dependency providers shared by the routers.

Each provider builds a core service on top of the request's AsyncSession; tests
replace them through `app.dependency_overrides`.
"""

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.cost_engine import CostEngine
from core.currency import CurrencyConverter
from core.exceptions import (
    CircularReferenceError,
    CostingError,
    IngredientNotFoundError,
    ItemNotFoundError,
    RecipeNotFoundError,
)
from core.ledger import InventoryLedger, ItemLocks
from core.prep import PrepAggregator
from db.database import get_async_session
from db.stores import (
    SqlItemStore,
    SqlLedgerStore,
    SqlPrepSheetRepository,
    SqlRateProvider,
    SqlRecipeLookup,
)

# One lock per item for the lifetime of the process
item_locks = ItemLocks()


def get_rate_provider(db: AsyncSession = Depends(get_async_session)):
    return SqlRateProvider(db)


def get_recipe_lookup(db: AsyncSession = Depends(get_async_session)):
    return SqlRecipeLookup(db)


def get_item_store(db: AsyncSession = Depends(get_async_session)):
    return SqlItemStore(db)


def get_ledger_store(db: AsyncSession = Depends(get_async_session)):
    return SqlLedgerStore(db)


def get_prep_sheet_repository(db: AsyncSession = Depends(get_async_session)):
    return SqlPrepSheetRepository(db)


def get_currency_converter(rate_provider=Depends(get_rate_provider)) -> CurrencyConverter:
    return CurrencyConverter(rate_provider)


def get_cost_engine(
    converter: CurrencyConverter = Depends(get_currency_converter),
    recipe_lookup=Depends(get_recipe_lookup),
) -> CostEngine:
    return CostEngine(
        converter,
        recipe_lookup,
        default_target_cost_percentage=settings.default_target_cost_percentage,
    )


def get_ledger(
    item_store=Depends(get_item_store),
    ledger_store=Depends(get_ledger_store),
) -> InventoryLedger:
    return InventoryLedger(item_store, ledger_store, locks=item_locks)


def get_prep_aggregator() -> PrepAggregator:
    return PrepAggregator()


def http_error(e: CostingError) -> HTTPException:
    if isinstance(e, (RecipeNotFoundError, IngredientNotFoundError, ItemNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, CircularReferenceError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
