"""
Pytest fixtures for the kitchen costing tests.

The store protocols are backed by in-memory fakes; `sqlite_session` gives an
aiosqlite session with every table created for the SQL store tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import itertools
from dataclasses import replace
from datetime import date, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.cost_engine import CostEngine
from core.currency import CurrencyConverter
from core.exceptions import ItemNotFoundError
from core.ledger import InventoryLedger, ItemLocks, ItemState
from core.models import (
    IngredientPrice,
    IngredientRecord,
    InventoryItem,
    Recipe,
    RecipeComponent,
)
from db.database import Base
from db import ingredient, recipe, recipe_component, exchange_rate, prep_sheet  # noqa: F401
from db.inventory import transaction  # noqa: F401


class InMemoryRateProvider:
    def __init__(self, rates=None, fail_with=None):
        self.rates = dict(rates or {})
        self.fail_with = fail_with
        self.lookups = []
        self._ids = itertools.count(1)

    async def lookup(self, from_currency, to_currency):
        self.lookups.append((from_currency, to_currency))
        if self.fail_with is not None:
            raise self.fail_with
        rate = self.rates.get((from_currency, to_currency))
        return SimpleNamespace(rate=rate) if rate is not None else None

    async def set_rate(self, from_currency, to_currency, rate, effective_date=None, source="manual"):
        self.rates[(from_currency, to_currency)] = rate
        return SimpleNamespace(
            id=next(self._ids),
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            effective_date=effective_date or date.today(),
            source=source,
        )


class InMemoryRecipeLookup:
    def __init__(self, recipes=(), ingredients=()):
        self.recipes = {r.id: r for r in recipes}
        self.ingredients = {i.id: i for i in ingredients}

    async def get_recipe(self, recipe_id):
        return self.recipes.get(recipe_id)

    async def get_ingredient(self, ingredient_id):
        return self.ingredients.get(ingredient_id)


class InMemoryItemStore:
    def __init__(self, items=()):
        self.items = {it.id: it for it in items}
        self.writes = []

    async def read(self, item_id):
        item = self.items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return ItemState(stock=item.current_stock, price=item.price_per_unit, currency=item.currency)

    async def write(self, item_id, state):
        self.writes.append((item_id, state))
        self.items[item_id] = replace(
            self.items[item_id],
            current_stock=state.stock,
            price_per_unit=state.price,
            currency=state.currency,
        )

    async def get_item(self, item_id):
        return self.items.get(item_id)

    async def list_items(self):
        return list(self.items.values())


class InMemoryLedgerStore:
    def __init__(self):
        self.records = []
        self._ids = itertools.count(1)

    async def append(self, transaction):
        record = replace(transaction, id=next(self._ids), created_at=datetime.utcnow())
        self.records.append(record)
        return record

    async def list_for_item(self, item_id, limit=None):
        rows = [r for r in reversed(self.records) if r.item_id == item_id]
        return rows[:limit] if limit is not None else rows

    async def list_recent(self, limit=50):
        return list(reversed(self.records))[:limit]


class InMemoryPrepSheetRepository:
    def __init__(self):
        self.sheets = {}
        self._ids = itertools.count(1)

    async def save(self, sheet):
        saved = replace(sheet, id=next(self._ids), created_at=datetime.utcnow())
        self.sheets[saved.id] = saved
        return saved

    async def get(self, sheet_id):
        return self.sheets.get(sheet_id)

    async def list(self, limit=50):
        return sorted(self.sheets.values(), key=lambda s: (s.date, s.id), reverse=True)[:limit]

    async def delete(self, sheet_id):
        return self.sheets.pop(sheet_id, None) is not None


def make_ingredient(id, name, price, unit, currency="USD"):
    return IngredientRecord(id=id, name=name, price=IngredientPrice(price, unit, currency))


def make_item(id, name, stock, price=0.0, currency="USD", min_level=0.0, unit="kg"):
    return InventoryItem(
        id=id,
        name=name,
        current_stock=stock,
        price_per_unit=price,
        currency=currency,
        min_stock_level=min_level,
        unit_of_measure=unit,
    )


@pytest.fixture
def kitchen_ingredients():
    """Flour in g, butter in kg priced in EUR, milk in ml, eggs per piece."""
    return [
        make_ingredient(1, "Flour", 0.002, "g"),
        make_ingredient(2, "Butter", 10.0, "kg", "EUR"),
        make_ingredient(3, "Milk", 0.001, "ml"),
        make_ingredient(4, "Eggs", 0.25, "piece"),
        make_ingredient(5, "Chicken bones", 3.0, "kg"),
    ]


@pytest.fixture
def kitchen_recipes():
    stock = Recipe(
        id=10,
        name="Chicken Stock",
        servings=8,
        components=[RecipeComponent(quantity=2, unit="kg", ingredient_id=5)],
        yield_amount=4,
        yield_unit="l",
    )
    bread = Recipe(
        id=11,
        name="Bread",
        servings=10,
        components=[
            RecipeComponent(quantity=1000, unit="g", ingredient_id=1),
            RecipeComponent(quantity=300, unit="ml", ingredient_id=3),
        ],
    )
    pie = Recipe(
        id=12,
        name="Chicken Pie",
        servings=6,
        components=[
            RecipeComponent(quantity=400, unit="g", ingredient_id=1),
            RecipeComponent(quantity=500, unit="ml", sub_recipe_id=10),
        ],
        waste_buffer_percent=10,
        selling_price=20.0,
    )
    return [stock, bread, pie]


@pytest.fixture
def rate_provider():
    return InMemoryRateProvider({("EUR", "USD"): 1.1})


@pytest.fixture
def converter(rate_provider):
    return CurrencyConverter(rate_provider)


@pytest.fixture
def recipe_lookup(kitchen_recipes, kitchen_ingredients):
    return InMemoryRecipeLookup(kitchen_recipes, kitchen_ingredients)


@pytest.fixture
def engine(converter, recipe_lookup):
    return CostEngine(converter, recipe_lookup)


@pytest.fixture
def item_store():
    return InMemoryItemStore([
        make_item(1, "Flour", 10, 5.0, min_level=4),
        make_item(2, "Butter", 50, 9.0, "EUR", min_level=5),
        make_item(3, "Onion", 5, 1.5, min_level=8),
    ])


@pytest.fixture
def ledger_store():
    return InMemoryLedgerStore()


@pytest.fixture
def ledger(item_store, ledger_store):
    return InventoryLedger(item_store, ledger_store, locks=ItemLocks())


@pytest.fixture
async def sqlite_session():
    db_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(db_engine, expire_on_commit=False)
    async with maker() as session:
        yield session

    await db_engine.dispose()
