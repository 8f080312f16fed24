"""
Domain objects passed between the costing core and its callers.

These are plain dataclasses; the SQLAlchemy tables in `db/` are mapped onto them
by `core.converters`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    WASTE = "waste"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True)
class Quantity:
    value: float
    unit: str


@dataclass(frozen=True)
class Money:
    amount: float
    currency: str


@dataclass(frozen=True)
class IngredientPrice:
    price_per_unit: float
    unit: str
    currency: str


@dataclass
class IngredientRecord:
    id: int
    name: str
    price: IngredientPrice


@dataclass
class RecipeComponent:
    """One line of a recipe: an ingredient or a sub-recipe, never both."""
    quantity: float
    unit: str
    ingredient_id: Optional[int] = None
    sub_recipe_id: Optional[int] = None
    name: Optional[str] = None

    def __post_init__(self):
        if (self.ingredient_id is None) == (self.sub_recipe_id is None):
            raise ValueError("exactly one of ingredient_id / sub_recipe_id must be set")

    @property
    def is_sub_recipe(self) -> bool:
        return self.sub_recipe_id is not None


@dataclass
class Recipe:
    id: int
    name: str
    servings: float
    components: List[RecipeComponent] = field(default_factory=list)
    waste_buffer_percent: float = 0.0
    currency: str = "USD"
    target_cost_percentage: Optional[float] = None
    selling_price: Optional[float] = None
    yield_amount: Optional[float] = None
    yield_unit: Optional[str] = None


@dataclass
class InventoryItem:
    id: int
    name: str
    current_stock: float
    price_per_unit: float
    currency: str
    min_stock_level: float
    unit_of_measure: str


@dataclass(frozen=True)
class InventoryTransaction:
    item_id: int
    type: TransactionType
    quantity: float
    cost_per_unit: Optional[float] = None
    total_cost: Optional[float] = None
    currency: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PrepSelection:
    recipe_id: int
    requested_servings: float


@dataclass
class BreakdownEntry:
    recipe_name: str
    qty: float


@dataclass
class PrepSheetLineItem:
    ingredient_id: int
    ingredient_name: str
    total_quantity: float
    unit: str
    breakdown: List[BreakdownEntry] = field(default_factory=list)


@dataclass
class PrepSheetRecipe:
    recipe_id: int
    recipe_name: str
    base_servings: float
    requested_servings: float


@dataclass
class PrepSheet:
    name: str
    date: date
    items: List[PrepSheetLineItem] = field(default_factory=list)
    recipes: List[PrepSheetRecipe] = field(default_factory=list)
    shift: Optional[str] = None
    prep_cook_name: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
