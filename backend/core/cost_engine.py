"""
Recipe costing.

Costs are resolved per line (unit conversion into the price unit, then currency
conversion into the recipe currency) and summed. A failing line contributes an
error string and, for unit mismatches, a zero cost; it never aborts the recipe.

Sub-recipes are costed recursively through a RecipeLookup. Recipes form a
directed graph, so every traversal carries a CycleGuard holding the ids on the
current path; meeting an id twice raises CircularReferenceError.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from core.currency import CurrencyConverter
from core.exceptions import (
    CircularReferenceError,
    CostingError,
    IngredientNotFoundError,
    RecipeNotFoundError,
    UnitMismatchError,
)
from core.models import IngredientPrice, IngredientRecord, Recipe
from core.units import convert_unit

logger = logging.getLogger(__name__)

# Unit a sub-recipe is priced in when it declares no yield: one serving.
SERVING_UNIT = "piece"


class RecipeLookup(Protocol):
    async def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        ...

    async def get_ingredient(self, ingredient_id: int) -> Optional[IngredientRecord]:
        ...


@dataclass
class IngredientCost:
    cost: float
    error: Optional[str] = None


@dataclass
class CostInputItem:
    """A recipe line ready for costing.

    Ingredient lines carry their price record (`price_per_unit` per
    `ingredient_unit` in `currency`). Sub-recipe lines set `sub_recipe_id` and
    leave the price fields empty; the engine resolves them.
    """
    name: str
    quantity: float
    unit: str
    price_per_unit: float = 0.0
    ingredient_unit: str = ""
    currency: str = "USD"
    sub_recipe_id: Optional[int] = None


@dataclass
class LineCost:
    name: str
    cost: float
    errors: List[str] = field(default_factory=list)


@dataclass
class RecipeTotal:
    subtotal: float
    waste_cost: float
    total_cost: float
    errors: List[str] = field(default_factory=list)
    lines: List[LineCost] = field(default_factory=list)


@dataclass
class RecipeCostSummary:
    recipe_id: int
    recipe_name: str
    currency: str
    subtotal: float
    waste_cost: float
    total_cost: float
    suggested_price: float
    effective_price: float
    profit_margin: float
    food_cost_percentage: float
    errors: List[str] = field(default_factory=list)


class CycleGuard:
    """Set of recipe ids on the current traversal path."""

    def __init__(self, initial_ids: Iterable[int] = ()):
        self._visited = set(initial_ids)

    def enter(self, recipe_id: int, name: str) -> None:
        if recipe_id in self._visited:
            raise CircularReferenceError(name)
        self._visited.add(recipe_id)

    def exit(self, recipe_id: int) -> None:
        self._visited.discard(recipe_id)

    def clone(self) -> "CycleGuard":
        return CycleGuard(self._visited)

    def __contains__(self, recipe_id) -> bool:
        return recipe_id in self._visited


def ingredient_cost(quantity: float, used_unit: str, base_price: float, base_unit: str) -> IngredientCost:
    try:
        converted = convert_unit(quantity, used_unit, base_unit)
    except UnitMismatchError as e:
        return IngredientCost(cost=0.0, error=str(e))
    return IngredientCost(cost=converted * base_price)


def profit_margin(cost: float, selling_price: float) -> float:
    if selling_price <= 0:
        return 0.0
    return (selling_price - cost) / selling_price * 100


def food_cost_percentage(cost: float, selling_price: float) -> float:
    if selling_price <= 0:
        return 0.0
    return cost / selling_price * 100


def suggested_price(cost: float, target_cost_percentage: float) -> float:
    """Price at which `cost` is `target_cost_percentage` percent of the price."""
    if target_cost_percentage <= 0:
        return 0.0
    return round(cost / (target_cost_percentage / 100), 2)


def suggested_price_for_margin(cost: float, target_margin_percent: float) -> float:
    """Price that leaves `target_margin_percent` percent of the price as profit."""
    if target_margin_percent >= 100 or target_margin_percent < 0:
        return 0.0
    return round(cost / (1 - target_margin_percent / 100), 2)


def weighted_average(cur_stock: float, cur_price: float, added_stock: float, added_price: float) -> float:
    total = cur_stock + added_stock
    if total <= 0:
        return 0.0
    return (cur_stock * cur_price + added_stock * added_price) / total


async def gather_settled(*aws) -> list:
    """
    Run awaitables concurrently and wait for every one of them to finish.

    Returns results in input order; if any failed, the first failure in input
    order is raised after its siblings have settled.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


class CostEngine:
    def __init__(
        self,
        currency_converter: CurrencyConverter,
        recipe_lookup: Optional[RecipeLookup] = None,
        default_target_cost_percentage: float = 25.0,
    ):
        self.currency_converter = currency_converter
        self.recipe_lookup = recipe_lookup
        self.default_target_cost_percentage = default_target_cost_percentage

    async def recipe_total(
        self,
        items: Sequence[CostInputItem],
        waste_buffer_percent: float = 0.0,
        recipe_currency: str = "USD",
        cycle_guard: Optional[CycleGuard] = None,
        recipe_identity: Optional[Tuple[int, str]] = None,
    ) -> RecipeTotal:
        entered = None
        if cycle_guard is not None and recipe_identity is not None:
            recipe_id, recipe_name = recipe_identity
            cycle_guard.enter(recipe_id, recipe_name)
            entered = recipe_id

        try:
            lines = await gather_settled(
                *(self._cost_line(item, recipe_currency, cycle_guard) for item in items)
            )
        finally:
            if entered is not None:
                cycle_guard.exit(entered)

        subtotal = sum(line.cost for line in lines)
        waste_cost = subtotal * waste_buffer_percent / 100
        errors = [err for line in lines for err in line.errors]
        return RecipeTotal(
            subtotal=subtotal,
            waste_cost=waste_cost,
            total_cost=subtotal + waste_cost,
            errors=errors,
            lines=list(lines),
        )

    async def _cost_line(
        self,
        item: CostInputItem,
        recipe_currency: str,
        cycle_guard: Optional[CycleGuard],
    ) -> LineCost:
        errors: List[str] = []
        price = IngredientPrice(item.price_per_unit, item.ingredient_unit, item.currency)

        if item.sub_recipe_id is not None:
            price, sub_errors = await self._sub_recipe_price(item.sub_recipe_id, cycle_guard)
            errors.extend(f"{item.name}: {err}" for err in sub_errors)

        result = ingredient_cost(item.quantity, item.unit, price.price_per_unit, price.unit)
        if result.error:
            errors.append(f"{item.name}: {result.error}")
            return LineCost(name=item.name, cost=0.0, errors=errors)

        conversion = await self.currency_converter.convert(result.cost, price.currency, recipe_currency)
        if conversion.error:
            errors.append(f"{item.name}: {conversion.error}")
        return LineCost(name=item.name, cost=conversion.converted, errors=errors)

    async def _sub_recipe_price(
        self,
        sub_recipe_id: int,
        cycle_guard: Optional[CycleGuard],
    ) -> Tuple[IngredientPrice, List[str]]:
        # Siblings run concurrently; each branch walks with its own copy of the path.
        branch = cycle_guard.clone() if cycle_guard is not None else CycleGuard()
        sub = await self._get_recipe(sub_recipe_id)
        total = await self._cost_loaded_recipe(sub, branch)

        if sub.yield_amount and sub.yield_unit:
            price = IngredientPrice(total.total_cost / sub.yield_amount, sub.yield_unit, sub.currency)
        else:
            per_serving = total.total_cost / sub.servings if sub.servings else 0.0
            price = IngredientPrice(per_serving, SERVING_UNIT, sub.currency)
        return price, total.errors

    async def cost_recipe(self, recipe_id: int, cycle_guard: Optional[CycleGuard] = None) -> RecipeTotal:
        """Cost a stored recipe, expanding its sub-recipes."""
        recipe = await self._get_recipe(recipe_id)
        return await self._cost_loaded_recipe(recipe, cycle_guard or CycleGuard())

    async def _cost_loaded_recipe(self, recipe: Recipe, cycle_guard: CycleGuard) -> RecipeTotal:
        items = await self._build_items(recipe)
        return await self.recipe_total(
            items,
            recipe.waste_buffer_percent or 0.0,
            recipe.currency,
            cycle_guard,
            (recipe.id, recipe.name),
        )

    async def _build_items(self, recipe: Recipe) -> List[CostInputItem]:
        lookup = self._require_lookup()

        async def _item(component) -> CostInputItem:
            if component.is_sub_recipe:
                return CostInputItem(
                    name=component.name or f"Sub-recipe {component.sub_recipe_id}",
                    quantity=component.quantity,
                    unit=component.unit,
                    sub_recipe_id=component.sub_recipe_id,
                )
            record = await lookup.get_ingredient(component.ingredient_id)
            if record is None:
                raise IngredientNotFoundError(component.ingredient_id)
            return CostInputItem(
                name=component.name or record.name,
                quantity=component.quantity,
                unit=component.unit,
                price_per_unit=record.price.price_per_unit,
                ingredient_unit=record.price.unit,
                currency=record.price.currency,
            )

        return await gather_settled(*(_item(c) for c in recipe.components))

    async def summarize(self, recipe_id: int) -> RecipeCostSummary:
        """Total cost plus pricing figures for a stored recipe."""
        recipe = await self._get_recipe(recipe_id)
        total = await self._cost_loaded_recipe(recipe, CycleGuard())

        target = recipe.target_cost_percentage
        if target is None:
            target = self.default_target_cost_percentage
        suggested = suggested_price(total.total_cost, target)
        if recipe.selling_price and recipe.selling_price > 0:
            effective = recipe.selling_price
        else:
            effective = suggested

        if total.errors:
            logger.info("Recipe %s costed with %d line error(s)", recipe.id, len(total.errors))

        return RecipeCostSummary(
            recipe_id=recipe.id,
            recipe_name=recipe.name,
            currency=recipe.currency,
            subtotal=total.subtotal,
            waste_cost=total.waste_cost,
            total_cost=total.total_cost,
            suggested_price=suggested,
            effective_price=effective,
            profit_margin=profit_margin(total.total_cost, effective),
            food_cost_percentage=food_cost_percentage(total.total_cost, effective),
            errors=total.errors,
        )

    async def validate_no_circular_references(self, recipe_id: int, sub_recipe_ids: Iterable[int]) -> None:
        """Raise CircularReferenceError if the proposed sub-recipes lead back to `recipe_id`."""
        root = CycleGuard([recipe_id])

        async def _walk(sub_id: int, path: CycleGuard) -> None:
            sub = await self._get_recipe(sub_id)
            path.enter(sub.id, sub.name)
            for component in sub.components:
                if component.is_sub_recipe:
                    await _walk(component.sub_recipe_id, path.clone())

        for sub_id in sub_recipe_ids:
            await _walk(sub_id, root.clone())

    async def _get_recipe(self, recipe_id: int) -> Recipe:
        recipe = await self._require_lookup().get_recipe(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    def _require_lookup(self) -> RecipeLookup:
        if self.recipe_lookup is None:
            raise CostingError("CostEngine was created without a recipe lookup")
        return self.recipe_lookup
