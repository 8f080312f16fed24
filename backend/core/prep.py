"""
Prep sheet aggregation: scale recipes to requested servings and total the
ingredient quantities across recipes.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from core.cost_engine import RecipeLookup
from core.exceptions import UnitMismatchError
from core.models import (
    BreakdownEntry,
    PrepSelection,
    PrepSheet,
    PrepSheetLineItem,
    PrepSheetRecipe,
    Recipe,
)
from core.units import convert_unit

logger = logging.getLogger(__name__)


def scale_factor(requested_servings: float, base_servings: float) -> float:
    return requested_servings / base_servings


def scale_quantity(base_quantity: float, factor: float) -> float:
    return base_quantity * factor


@dataclass
class PrepSheetForm:
    name: str
    date: date
    selections: List[PrepSelection] = field(default_factory=list)
    shift: Optional[str] = None
    prep_cook_name: Optional[str] = None
    notes: Optional[str] = None


class PrepAggregator:
    async def aggregate(
        self,
        selections: Sequence[PrepSelection],
        recipe_lookup: RecipeLookup,
    ) -> List[PrepSheetLineItem]:
        items, _ = await self._aggregate(selections, recipe_lookup)
        return items

    async def generate(self, form: PrepSheetForm, recipe_lookup: RecipeLookup) -> PrepSheet:
        items, recipes = await self._aggregate(form.selections, recipe_lookup)
        return PrepSheet(
            name=form.name,
            date=form.date,
            shift=form.shift,
            prep_cook_name=form.prep_cook_name,
            notes=form.notes,
            items=items,
            recipes=recipes,
        )

    async def _aggregate(self, selections, recipe_lookup):
        lines: Dict[int, PrepSheetLineItem] = {}
        recipes: List[PrepSheetRecipe] = []

        for selection in selections:
            recipe = await recipe_lookup.get_recipe(selection.recipe_id)
            if recipe is None:
                logger.warning("Prep sheet: recipe %s not found, skipping", selection.recipe_id)
                continue
            if not recipe.servings or recipe.servings <= 0:
                logger.warning("Prep sheet: recipe %s has no base servings, skipping", recipe.id)
                continue

            factor = scale_factor(selection.requested_servings, recipe.servings)
            recipes.append(
                PrepSheetRecipe(
                    recipe_id=recipe.id,
                    recipe_name=recipe.name,
                    base_servings=recipe.servings,
                    requested_servings=selection.requested_servings,
                )
            )
            await self._add_recipe(lines, recipe, factor, recipe_lookup)

        items = sorted(lines.values(), key=lambda it: it.ingredient_name.lower())
        return items, recipes

    async def _add_recipe(self, lines, recipe: Recipe, factor: float, recipe_lookup) -> None:
        for component in recipe.components:
            if component.is_sub_recipe:
                continue

            qty = scale_quantity(component.quantity, factor)
            existing = lines.get(component.ingredient_id)

            if existing is None:
                name = component.name
                if not name:
                    record = await recipe_lookup.get_ingredient(component.ingredient_id)
                    name = record.name if record is not None else "Unknown Ingredient"
                lines[component.ingredient_id] = PrepSheetLineItem(
                    ingredient_id=component.ingredient_id,
                    ingredient_name=name,
                    total_quantity=qty,
                    unit=component.unit,
                    breakdown=[BreakdownEntry(recipe_name=recipe.name, qty=qty)],
                )
                continue

            if component.unit == existing.unit:
                existing.total_quantity += qty
                existing.breakdown.append(BreakdownEntry(recipe_name=recipe.name, qty=qty))
                continue

            try:
                converted = convert_unit(qty, component.unit, existing.unit)
            except UnitMismatchError:
                # Kept visible in the breakdown but not added to the total.
                logger.info(
                    "Prep sheet: %s uses %s in %s, cannot merge into %s",
                    existing.ingredient_name, component.unit, recipe.name, existing.unit,
                )
                existing.breakdown.append(
                    BreakdownEntry(recipe_name=f"{recipe.name} ({component.unit})", qty=qty)
                )
                continue

            existing.total_quantity += converted
            existing.breakdown.append(BreakdownEntry(recipe_name=recipe.name, qty=converted))
