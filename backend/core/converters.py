from typing import Dict, Optional

from core.models import (
    BreakdownEntry,
    IngredientPrice,
    IngredientRecord,
    InventoryItem,
    InventoryTransaction,
    PrepSheet,
    PrepSheetLineItem,
    PrepSheetRecipe,
    Recipe,
    RecipeComponent,
    TransactionType,
)


def _f(value) -> Optional[float]:
    return float(value) if value is not None else None


def model_to_ingredient_record(ingredient_model) -> IngredientRecord:
    """Convert SQLAlchemy Ingredient row to the price record used by costing"""
    return IngredientRecord(
        id=ingredient_model.id,
        name=ingredient_model.name,
        price=IngredientPrice(
            price_per_unit=float(ingredient_model.price_per_unit or 0),
            unit=ingredient_model.unit_of_measure,
            currency=ingredient_model.currency,
        ),
    )


def model_to_item(ingredient_model) -> InventoryItem:
    """Convert SQLAlchemy Ingredient row to its stock view"""
    return InventoryItem(
        id=ingredient_model.id,
        name=ingredient_model.name,
        current_stock=float(ingredient_model.current_stock or 0),
        price_per_unit=float(ingredient_model.price_per_unit or 0),
        currency=ingredient_model.currency,
        min_stock_level=float(ingredient_model.min_stock_level or 0),
        unit_of_measure=ingredient_model.unit_of_measure,
    )


def model_to_recipe(recipe_model) -> Recipe:
    """Convert SQLAlchemy Recipe (components loaded) to the domain recipe"""
    components = []
    for comp in recipe_model.components:
        if comp.ingredient_id is not None:
            name = comp.ingredient.name if comp.ingredient is not None else None
        else:
            name = comp.sub_recipe.name if comp.sub_recipe is not None else None
        components.append(
            RecipeComponent(
                quantity=float(comp.quantity),
                unit=comp.unit,
                ingredient_id=comp.ingredient_id,
                sub_recipe_id=comp.sub_recipe_id,
                name=name,
            )
        )

    return Recipe(
        id=recipe_model.id,
        name=recipe_model.name,
        servings=float(recipe_model.servings),
        components=components,
        waste_buffer_percent=float(recipe_model.waste_buffer_percent or 0),
        currency=recipe_model.currency,
        target_cost_percentage=_f(recipe_model.target_cost_percentage),
        selling_price=_f(recipe_model.selling_price),
        yield_amount=_f(recipe_model.yield_amount),
        yield_unit=recipe_model.yield_unit,
    )


def model_to_transaction(tx_model) -> InventoryTransaction:
    return InventoryTransaction(
        id=tx_model.id,
        item_id=tx_model.ingredient_id,
        type=TransactionType(tx_model.transaction_type),
        quantity=float(tx_model.quantity),
        cost_per_unit=_f(tx_model.cost_per_unit),
        total_cost=_f(tx_model.total_cost),
        currency=tx_model.currency,
        reference=tx_model.reference,
        notes=tx_model.notes,
        created_at=tx_model.created_at,
    )


def prep_sheet_to_json(sheet: PrepSheet) -> Dict:
    """Serialize the recipes/items snapshot columns of a prep sheet"""
    return {
        "recipes_json": [
            {
                "recipe_id": r.recipe_id,
                "recipe_name": r.recipe_name,
                "base_servings": r.base_servings,
                "requested_servings": r.requested_servings,
            }
            for r in sheet.recipes
        ],
        "items_json": [
            {
                "ingredient_id": item.ingredient_id,
                "ingredient_name": item.ingredient_name,
                "total_quantity": item.total_quantity,
                "unit": item.unit,
                "breakdown": [{"recipe_name": b.recipe_name, "qty": b.qty} for b in item.breakdown],
            }
            for item in sheet.items
        ],
    }


def model_to_prep_sheet(sheet_model) -> PrepSheet:
    return PrepSheet(
        id=sheet_model.id,
        name=sheet_model.name,
        date=sheet_model.date,
        shift=sheet_model.shift,
        prep_cook_name=sheet_model.prep_cook_name,
        notes=sheet_model.notes,
        created_at=sheet_model.created_at,
        recipes=[PrepSheetRecipe(**r) for r in (sheet_model.recipes_json or [])],
        items=[
            PrepSheetLineItem(
                ingredient_id=item["ingredient_id"],
                ingredient_name=item["ingredient_name"],
                total_quantity=item["total_quantity"],
                unit=item["unit"],
                breakdown=[BreakdownEntry(**b) for b in item.get("breakdown", [])],
            )
            for item in (sheet_model.items_json or [])
        ],
    )
