"""
Exceptions raised by the costing core.

Per-line problems (unit mismatch, missing exchange rate) are reported as strings
on the result objects; only the errors below are raised to the caller.
"""


class CostingError(Exception):
    """Base exception for costing and inventory errors."""
    pass


class UnitMismatchError(CostingError):
    """Raised when two units belong to different dimensions."""

    def __init__(self, from_unit, to_unit, from_type, to_type, message=None):
        self.from_unit = from_unit
        self.to_unit = to_unit
        self.from_type = from_type
        self.to_type = to_type
        if message is None:
            message = (
                f"Cannot convert incompatible unit types: "
                f"{from_unit} ({from_type}) to {to_unit} ({to_type})"
            )
        super().__init__(message)


class CircularReferenceError(CostingError):
    """Raised when a recipe contains itself through its sub-recipes."""

    def __init__(self, recipe_name, message=None):
        self.recipe_name = recipe_name
        if message is None:
            message = f'Circular reference detected: Recipe "{recipe_name}"'
        super().__init__(message)


class RecipeNotFoundError(CostingError):
    def __init__(self, recipe_id, message=None):
        self.recipe_id = recipe_id
        if message is None:
            message = f"Recipe {recipe_id} not found"
        super().__init__(message)


class IngredientNotFoundError(CostingError):
    def __init__(self, ingredient_id, message=None):
        self.ingredient_id = ingredient_id
        if message is None:
            message = f"Ingredient {ingredient_id} not found"
        super().__init__(message)


class ItemNotFoundError(CostingError):
    """Raised by item stores when an inventory item does not exist."""

    def __init__(self, item_id, message=None):
        self.item_id = item_id
        if message is None:
            message = f"Inventory item {item_id} not found"
        super().__init__(message)
