from datetime import date as date_type, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator


Shift = Literal["morning", "evening"]


class PrepSelectionIn(BaseModel):
    recipe_id: int
    requested_servings: float

    @field_validator("requested_servings")
    @classmethod
    def _servings_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("requested_servings must be > 0")
        return v


class PrepSheetFormIn(BaseModel):
    name: str
    date: date_type
    selections: List[PrepSelectionIn]
    shift: Optional[Shift] = None
    prep_cook_name: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class BreakdownEntryRead(BaseModel):
    recipe_name: str
    qty: float


class PrepSheetLineItemRead(BaseModel):
    ingredient_id: int
    ingredient_name: str
    total_quantity: float
    unit: str
    breakdown: List[BreakdownEntryRead]


class PrepSheetRecipeRead(BaseModel):
    recipe_id: int
    recipe_name: str
    base_servings: float
    requested_servings: float


class PrepSheetRead(BaseModel):
    id: Optional[int] = None
    name: str
    date: date_type
    shift: Optional[str] = None
    prep_cook_name: Optional[str] = None
    notes: Optional[str] = None
    recipes: List[PrepSheetRecipeRead]
    items: List[PrepSheetLineItemRead]
    created_at: Optional[datetime] = None
