from typing import List, Optional

from pydantic import BaseModel


class LineCostRead(BaseModel):
    name: str
    cost: float
    errors: List[str] = []


class RecipeCostRead(BaseModel):
    recipe_id: int
    subtotal: float
    waste_cost: float
    total_cost: float
    errors: List[str]
    lines: List[LineCostRead]


class RecipeCostSummaryRead(BaseModel):
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
    errors: List[str]


class ValidateComponentsRequest(BaseModel):
    sub_recipe_ids: List[int]


class ValidateComponentsResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
