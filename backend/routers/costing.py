import logging

from fastapi import APIRouter, Depends, HTTPException, status

from core.cost_engine import CostEngine
from core.exceptions import CircularReferenceError, CostingError
from routers.deps import get_cost_engine, http_error
from schemas.costing import (
    RecipeCostRead,
    RecipeCostSummaryRead,
    ValidateComponentsRequest,
    ValidateComponentsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{recipe_id}/cost", response_model=RecipeCostRead)
async def get_recipe_cost(recipe_id: int, engine: CostEngine = Depends(get_cost_engine)):
    try:
        total = await engine.cost_recipe(recipe_id)
    except CostingError as e:
        raise http_error(e)
    except Exception as e:
        logger.error("Failed to cost recipe %s", recipe_id, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to cost recipe: {e}")

    return RecipeCostRead(
        recipe_id=recipe_id,
        subtotal=total.subtotal,
        waste_cost=total.waste_cost,
        total_cost=total.total_cost,
        errors=total.errors,
        lines=[{"name": line.name, "cost": line.cost, "errors": line.errors} for line in total.lines],
    )


@router.get("/{recipe_id}/summary", response_model=RecipeCostSummaryRead)
async def get_recipe_summary(recipe_id: int, engine: CostEngine = Depends(get_cost_engine)):
    try:
        summary = await engine.summarize(recipe_id)
    except CostingError as e:
        raise http_error(e)
    except Exception as e:
        logger.error("Failed to summarize recipe %s", recipe_id, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to summarize recipe: {e}")

    return RecipeCostSummaryRead.model_validate(summary, from_attributes=True)


@router.post("/{recipe_id}/validate-components", response_model=ValidateComponentsResponse)
async def validate_components(
    recipe_id: int,
    payload: ValidateComponentsRequest,
    engine: CostEngine = Depends(get_cost_engine),
):
    """Check that adding these sub-recipes to the recipe would not create a cycle."""
    try:
        await engine.validate_no_circular_references(recipe_id, payload.sub_recipe_ids)
    except CircularReferenceError as e:
        return ValidateComponentsResponse(valid=False, error=str(e))
    except CostingError as e:
        raise http_error(e)
    return ValidateComponentsResponse(valid=True)
