import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.models import PrepSelection
from core.prep import PrepAggregator, PrepSheetForm
from routers.deps import get_prep_aggregator, get_prep_sheet_repository, get_recipe_lookup
from schemas.prep_sheets import PrepSheetFormIn, PrepSheetRead

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_form(payload: PrepSheetFormIn) -> PrepSheetForm:
    return PrepSheetForm(
        name=payload.name,
        date=payload.date,
        shift=payload.shift,
        prep_cook_name=payload.prep_cook_name,
        notes=payload.notes,
        selections=[
            PrepSelection(recipe_id=s.recipe_id, requested_servings=s.requested_servings)
            for s in payload.selections
        ],
    )


@router.post("/generate", response_model=PrepSheetRead)
async def generate_prep_sheet(
    payload: PrepSheetFormIn,
    aggregator: PrepAggregator = Depends(get_prep_aggregator),
    recipe_lookup=Depends(get_recipe_lookup),
):
    """Preview a prep sheet without saving it."""
    sheet = await aggregator.generate(_to_form(payload), recipe_lookup)
    return PrepSheetRead.model_validate(sheet, from_attributes=True)


@router.post("/", response_model=PrepSheetRead, status_code=status.HTTP_201_CREATED)
async def create_prep_sheet(
    payload: PrepSheetFormIn,
    aggregator: PrepAggregator = Depends(get_prep_aggregator),
    recipe_lookup=Depends(get_recipe_lookup),
    repository=Depends(get_prep_sheet_repository),
):
    sheet = await aggregator.generate(_to_form(payload), recipe_lookup)
    if not sheet.recipes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid recipes selected")
    try:
        saved = await repository.save(sheet)
    except Exception as e:
        logger.error("Failed to save prep sheet %r", payload.name, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to save prep sheet: {e}")
    return PrepSheetRead.model_validate(saved, from_attributes=True)


@router.get("/", response_model=List[PrepSheetRead])
async def list_prep_sheets(
    limit: int = Query(50, ge=1, le=500),
    repository=Depends(get_prep_sheet_repository),
):
    sheets = await repository.list(limit)
    return [PrepSheetRead.model_validate(s, from_attributes=True) for s in sheets]


@router.get("/{sheet_id}", response_model=PrepSheetRead)
async def get_prep_sheet(sheet_id: int, repository=Depends(get_prep_sheet_repository)):
    sheet = await repository.get(sheet_id)
    if not sheet:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prep sheet not found")
    return PrepSheetRead.model_validate(sheet, from_attributes=True)


@router.delete("/{sheet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prep_sheet(sheet_id: int, repository=Depends(get_prep_sheet_repository)):
    deleted = await repository.delete(sheet_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prep sheet not found")
