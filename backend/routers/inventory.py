import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.exceptions import CostingError
from core.ledger import InventoryLedger, low_stock_items
from routers.deps import get_item_store, get_ledger, http_error
from schemas.inventory import (
    InventoryItemRead,
    InventoryTransactionCreate,
    InventoryTransactionRead,
    LowStockResponse,
    TransactionLogResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _item_read(item) -> InventoryItemRead:
    return InventoryItemRead(
        id=item.id,
        name=item.name,
        unit_of_measure=item.unit_of_measure,
        current_stock=item.current_stock,
        min_stock_level=item.min_stock_level,
        price_per_unit=item.price_per_unit,
        currency=item.currency,
    )


@router.post("/transactions", response_model=TransactionLogResponse, status_code=status.HTTP_201_CREATED)
async def log_transaction(
    payload: InventoryTransactionCreate,
    ledger: InventoryLedger = Depends(get_ledger),
    item_store=Depends(get_item_store),
):
    try:
        record = await ledger.log_transaction(
            payload.item_id,
            payload.transaction_type,
            payload.quantity,
            cost_per_unit=payload.cost_per_unit,
            currency=payload.currency,
            reference=payload.reference,
            notes=payload.notes,
            total_cost=payload.total_cost,
        )
    except CostingError as e:
        raise http_error(e)
    except Exception as e:
        logger.error("Failed to log transaction for item %s", payload.item_id, exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to log transaction: {e}")

    item = await item_store.get_item(payload.item_id)
    return TransactionLogResponse(
        transaction=InventoryTransactionRead.from_domain(record),
        item=_item_read(item) if item else None,
    )


@router.get("/items/{item_id}/transactions", response_model=List[InventoryTransactionRead])
async def item_history(
    item_id: int,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    ledger: InventoryLedger = Depends(get_ledger),
):
    records = await ledger.history(item_id, limit)
    return [InventoryTransactionRead.from_domain(r) for r in records]


@router.get("/transactions", response_model=List[InventoryTransactionRead])
async def recent_transactions(
    limit: int = Query(50, ge=1, le=1000),
    ledger: InventoryLedger = Depends(get_ledger),
):
    records = await ledger.recent(limit)
    return [InventoryTransactionRead.from_domain(r) for r in records]


@router.get("/low-stock", response_model=LowStockResponse)
async def low_stock(item_store=Depends(get_item_store)):
    items = await item_store.list_items()
    return LowStockResponse(items=[_item_read(it) for it in low_stock_items(items)])
