from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator, model_validator

from core.models import TransactionType


def normalize_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().upper()
    if not v:
        return None
    if len(v) != 3:
        raise ValueError("currency must be a 3-letter code (e.g. USD)")
    return v


class InventoryTransactionCreate(BaseModel):
    item_id: int
    transaction_type: TransactionType
    quantity: float
    cost_per_unit: Optional[float] = None
    total_cost: Optional[float] = None
    currency: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: Optional[str]) -> Optional[str]:
        return normalize_currency(v)

    @field_validator("reference", "notes")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def _validate_quantity(self):
        # purchases, usage and waste carry a positive amount; adjustments set an absolute level
        if self.transaction_type != TransactionType.ADJUSTMENT and self.quantity <= 0:
            raise ValueError("quantity must be > 0")
        if self.cost_per_unit is not None and self.cost_per_unit < 0:
            raise ValueError("cost_per_unit must be >= 0")
        return self


class InventoryTransactionRead(BaseModel):
    id: Optional[int] = None
    item_id: int
    transaction_type: TransactionType
    quantity: float
    cost_per_unit: Optional[float] = None
    total_cost: Optional[float] = None
    currency: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, tx) -> "InventoryTransactionRead":
        return cls(
            id=tx.id,
            item_id=tx.item_id,
            transaction_type=tx.type,
            quantity=tx.quantity,
            cost_per_unit=tx.cost_per_unit,
            total_cost=tx.total_cost,
            currency=tx.currency,
            reference=tx.reference,
            notes=tx.notes,
            created_at=tx.created_at,
        )


class InventoryItemRead(BaseModel):
    id: int
    name: str
    unit_of_measure: str
    current_stock: float
    min_stock_level: float
    price_per_unit: float
    currency: str


class TransactionLogResponse(BaseModel):
    transaction: InventoryTransactionRead
    item: Optional[InventoryItemRead] = None


class LowStockResponse(BaseModel):
    items: List[InventoryItemRead]
