"""
Inventory ledger: applies stock transactions and keeps a weighted-average cost.

Delta policy:
- purchase           +|quantity|   (recomputes WAC when cost and currency are given)
- usage / waste      -|quantity|
- adjustment         stock := quantity (a physical count), price untouched

Stock is allowed to go negative. Every call appends exactly one transaction.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from core.cost_engine import weighted_average
from core.models import InventoryItem, InventoryTransaction, TransactionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemState:
    stock: float
    price: float
    currency: Optional[str]


class ItemStore(Protocol):
    async def read(self, item_id: int) -> ItemState:
        """Current stock/price of an item; raises ItemNotFoundError if missing."""
        ...

    async def write(self, item_id: int, state: ItemState) -> None:
        ...


class LedgerStore(Protocol):
    async def append(self, transaction: InventoryTransaction) -> InventoryTransaction:
        """Persist a transaction; returns it with `id` and `created_at` filled in."""
        ...

    async def list_for_item(self, item_id: int, limit: Optional[int] = None) -> List[InventoryTransaction]:
        ...

    async def list_recent(self, limit: int = 50) -> List[InventoryTransaction]:
        ...


class ItemLocks:
    """
    One asyncio.Lock per item id; share an instance to serialize updates across ledgers.

    Locks are created on first use and dropped once no caller holds or waits on
    them, so the registry only contains items with updates in flight.
    """

    def __init__(self):
        self._locks: Dict[Any, asyncio.Lock] = {}
        self._users: Dict[Any, int] = defaultdict(int)

    def for_item(self, item_id) -> asyncio.Lock:
        lock = self._locks.get(item_id)
        if lock is None:
            lock = self._locks[item_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, item_id):
        lock = self.for_item(item_id)
        self._users[item_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[item_id] -= 1
            if not self._users[item_id]:
                del self._users[item_id]
                self._locks.pop(item_id, None)

    def __len__(self) -> int:
        return len(self._locks)


def stock_delta(transaction_type: TransactionType, quantity: float) -> float:
    if transaction_type == TransactionType.PURCHASE:
        return abs(quantity)
    if transaction_type in (TransactionType.USAGE, TransactionType.WASTE):
        return -abs(quantity)
    # adjustment: not a delta, the raw quantity becomes the stock
    return quantity


class InventoryLedger:
    def __init__(self, item_store: ItemStore, ledger_store: LedgerStore, locks: Optional[ItemLocks] = None):
        self.item_store = item_store
        self.ledger_store = ledger_store
        self.locks = locks if locks is not None else ItemLocks()

    async def log_transaction(
        self,
        item_id: int,
        transaction_type: Union[TransactionType, str],
        quantity: float,
        cost_per_unit: Optional[float] = None,
        currency: Optional[str] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        total_cost: Optional[float] = None,
    ) -> InventoryTransaction:
        transaction_type = TransactionType(transaction_type)
        delta = stock_delta(transaction_type, quantity)

        if total_cost is None and cost_per_unit is not None:
            total_cost = abs(quantity) * cost_per_unit

        async with self.locks.hold(item_id):
            current = await self.item_store.read(item_id)

            record = await self.ledger_store.append(
                InventoryTransaction(
                    item_id=item_id,
                    type=transaction_type,
                    quantity=quantity,
                    cost_per_unit=cost_per_unit,
                    total_cost=total_cost,
                    currency=currency,
                    reference=reference,
                    notes=notes,
                )
            )

            if transaction_type == TransactionType.PURCHASE and cost_per_unit and currency:
                new_stock = current.stock + delta
                if new_stock > 0:
                    wac = weighted_average(current.stock, current.price, delta, cost_per_unit)
                else:
                    wac = cost_per_unit
                new_state = ItemState(stock=new_stock, price=round(wac, 2), currency=currency)
            elif transaction_type == TransactionType.ADJUSTMENT:
                new_state = ItemState(stock=quantity, price=current.price, currency=current.currency)
            else:
                new_state = ItemState(stock=current.stock + delta, price=current.price, currency=current.currency)

            await self.item_store.write(item_id, new_state)

        if new_state.stock < 0:
            logger.info("Item %s stock is negative after %s: %s", item_id, transaction_type.value, new_state.stock)
        return record

    async def history(self, item_id: int, limit: Optional[int] = None) -> List[InventoryTransaction]:
        return await self.ledger_store.list_for_item(item_id, limit)

    async def recent(self, limit: int = 50) -> List[InventoryTransaction]:
        return await self.ledger_store.list_recent(limit)


def low_stock_items(items: Iterable[InventoryItem]) -> List[InventoryItem]:
    """Items at or below their minimum level, most depleted first."""

    def _ratio(item: InventoryItem) -> float:
        if not item.min_stock_level:
            return float("inf")
        return item.current_stock / item.min_stock_level

    return sorted(
        (it for it in items if it.current_stock <= it.min_stock_level),
        key=_ratio,
    )
