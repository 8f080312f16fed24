"""
Tests for InventoryLedger.
"""
import asyncio

import pytest

from core.exceptions import ItemNotFoundError
from core.ledger import InventoryLedger, ItemLocks, low_stock_items, stock_delta
from core.models import TransactionType
from conftest import InMemoryItemStore, InMemoryLedgerStore, make_item


class SlowItemStore(InMemoryItemStore):
    """Yields to the event loop between read and write."""

    async def read(self, item_id):
        state = await super().read(item_id)
        await asyncio.sleep(0)
        return state


class FailingLedgerStore(InMemoryLedgerStore):
    async def append(self, transaction):
        raise RuntimeError("ledger unavailable")


class TestStockDelta:
    """Tests for stock_delta."""

    def test_signs(self):
        """Test purchase adds, usage and waste subtract."""
        assert stock_delta(TransactionType.PURCHASE, 3) == 3
        assert stock_delta(TransactionType.USAGE, 3) == -3
        assert stock_delta(TransactionType.WASTE, -3) == -3
        assert stock_delta(TransactionType.ADJUSTMENT, 7) == 7


class TestLogTransaction:
    """Tests for InventoryLedger.log_transaction."""

    async def test_purchase_weighted_average(self, ledger, item_store):
        """Test 10 @ 5 plus 10 @ 7 gives 20 @ 6.00."""
        await ledger.log_transaction(1, "purchase", 10, cost_per_unit=7, currency="USD")

        item = item_store.items[1]
        assert item.current_stock == 20
        assert item.price_per_unit == 6.0
        assert item.currency == "USD"

    async def test_purchase_rounds_price(self, ledger, item_store):
        """Test the new average price is rounded to cents."""
        await ledger.log_transaction(1, TransactionType.PURCHASE, 20, cost_per_unit=6.333, currency="USD")

        # (10*5 + 20*6.333) / 30 = 5.8886...
        assert item_store.items[1].price_per_unit == 5.89

    async def test_purchase_without_cost_only_moves_stock(self, ledger, item_store):
        """Test a purchase with no cost leaves the price alone."""
        await ledger.log_transaction(1, "purchase", 5)

        assert item_store.items[1].current_stock == 15
        assert item_store.items[1].price_per_unit == 5.0

    async def test_purchase_without_currency_only_moves_stock(self, ledger, item_store):
        """Test a purchase with cost but no currency leaves the price alone."""
        await ledger.log_transaction(1, "purchase", 5, cost_per_unit=100)

        assert item_store.items[1].current_stock == 15
        assert item_store.items[1].price_per_unit == 5.0

    async def test_purchase_into_negative_stock_uses_cost(self, item_store, ledger_store):
        """Test the purchase cost becomes the price when stock stays at or below zero."""
        store = InMemoryItemStore([make_item(9, "Cream", -5, 4.0)])
        ledger = InventoryLedger(store, ledger_store)

        await ledger.log_transaction(9, "purchase", 3, cost_per_unit=2, currency="EUR")

        assert store.items[9].current_stock == -2
        assert store.items[9].price_per_unit == 2.0
        assert store.items[9].currency == "EUR"

    async def test_adjustment_sets_stock(self, ledger, item_store):
        """Test an adjustment of 47 sets stock to 47."""
        await ledger.log_transaction(2, "adjustment", 47)

        assert item_store.items[2].current_stock == 47
        assert item_store.items[2].price_per_unit == 9.0
        assert item_store.items[2].currency == "EUR"

    async def test_usage_overdraft(self, ledger, item_store):
        """Test usage beyond stock goes negative without error."""
        await ledger.log_transaction(3, "usage", 10)

        assert item_store.items[3].current_stock == -5

    async def test_waste(self, ledger, item_store):
        """Test waste reduces stock."""
        await ledger.log_transaction(1, "waste", 2.5)

        assert item_store.items[1].current_stock == 7.5

    async def test_records_one_transaction(self, ledger, ledger_store):
        """Test each call appends exactly one record with its fields."""
        record = await ledger.log_transaction(
            1, "purchase", 4, cost_per_unit=2.5, currency="USD", reference="INV-001", notes="weekly order"
        )

        assert len(ledger_store.records) == 1
        assert record.id == 1
        assert record.item_id == 1
        assert record.type == TransactionType.PURCHASE
        assert record.total_cost == 10.0
        assert record.reference == "INV-001"
        assert record.notes == "weekly order"
        assert record.created_at is not None

    async def test_total_cost_uses_absolute_quantity(self, ledger):
        """Test a derived total cost is never negative."""
        record = await ledger.log_transaction(2, "adjustment", -4, cost_per_unit=3)
        assert record.total_cost == 12

    async def test_explicit_total_cost_kept(self, ledger):
        """Test a given total cost is stored as is."""
        record = await ledger.log_transaction(1, "purchase", 4, cost_per_unit=2.5, currency="USD", total_cost=9.0)
        assert record.total_cost == 9.0

    async def test_unknown_type(self, ledger, ledger_store):
        """Test an unknown transaction type is rejected before anything is recorded."""
        with pytest.raises(ValueError):
            await ledger.log_transaction(1, "theft", 1)
        assert ledger_store.records == []

    async def test_missing_item(self, ledger, ledger_store):
        """Test a missing item raises and records nothing."""
        with pytest.raises(ItemNotFoundError):
            await ledger.log_transaction(404, "usage", 1)
        assert ledger_store.records == []

    async def test_failed_append_leaves_item_unchanged(self, item_store):
        """Test stock is not written when the transaction cannot be recorded."""
        ledger = InventoryLedger(item_store, FailingLedgerStore())

        with pytest.raises(RuntimeError):
            await ledger.log_transaction(1, "usage", 1)

        assert item_store.writes == []
        assert item_store.items[1].current_stock == 10

    async def test_concurrent_updates_serialized(self, ledger_store):
        """Test concurrent usage on one item loses no updates."""
        store = SlowItemStore([make_item(1, "Flour", 10)])
        ledger = InventoryLedger(store, ledger_store, locks=ItemLocks())

        await asyncio.gather(*(ledger.log_transaction(1, "usage", 1) for _ in range(20)))

        assert store.items[1].current_stock == -10
        assert len(ledger_store.records) == 20


class TestItemLocks:
    """Tests for the per-item lock registry."""

    async def test_registry_empty_after_transactions(self, item_store, ledger_store):
        """Test locks for finished and failed updates are dropped."""
        locks = ItemLocks()
        ledger = InventoryLedger(item_store, ledger_store, locks=locks)

        for item_id in (1, 2, 3):
            await ledger.log_transaction(item_id, "usage", 1)
        with pytest.raises(ItemNotFoundError):
            await ledger.log_transaction(99, "usage", 1)

        assert len(locks) == 0

    async def test_concurrent_updates_then_empty(self, ledger_store):
        """Test waiters keep the lock alive until the last update finishes."""
        store = SlowItemStore([make_item(1, "Flour", 10), make_item(2, "Butter", 5)])
        locks = ItemLocks()
        ledger = InventoryLedger(store, ledger_store, locks=locks)

        await asyncio.gather(*(
            ledger.log_transaction(item_id, "usage", 1) for _ in range(10) for item_id in (1, 2)
        ))

        assert store.items[1].current_stock == 0
        assert store.items[2].current_stock == -5
        assert len(locks) == 0

    async def test_hold_serializes_while_held(self):
        """Test a second holder waits and the lock outlives the first holder."""
        locks = ItemLocks()
        order = []

        async def worker(name):
            async with locks.hold(1):
                order.append(f"{name} in")
                await asyncio.sleep(0.01)
                order.append(f"{name} out")

        first = asyncio.create_task(worker("a"))
        await asyncio.sleep(0)
        second = asyncio.create_task(worker("b"))
        await asyncio.sleep(0)
        assert len(locks) == 1

        await asyncio.gather(first, second)

        assert order == ["a in", "a out", "b in", "b out"]
        assert len(locks) == 0

    async def test_empty_shared_registry_is_kept(self, item_store, ledger_store):
        """Test a ledger uses the registry it was given even while it is empty."""
        locks = ItemLocks()

        ledger = InventoryLedger(item_store, ledger_store, locks=locks)

        assert ledger.locks is locks


class TestHistory:
    """Tests for ledger queries."""

    async def test_history_newest_first(self, ledger):
        """Test item history is newest first and filtered by item."""
        await ledger.log_transaction(1, "purchase", 1)
        await ledger.log_transaction(2, "usage", 1)
        await ledger.log_transaction(1, "usage", 2)

        history = await ledger.history(1)

        assert [r.type for r in history] == [TransactionType.USAGE, TransactionType.PURCHASE]
        assert len(await ledger.history(1, limit=1)) == 1

    async def test_recent(self, ledger):
        """Test recent transactions across items."""
        await ledger.log_transaction(1, "purchase", 1)
        await ledger.log_transaction(2, "usage", 1)

        recent = await ledger.recent(limit=10)

        assert [r.item_id for r in recent] == [2, 1]


class TestLowStockItems:
    """Tests for low_stock_items."""

    def test_filters_and_orders(self):
        """Test items at or below minimum are returned, most depleted first."""
        items = [
            make_item(1, "Flour", 10, min_level=4),
            make_item(2, "Onion", 4, min_level=8),
            make_item(3, "Salt", 1, min_level=10),
            make_item(4, "Eggs", 12, min_level=12),
            make_item(5, "Yeast", 0, min_level=0),
        ]

        result = low_stock_items(items)

        assert [it.name for it in result] == ["Salt", "Onion", "Eggs", "Yeast"]

    def test_none_low(self, item_store):
        """Test an empty result when every item is stocked."""
        assert low_stock_items([make_item(1, "Flour", 10, min_level=4)]) == []
