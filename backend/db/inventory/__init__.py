"""
Inventory ledger tables.

Models:
- InventoryTransaction (append-only; every stock/price change on an Ingredient is recorded here)
"""
