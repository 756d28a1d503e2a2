"""
Inventory (one stock row per product per warehouse).

Models:
- InventoryItem (product record with available / initial-today / used-today quantities)
- InventoryMovement (append-only history of quantity changes and edits)
"""
