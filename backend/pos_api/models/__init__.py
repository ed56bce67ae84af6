from .catalog import Category, Item
from .inventory import InventoryRecord
from .sales import Invoice, InvoiceLine
from .sequences import CodeSequence

__all__ = [
    'Category', 'Item',
    'InventoryRecord',
    'Invoice', 'InvoiceLine',
    'CodeSequence',
]
