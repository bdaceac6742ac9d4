from .inventory_service import InventoryService
from .order_service import OrderService
from .unit_of_work import UnitOfWork

__all__ = [
    'InventoryService',
    'OrderService',
    'UnitOfWork'
]
