# coffee_grinder/services/unit_of_work.py
import logging

from coffee_grinder.db import db
from coffee_grinder.services.inventory_service import InventoryService
from coffee_grinder.services.order_service import OrderService

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Transactional unit spanning the inventory and order stores.

    Both services share one session. Writes staged through them become
    durable only on ``commit()``; leaving the block without committing
    rolls everything back.

    Usage::

        with UnitOfWork() as uow:
            order_id = uow.orders.create_order(...)
            uow.inventory.decrement_stock(item_id, 2)
            uow.commit()
    """

    def __init__(self, session_factory=None):
        """Initialize the unit of work.

        Args:
            session_factory: Callable returning a new session. Defaults to
                the global database's session factory.
        """
        self._session_factory = session_factory
        self.session = None
        self.inventory = None
        self.orders = None
        self._committed = False

    def __enter__(self):
        factory = self._session_factory or db.session_factory
        self.session = factory()
        self.inventory = InventoryService(self.session)
        self.orders = OrderService(self.session)
        self._committed = False
        return self

    def __exit__(self, exc_type, exc_value, tb):
        try:
            if not self._committed:
                self.session.rollback()
                if exc_type is not None:
                    logger.debug(f"Rolled back unit of work after {exc_type.__name__}")
        finally:
            self.session.close()
        return False

    def commit(self):
        """Make every staged write durable."""
        self.session.commit()
        self._committed = True

    def rollback(self):
        """Discard every staged write."""
        self.session.rollback()
