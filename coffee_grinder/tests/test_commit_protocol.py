"""
End-to-end tests of order submission against a real (in-memory) store.
"""
import unittest
from decimal import Decimal
from functools import partial

from coffee_grinder.core.order_composer import OrderComposer
from coffee_grinder.exceptions import CommitError
from coffee_grinder.models import InventoryItem, Order, OrderLineItem, OrderStatus
from coffee_grinder.services.unit_of_work import UnitOfWork
from coffee_grinder.tests.fixtures import make_session_factory, seed_catalog

class TestCommitProtocol(unittest.TestCase):

    def setUp(self):
        self.engine, self.session_factory = make_session_factory()
        self.ids = seed_catalog(self.session_factory)
        self.composer = OrderComposer(
            uow_factory=partial(UnitOfWork, self.session_factory),
            currency_symbol='$'
        )
        self.composer.load()

    def tearDown(self):
        self.engine.dispose()

    def _stock(self, name):
        session = self.session_factory()
        try:
            return session.get(InventoryItem, self.ids[name]).quantity_in_stock
        finally:
            session.close()

    def test_load_only_offers_coffees_in_stock(self):
        names = [line.coffee_name for line in self.composer.available_items()]
        self.assertEqual(names, ['Ethiopia', 'Vietnam'])

    def test_submit_creates_order_and_decrements_stock(self):
        for _ in range(3):
            self.composer.increase(self.ids['Ethiopia'])

        receipt = self.composer.submit('Jane Doe', '555-1234', '')

        self.assertEqual(receipt.total, Decimal('30.00'))
        session = self.session_factory()
        try:
            orders = session.query(Order).all()
            self.assertEqual(len(orders), 1)
            order = orders[0]
            self.assertEqual(order.id, receipt.order_id)
            self.assertEqual(order.status, OrderStatus.PENDING)
            self.assertEqual(order.customer_name, 'Jane Doe')
            self.assertEqual(order.phone_number, '555-1234')
            self.assertEqual(order.total_price, Decimal('30.00'))

            lines = session.query(OrderLineItem).all()
            self.assertEqual(len(lines), 1)
            self.assertEqual(
                (lines[0].order_id, lines[0].coffee_id, lines[0].quantity, lines[0].unit_price),
                (order.id, self.ids['Ethiopia'], 3, Decimal('10.00'))
            )
        finally:
            session.close()

        self.assertEqual(self._stock('Ethiopia'), 2)
        self.assertEqual(self._stock('Vietnam'), 8)
        self.assertEqual(self.composer.total(), Decimal('0.00'))

    def test_stale_stock_rolls_back_whole_order(self):
        for _ in range(2):
            self.composer.increase(self.ids['Vietnam'])
        for _ in range(4):
            self.composer.increase(self.ids['Ethiopia'])

        # Another session sells Ethiopia after this one loaded
        session = self.session_factory()
        session.get(InventoryItem, self.ids['Ethiopia']).quantity_in_stock = 1
        session.commit()
        session.close()

        before = self.composer.snapshot()
        with self.assertRaises(CommitError):
            self.composer.submit('Jane Doe', '', '')

        self.assertEqual(self.composer.snapshot(), before)
        self.assertEqual(self._stock('Ethiopia'), 1)
        self.assertEqual(self._stock('Vietnam'), 8)

        session = self.session_factory()
        try:
            self.assertEqual(session.query(Order).count(), 0)
            self.assertEqual(session.query(OrderLineItem).count(), 0)
        finally:
            session.close()

    def test_unit_of_work_discards_uncommitted_writes(self):
        with UnitOfWork(self.session_factory) as uow:
            uow.orders.create_order(customer_name='Walk-in')
            uow.inventory.decrement_stock(self.ids['Vietnam'], 1)

        self.assertEqual(self._stock('Vietnam'), 8)
        session = self.session_factory()
        try:
            self.assertEqual(session.query(Order).count(), 0)
        finally:
            session.close()

if __name__ == '__main__':
    unittest.main()
