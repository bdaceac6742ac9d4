"""
Unit tests for the order composer, with the stores mocked out.
"""
import random
import unittest
from decimal import Decimal
from unittest.mock import MagicMock, call

from sqlalchemy.exc import OperationalError

from coffee_grinder.core.order_composer import (
    OrderComposer, StockLimitReached, CustomerDetails
)
from coffee_grinder.exceptions import (
    CommitError, InsufficientStockError, LoadError, NotFoundError, ValidationError
)

def make_item(item_id, name, stock, price, type_name='Arabica'):
    item = MagicMock()
    item.id = item_id
    item.coffee_name = name
    item.coffee_type.type_name = type_name
    item.quantity_in_stock = stock
    item.price_per_kg = Decimal(price)
    return item

class TestOrderComposer(unittest.TestCase):
    """Test cases for OrderComposer selection, totals and submission."""

    def setUp(self):
        self.uow = MagicMock()
        self.uow.inventory.list_in_stock.return_value = [
            make_item(1, 'Ethiopia', 5, '10.00'),
            make_item(2, 'Vietnam', 8, '4.50', 'Robusta'),
        ]
        self.uow.orders.create_order.return_value = 42

        self.uow_factory = MagicMock()
        self.uow_factory.return_value.__enter__.return_value = self.uow
        self.uow_factory.return_value.__exit__.return_value = False

        self.composer = OrderComposer(uow_factory=self.uow_factory, currency_symbol='$')
        self.composer.load()

    def _quantity(self, item_id):
        return next(l.quantity for l in self.composer.available_items() if l.item_id == item_id)

    def _writes(self):
        return (
            self.uow.orders.create_order.call_count
            + self.uow.orders.add_line_item.call_count
            + self.uow.inventory.decrement_stock.call_count
            + self.uow.commit.call_count
        )

    def test_load_builds_zero_quantities(self):
        available = self.composer.available_items()

        self.assertEqual([l.item_id for l in available], [1, 2])
        self.assertTrue(all(l.quantity == 0 for l in available))
        self.assertEqual(available[0].max_quantity, 5)
        self.assertEqual(available[1].coffee_type, 'Robusta')
        self.assertEqual(self.composer.selected_items(), ())
        self.assertEqual(self.composer.total(), Decimal('0.00'))

    def test_load_failure_leaves_composer_empty(self):
        self.uow.inventory.list_in_stock.side_effect = OperationalError('SELECT', {}, Exception('unreachable'))

        with self.assertRaises(LoadError):
            self.composer.load()

        self.assertEqual(self.composer.available_items(), ())
        self.assertEqual(self.composer.total(), Decimal('0.00'))

    def test_increase_clamps_at_stock(self):
        for _ in range(3):
            update = self.composer.increase(1)
            self.assertFalse(update.limit_reached)

        self.assertEqual(self._quantity(1), 3)
        self.assertEqual(self.composer.formatted_total(), '$30.00')

        updates = [self.composer.increase(1) for _ in range(3)]

        self.assertEqual([u.limit_reached for u in updates], [False, False, True])
        self.assertEqual(updates[-1].stock_limit, StockLimitReached(item_id=1, max_quantity=5))
        self.assertEqual(self._quantity(1), 5)
        self.assertEqual(self.composer.total(), Decimal('50.00'))

    def test_decrease_is_noop_at_zero(self):
        update = self.composer.decrease(2)

        self.assertEqual(update.quantity, 0)
        self.assertEqual(self._quantity(2), 0)

        self.composer.increase(2)
        self.composer.increase(2)
        update = self.composer.decrease(2)
        self.assertEqual(update.quantity, 1)
        self.assertEqual(update.total, Decimal('4.50'))

    def test_quantity_stays_in_bounds(self):
        rng = random.Random(1234)
        for _ in range(500):
            item_id = rng.choice([1, 2])
            if rng.random() < 0.6:
                self.composer.increase(item_id)
            else:
                self.composer.decrease(item_id)

            for line in self.composer.available_items():
                self.assertGreaterEqual(line.quantity, 0)
                self.assertLessEqual(line.quantity, line.max_quantity)

            expected = sum(
                (l.quantity * l.unit_price for l in self.composer.available_items() if l.quantity > 0),
                Decimal('0.00')
            )
            self.assertEqual(self.composer.total(), expected)

    def test_remove_is_idempotent(self):
        self.composer.increase(1)
        self.composer.increase(2)

        self.composer.remove(1)
        once = self.composer.snapshot()
        self.composer.remove(1)

        self.assertEqual(self.composer.snapshot(), once)
        self.assertEqual([l.item_id for l in self.composer.selected_items()], [2])

    def test_clear_all(self):
        self.composer.increase(1)
        self.composer.increase(2)
        self.composer.set_customer_details('Jane Doe', '555-1234', 'Grind fine')

        total = self.composer.clear_all()

        self.assertEqual(total, Decimal('0.00'))
        self.assertTrue(all(l.quantity == 0 for l in self.composer.available_items()))
        self.assertEqual(self.composer.customer, CustomerDetails())

    def test_unknown_item(self):
        with self.assertRaises(NotFoundError):
            self.composer.increase(99)

    def test_listeners_receive_snapshots(self):
        listener = MagicMock()
        unsubscribe = self.composer.subscribe(listener)

        self.composer.increase(1)
        state = listener.call_args[0][0]
        self.assertEqual(state.total, Decimal('10.00'))
        self.assertEqual([l.item_id for l in state.selected], [1])

        # At the ceiling nothing changes, so nobody is notified
        listener.reset_mock()
        for _ in range(10):
            self.composer.increase(1)
        self.assertEqual(listener.call_count, 4)

        unsubscribe()
        self.composer.decrease(1)
        self.assertEqual(listener.call_count, 4)

    def test_submit_requires_customer_name(self):
        self.composer.increase(1)
        calls_before = self.uow_factory.call_count

        with self.assertRaises(ValidationError) as ctx:
            self.composer.submit('   ', '555-1234', '')

        self.assertIn('customer_name', ctx.exception.details)
        self.assertEqual(self.uow_factory.call_count, calls_before)
        self.assertEqual(self._writes(), 0)

    def test_submit_requires_selection(self):
        calls_before = self.uow_factory.call_count

        with self.assertRaises(ValidationError):
            self.composer.submit('Jane Doe', '555-1234', '')

        self.assertEqual(self.uow_factory.call_count, calls_before)
        self.assertEqual(self._writes(), 0)

    def test_submit_runs_commit_protocol_in_load_order(self):
        self.composer.increase(2)
        for _ in range(3):
            self.composer.increase(1)

        receipt = self.composer.submit('Jane Doe', '555-1234', '')

        self.assertEqual(receipt.order_id, 42)
        self.assertEqual(receipt.total, Decimal('34.50'))

        header = self.uow.orders.create_order.call_args[1]
        self.assertEqual(header['customer_name'], 'Jane Doe')
        self.assertEqual(header['total_price'], Decimal('34.50'))

        self.assertEqual(self.uow.mock_calls[1:], [
            call.orders.create_order(**header),
            call.orders.add_line_item(42, 1, 3, Decimal('10.00')),
            call.inventory.decrement_stock(1, 3),
            call.orders.add_line_item(42, 2, 1, Decimal('4.50')),
            call.inventory.decrement_stock(2, 1),
            call.commit(),
        ])

    def test_submit_success_resets_session(self):
        self.composer.set_customer_details('Jane Doe', '555-1234')
        for _ in range(3):
            self.composer.increase(1)

        self.composer.submit()

        self.assertEqual(self.uow.orders.create_order.call_args[1]['phone_number'], '555-1234')
        self.assertEqual(self.composer.selected_items(), ())
        self.assertEqual(self.composer.total(), Decimal('0.00'))
        self.assertEqual(self.composer.customer, CustomerDetails())
        # Two units of Ethiopia remain for the rest of the session
        self.assertEqual(self.composer.available_items()[0].max_quantity, 2)

    def test_failing_listener_does_not_fail_committed_order(self):
        listener = MagicMock(side_effect=RuntimeError("display closed"))
        self.composer.increase(1)
        self.composer.subscribe(listener)

        receipt = self.composer.submit('Jane Doe', '555-1234', '')

        self.assertEqual(receipt.order_id, 42)
        self.uow.commit.assert_called_once_with()
        self.assertTrue(listener.called)
        self.assertEqual(self.composer.selected_items(), ())

    def test_commit_failure_keeps_state(self):
        self.uow.inventory.decrement_stock.side_effect = InsufficientStockError("only 1 left")
        for _ in range(3):
            self.composer.increase(1)
        before = self.composer.snapshot()

        with self.assertRaises(CommitError) as ctx:
            self.composer.submit('Jane Doe', '555-1234', '')

        self.assertIsInstance(ctx.exception.__cause__, InsufficientStockError)
        self.uow.commit.assert_not_called()
        self.assertEqual(self.composer.snapshot(), before)

if __name__ == '__main__':
    unittest.main()
