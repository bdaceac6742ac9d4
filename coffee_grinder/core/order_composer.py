# coffee_grinder/core/order_composer.py
"""
Order composition for the point of sale.

The composer keeps the in-session working set: which in-stock coffees are
on offer, how many of each the customer wants, and the running total. It
hands immutable snapshots to the presentation layer and commits the final
order, its lines and the stock decrements as one unit of work.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError

from coffee_grinder.config import config
from coffee_grinder.exceptions import (
    CoffeeGrinderError, CommitError, LoadError, NotFoundError, ValidationError
)
from coffee_grinder.services.unit_of_work import UnitOfWork
from coffee_grinder.utils.math_utils import (
    calculate_subtotal, calculate_total, format_currency, to_decimal
)
from coffee_grinder.utils.validation import validate_customer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockLimitReached:
    """Signal that an item is already at its stock ceiling."""
    item_id: int
    max_quantity: int

    @property
    def message(self) -> str:
        return f"Cannot order more than available stock ({self.max_quantity}kg)"


@dataclass(frozen=True)
class OrderLineSelection:
    """One coffee on offer and the quantity chosen for it."""
    item_id: int
    coffee_name: str
    coffee_type: Optional[str]
    unit_price: Decimal
    quantity: int
    max_quantity: int

    @property
    def subtotal(self) -> Decimal:
        return calculate_subtotal(self.quantity, self.unit_price)


@dataclass(frozen=True)
class CustomerDetails:
    customer_name: str = ''
    phone_number: str = ''
    notes: str = ''


@dataclass(frozen=True)
class ComposerState:
    """Everything the presentation layer renders."""
    available: Tuple[OrderLineSelection, ...]
    selected: Tuple[OrderLineSelection, ...]
    total: Decimal
    customer: CustomerDetails = field(default_factory=CustomerDetails)


@dataclass(frozen=True)
class CompositionUpdate:
    """Result of a quantity change."""
    item_id: int
    quantity: int
    total: Decimal
    stock_limit: Optional[StockLimitReached] = None

    @property
    def limit_reached(self) -> bool:
        return self.stock_limit is not None


@dataclass(frozen=True)
class OrderReceipt:
    order_id: int
    total: Decimal


Listener = Callable[[ComposerState], None]


class OrderComposer:
    """Builds a customer order against the coffees currently in stock."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork] = UnitOfWork, currency_symbol: Optional[str] = None):
        """Initialize the composer.

        Args:
            uow_factory: Callable returning a fresh unit of work
            currency_symbol: Symbol used by ``formatted_total``, defaults
                to the ORDERS section of the configuration
        """
        self._uow_factory = uow_factory
        self._currency_symbol = (
            currency_symbol if currency_symbol is not None
            else config.order_config['currency_symbol']
        )
        self._available: List[OrderLineSelection] = []
        self._positions: Dict[int, int] = {}
        self._customer = CustomerDetails()
        self._listeners: List[Listener] = []

    # Read-only views

    def available_items(self) -> Tuple[OrderLineSelection, ...]:
        return tuple(self._available)

    def selected_items(self) -> Tuple[OrderLineSelection, ...]:
        """Lines with a quantity, in the order the inventory was loaded."""
        return tuple(line for line in self._available if line.quantity > 0)

    @property
    def customer(self) -> CustomerDetails:
        return self._customer

    def total(self) -> Decimal:
        """Sum of quantity x unit price over the selected lines."""
        return calculate_total((line.quantity, line.unit_price) for line in self.selected_items())

    def formatted_total(self) -> str:
        return format_currency(self.total(), self._currency_symbol)

    def snapshot(self) -> ComposerState:
        return ComposerState(
            available=self.available_items(),
            selected=self.selected_items(),
            total=self.total(),
            customer=self._customer
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callable notified with a snapshot after every change.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Mutations

    def load(self) -> Tuple[OrderLineSelection, ...]:
        """Load every coffee with stock left, each with quantity 0.

        Raises:
            LoadError: If the inventory store cannot be read. The composer
                is left empty.
        """
        try:
            with self._uow_factory() as uow:
                available = [
                    OrderLineSelection(
                        item_id=item.id,
                        coffee_name=item.coffee_name,
                        coffee_type=item.coffee_type.type_name if item.coffee_type is not None else None,
                        unit_price=to_decimal(item.price_per_kg),
                        quantity=0,
                        max_quantity=item.quantity_in_stock
                    )
                    for item in uow.inventory.list_in_stock()
                ]
        except (CoffeeGrinderError, SQLAlchemyError) as e:
            logger.error(f"Error loading coffees: {str(e)}")
            self._replace_available([])
            raise LoadError(f"Error loading coffees: {str(e)}") from e

        self._replace_available(available)
        logger.info(f"Loaded {len(available)} coffees in stock")
        return self.available_items()

    def increase(self, item_id: int) -> CompositionUpdate:
        """Add one unit of an item, up to its stock ceiling.

        At the ceiling nothing changes and the returned update carries a
        ``StockLimitReached`` signal for the caller to report.
        """
        position = self._position(item_id)
        line = self._available[position]

        if line.quantity >= line.max_quantity:
            logger.debug(f"Stock limit reached for coffee {item_id} ({line.max_quantity})")
            return CompositionUpdate(
                item_id=item_id,
                quantity=line.quantity,
                total=self.total(),
                stock_limit=StockLimitReached(item_id, line.max_quantity)
            )

        return self._set_quantity(position, line.quantity + 1)

    def decrease(self, item_id: int) -> CompositionUpdate:
        """Take one unit of an item off the order; no-op at zero."""
        position = self._position(item_id)
        line = self._available[position]

        if line.quantity == 0:
            return CompositionUpdate(item_id=item_id, quantity=0, total=self.total())

        return self._set_quantity(position, line.quantity - 1)

    def remove(self, item_id: int) -> CompositionUpdate:
        """Drop an item from the order entirely."""
        position = self._position(item_id)

        if self._available[position].quantity == 0:
            return CompositionUpdate(item_id=item_id, quantity=0, total=self.total())

        return self._set_quantity(position, 0)

    def set_customer_details(
        self,
        customer_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        notes: Optional[str] = None
    ) -> CustomerDetails:
        """Update the customer fields that are given, keep the rest."""
        changes = {
            name: value for name, value in (
                ('customer_name', customer_name),
                ('phone_number', phone_number),
                ('notes', notes)
            ) if value is not None
        }
        self._customer = replace(self._customer, **changes)
        self._notify()
        return self._customer

    def clear_all(self) -> Decimal:
        """Reset every quantity to zero and clear the customer fields.

        Confirmation is the caller's job; once called this always clears.
        """
        self._available = [replace(line, quantity=0) for line in self._available]
        self._customer = CustomerDetails()
        self._notify()
        return self.total()

    def submit(
        self,
        customer_name: Optional[str] = None,
        phone: Optional[str] = None,
        notes: Optional[str] = None
    ) -> OrderReceipt:
        """Commit the order.

        Creates the order header, then for each selected line appends an
        order line and decrements stock, all in one unit of work. Omitted
        arguments fall back to the stored customer details.

        Returns:
            Receipt with the new order ID and its total

        Raises:
            ValidationError: If the customer name is empty or nothing is
                selected. The store is not touched.
            CommitError: If any store write fails. Nothing is committed and
                the selection is left as it was.
        """
        customer_name = self._customer.customer_name if customer_name is None else customer_name
        phone = self._customer.phone_number if phone is None else phone
        notes = self._customer.notes if notes is None else notes

        errors = validate_customer(customer_name)
        if errors:
            raise ValidationError(errors['customer_name'], details=errors)

        selected = self.selected_items()
        if not selected:
            raise ValidationError(
                "Please add at least one item to your order",
                details={'items': 'Order is empty'}
            )

        total = self.total()

        try:
            with self._uow_factory() as uow:
                order_id = uow.orders.create_order(
                    customer_name=customer_name,
                    phone_number=phone,
                    notes=notes,
                    total_price=total,
                    order_date=datetime.now()
                )
                for line in selected:
                    uow.orders.add_line_item(order_id, line.item_id, line.quantity, line.unit_price)
                    uow.inventory.decrement_stock(line.item_id, line.quantity)
                uow.commit()
        except (CoffeeGrinderError, SQLAlchemyError) as e:
            logger.error(f"Error creating order for '{customer_name}': {str(e)}")
            raise CommitError(
                f"Error creating order: {str(e)}",
                details={'customer_name': customer_name, 'total': str(total)}
            ) from e

        logger.info(f"Order #{order_id} created: {len(selected)} line(s), total {total}")

        # The committed quantities are gone from the store, so lower the
        # ceilings this session still offers.
        taken = {line.item_id: line.quantity for line in selected}
        self._available = [
            replace(line, max_quantity=line.max_quantity - taken.get(line.item_id, 0))
            for line in self._available
        ]
        self.clear_all()

        return OrderReceipt(order_id=order_id, total=total)

    # Internals

    def _position(self, item_id: int) -> int:
        try:
            return self._positions[item_id]
        except KeyError:
            raise NotFoundError(f"Coffee {item_id} is not available for ordering", details={'id': item_id})

    def _set_quantity(self, position: int, quantity: int) -> CompositionUpdate:
        line = replace(self._available[position], quantity=quantity)
        self._available[position] = line
        self._notify()
        return CompositionUpdate(item_id=line.item_id, quantity=quantity, total=self.total())

    def _replace_available(self, available: List[OrderLineSelection]):
        self._available = list(available)
        self._positions = {line.item_id: i for i, line in enumerate(self._available)}
        self._notify()

    def _notify(self):
        if not self._listeners:
            return
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                # A failing listener must not undo or mask a state change
                logger.exception(f"Composer listener {listener!r} failed")
