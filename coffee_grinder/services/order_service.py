# coffee_grinder/services/order_service.py
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional
import logging

from sqlalchemy.orm import Session, selectinload

from coffee_grinder.models import InventoryItem, Order, OrderLineItem, OrderStatus
from coffee_grinder.exceptions import NotFoundError, ValidationError
from coffee_grinder.utils.math_utils import to_decimal
from coffee_grinder.utils.validation import validate_customer

logger = logging.getLogger(__name__)


class OrderService:
    """Service for handling order-related operations."""

    def __init__(self, session: Session):
        """Initialize the order service.

        Args:
            session: Database session
        """
        self.session = session

    def create_order(
        self,
        customer_name: str,
        phone_number: Optional[str] = None,
        notes: Optional[str] = None,
        total_price: Decimal = Decimal('0.00'),
        order_date: Optional[datetime] = None,
        status: OrderStatus = OrderStatus.PENDING
    ) -> int:
        """Create an order header.

        The header is flushed so its ID is available to the line items
        added in the same transaction.

        Args:
            customer_name: Customer name (required)
            phone_number: Optional phone number
            notes: Optional free-text notes
            total_price: Order total
            order_date: Creation timestamp, defaults to now
            status: Initial status

        Returns:
            ID of the new order

        Raises:
            ValidationError: If the customer name is empty
        """
        errors = validate_customer(customer_name)
        if errors:
            raise ValidationError(errors['customer_name'], details=errors)

        order = Order(
            order_date=order_date or datetime.now(),
            status=status,
            customer_name=customer_name.strip(),
            phone_number=phone_number or None,
            notes=notes or None,
            total_price=to_decimal(total_price)
        )
        self.session.add(order)
        self.session.flush()

        logger.info(f"Created order {order.id} for '{order.customer_name}' totalling {order.total_price}")
        return order.id

    def add_line_item(self, order_id: int, item_id: int, quantity: int, unit_price: Decimal) -> OrderLineItem:
        """Append a line to an order.

        Args:
            order_id: Order ID
            item_id: Inventory item ID
            quantity: Units ordered, positive
            unit_price: Price per unit at the time of ordering

        Returns:
            The new order line

        Raises:
            ValidationError: If quantity is not positive
            NotFoundError: If the order or the inventory item does not exist
        """
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError(f"Invalid order quantity: {quantity!r}", details={'quantity': quantity})

        order = self.session.get(Order, order_id)
        if order is None:
            raise NotFoundError(f"No order found with ID: {order_id}", details={'id': order_id})

        coffee = self.session.get(InventoryItem, item_id)
        if coffee is None:
            raise NotFoundError(f"No coffee found with ID: {item_id}", details={'id': item_id})

        line = OrderLineItem(
            order=order,
            coffee=coffee,
            quantity=quantity,
            unit_price=to_decimal(unit_price)
        )
        self.session.add(line)
        self.session.flush()

        logger.debug(f"Order {order_id}: {quantity} x coffee {item_id} @ {line.unit_price}")
        return line

    def get_order(self, order_id: int) -> Order:
        """Get an order with its lines.

        Raises:
            NotFoundError: If no order has this ID
        """
        order = self.session.query(Order).options(
            selectinload(Order.line_items).selectinload(OrderLineItem.coffee).selectinload(InventoryItem.coffee_type)
        ).filter(Order.id == order_id).first()

        if order is None:
            raise NotFoundError(f"No order found with ID: {order_id}", details={'id': order_id})
        return order

    def get_orders(
        self,
        status: Optional[OrderStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None
    ) -> List[Order]:
        """Get orders matching criteria.

        Args:
            status: Optional order status filter
            from_date: Optional first day to include
            to_date: Optional last day to include

        Returns:
            List of orders, newest first
        """
        query = self.session.query(Order)

        if status is not None:
            query = query.filter(Order.status == status)

        if from_date is not None:
            query = query.filter(Order.order_date >= datetime.combine(from_date, time.min))

        if to_date is not None:
            query = query.filter(Order.order_date <= datetime.combine(to_date, time.max))

        return query.order_by(Order.order_date.desc(), Order.id.desc()).all()
