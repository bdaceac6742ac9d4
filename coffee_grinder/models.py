# coffee_grinder/models.py
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, ForeignKey, Text, Enum, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
import enum

Base = declarative_base()

class OrderStatus(enum.Enum):
    """Enum for order status.

    Values:
        PENDING ('Pending'): Order created, not yet fulfilled
        COMPLETED ('Completed'): Order handed to the customer
        CANCELLED ('Cancelled'): Order abandoned
    """
    PENDING = 'Pending'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> 'OrderStatus':
        """Create an OrderStatus from its display value or member name.

        Raises:
            ValueError if the string value is not valid
        """
        for status in cls:
            if value.strip().lower() in (status.value.lower(), status.name.lower()):
                return status
        raise ValueError(f"Invalid order status: {value}. Valid values are: Pending, Completed, Cancelled")

class CoffeeType(Base):
    __tablename__ = 'coffee_types'

    id = Column(Integer, primary_key=True)
    type_name = Column(String(100), nullable=False, unique=True)

    items = relationship("InventoryItem", back_populates="coffee_type")

    def __repr__(self):
        return f"<CoffeeType {self.id} {self.type_name!r}>"

class InventoryItem(Base):
    __tablename__ = 'coffee_inventory'
    __table_args__ = (
        CheckConstraint('quantity_in_stock >= 0', name='ck_inventory_stock_non_negative'),
        CheckConstraint('price_per_kg >= 0', name='ck_inventory_price_non_negative'),
    )

    id = Column(Integer, primary_key=True)
    coffee_name = Column(String(100), nullable=False)
    coffee_type_id = Column(Integer, ForeignKey('coffee_types.id'), nullable=False)
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    price_per_kg = Column(Numeric(10, 2), nullable=False, default=0)
    description = Column(Text)

    coffee_type = relationship("CoffeeType", back_populates="items")
    # Deleting an item removes its historical order lines as well
    line_items = relationship("OrderLineItem", back_populates="coffee", cascade="all, delete")

    def __repr__(self):
        return f"<InventoryItem {self.id} {self.coffee_name!r} stock={self.quantity_in_stock}>"

class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    order_date = Column(DateTime, nullable=False, default=func.now())
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=OrderStatus.PENDING
    )
    customer_name = Column(String(100), nullable=False)
    phone_number = Column(String(30))
    notes = Column(Text)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)

    line_items = relationship(
        "OrderLineItem", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderLineItem.id"
    )

    def __repr__(self):
        return f"<Order {self.id} {self.customer_name!r} {self.status}>"

class OrderLineItem(Base):
    __tablename__ = 'order_details'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_detail_quantity_positive'),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=False, index=True)
    coffee_id = Column(Integer, ForeignKey('coffee_inventory.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)  # snapshot at order time

    order = relationship("Order", back_populates="line_items")
    coffee = relationship("InventoryItem", back_populates="line_items")

    @property
    def subtotal(self):
        return self.quantity * self.unit_price
