# coffee_grinder/services/inventory_service.py
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from coffee_grinder.models import CoffeeType, InventoryItem, OrderLineItem
from coffee_grinder.exceptions import (
    InsufficientStockError, NotFoundError, ValidationError
)
from coffee_grinder.utils.validation import (
    parse_item_id, parse_positive_int, validate_coffee_type_name, validate_inventory_fields
)

logger = logging.getLogger(__name__)

INVENTORY_FIELDS = ('coffee_name', 'coffee_type_id', 'quantity_in_stock', 'price_per_kg', 'description')


class InventoryService:
    """Service for the coffee catalog and its stock levels."""

    def __init__(self, session: Session):
        """Initialize the inventory service.

        Args:
            session: Database session
        """
        self.session = session

    def list_items(
        self,
        search: Optional[str] = None,
        coffee_type_id: Optional[int] = None,
        in_stock_only: bool = False
    ) -> List[InventoryItem]:
        """Get inventory items matching criteria.

        Args:
            search: Optional case-insensitive fragment of the coffee name
            coffee_type_id: Optional coffee type filter
            in_stock_only: Whether to include only items with stock left

        Returns:
            List of inventory items ordered by ID
        """
        query = self.session.query(InventoryItem).options(joinedload(InventoryItem.coffee_type))

        if search:
            query = query.filter(
                func.lower(InventoryItem.coffee_name).contains(search.strip().lower(), autoescape=True)
            )

        if coffee_type_id is not None:
            query = query.filter(InventoryItem.coffee_type_id == coffee_type_id)

        if in_stock_only:
            query = query.filter(InventoryItem.quantity_in_stock > 0)

        return query.order_by(InventoryItem.id).all()

    def list_in_stock(self) -> List[InventoryItem]:
        """Get every item that can still be ordered."""
        return self.list_items(in_stock_only=True)

    def get_item(self, item_id: int) -> InventoryItem:
        """Get an inventory item by ID.

        Args:
            item_id: Inventory item ID

        Returns:
            Inventory item

        Raises:
            NotFoundError: If no item has this ID
        """
        item = self.session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError(f"No coffee found with ID: {item_id}", details={'id': item_id})
        return item

    def find_item(self, raw_id: Any) -> InventoryItem:
        """Look up an item from a user-entered ID."""
        return self.get_item(parse_item_id(raw_id))

    def create_item(self, fields: Dict[str, Any]) -> int:
        """Create an inventory item.

        Args:
            fields: Dictionary of inventory fields

        Returns:
            ID of the new item

        Raises:
            ValidationError: If any field is missing or invalid
        """
        values = self._validated(fields)

        item = InventoryItem(**values)
        self.session.add(item)
        self.session.flush()

        logger.info(f"Added coffee {item.id} '{item.coffee_name}' with {item.quantity_in_stock} in stock")
        return item.id

    def update_item(self, item_id: int, fields: Dict[str, Any]) -> InventoryItem:
        """Update an inventory item.

        Fields not present in ``fields`` keep their current value and the
        merged record is validated as a whole. A sold-out item keeps its
        zero stock unless the update sets a new quantity.

        Args:
            item_id: Inventory item ID
            fields: Dictionary of fields to change

        Returns:
            Updated inventory item

        Raises:
            NotFoundError: If the item does not exist
            ValidationError: If the merged record is invalid
        """
        item = self.get_item(item_id)

        merged = {name: getattr(item, name) for name in INVENTORY_FIELDS}
        merged.update({k: v for k, v in fields.items() if k in INVENTORY_FIELDS})
        keep_stock = None if 'quantity_in_stock' in fields else item.quantity_in_stock
        values = self._validated(merged, keep_stock=keep_stock)

        for name, value in values.items():
            setattr(item, name, value)
        self.session.flush()

        logger.info(f"Updated coffee {item.id} '{item.coffee_name}'")
        return item

    def delete_item(self, item_id: int) -> int:
        """Delete an inventory item together with its order lines.

        Historical order lines referencing the item are removed as well,
        so past orders lose that line's detail while keeping their totals.

        Args:
            item_id: Inventory item ID

        Returns:
            Number of order lines deleted with the item

        Raises:
            NotFoundError: If the item does not exist
        """
        item = self.get_item(item_id)

        line_count = self.session.query(OrderLineItem).filter(OrderLineItem.coffee_id == item_id).count()
        if line_count:
            logger.warning(f"Deleting coffee {item_id} also deletes {line_count} order line(s)")

        self.session.delete(item)
        self.session.flush()

        logger.info(f"Deleted coffee {item_id}")
        return line_count

    def decrement_stock(self, item_id: int, amount: int) -> None:
        """Take ``amount`` units out of an item's stock.

        The update only applies while enough stock remains, so the stored
        quantity never goes negative even if the caller's view is stale.

        Args:
            item_id: Inventory item ID
            amount: Units to remove

        Raises:
            ValidationError: If amount is not a positive integer
            NotFoundError: If the item does not exist
            InsufficientStockError: If less than ``amount`` is in stock
        """
        if not isinstance(amount, int) or parse_positive_int(amount) is None:
            raise ValidationError(f"Invalid stock decrement: {amount!r}", details={'amount': amount})

        updated = self.session.query(InventoryItem).filter(
            InventoryItem.id == item_id,
            InventoryItem.quantity_in_stock >= amount
        ).update(
            {InventoryItem.quantity_in_stock: InventoryItem.quantity_in_stock - amount},
            synchronize_session='fetch'
        )

        if updated:
            logger.debug(f"Decremented stock of coffee {item_id} by {amount}")
            return

        item = self.get_item(item_id)
        raise InsufficientStockError(
            f"Cannot take {amount} of '{item.coffee_name}': only {item.quantity_in_stock} in stock",
            details={'id': item_id, 'requested': amount, 'available': item.quantity_in_stock}
        )

    def list_coffee_types(self) -> List[CoffeeType]:
        """Get all coffee types ordered by name."""
        return self.session.query(CoffeeType).order_by(CoffeeType.type_name).all()

    def create_coffee_type(self, type_name: str) -> int:
        """Create a coffee type.

        Args:
            type_name: Display name, unique

        Returns:
            ID of the new coffee type

        Raises:
            ValidationError: If the name is empty or already used
        """
        errors = validate_coffee_type_name(type_name)
        if errors:
            raise ValidationError(errors['type_name'], details=errors)

        type_name = type_name.strip()
        existing = self.session.query(CoffeeType).filter(
            func.lower(CoffeeType.type_name) == type_name.lower()
        ).first()
        if existing:
            raise ValidationError(
                f"Coffee type '{type_name}' already exists.",
                details={'type_name': 'Coffee type name must be unique'}
            )

        coffee_type = CoffeeType(type_name=type_name)
        self.session.add(coffee_type)
        self.session.flush()

        logger.info(f"Added coffee type {coffee_type.id} '{type_name}'")
        return coffee_type.id

    def _validated(self, fields: Dict[str, Any], keep_stock: Optional[int] = None) -> Dict[str, Any]:
        values, errors = validate_inventory_fields(fields)

        if keep_stock is not None:
            errors.pop('quantity_in_stock', None)
            values['quantity_in_stock'] = keep_stock

        if 'coffee_type_id' in values and self.session.get(CoffeeType, values['coffee_type_id']) is None:
            errors['coffee_type_id'] = 'Please select a coffee type.'

        if errors:
            # Report the first problem, keep the rest in details
            raise ValidationError(next(iter(errors.values())), details=errors)

        return values
