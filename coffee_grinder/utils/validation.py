from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from coffee_grinder.exceptions import ValidationError
from coffee_grinder.utils.math_utils import to_decimal

def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())

def parse_positive_int(value: Any) -> Optional[int]:
    """Parse a strictly positive integer, returning None when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None

def parse_positive_price(value: Any) -> Optional[Decimal]:
    """Parse a strictly positive price, returning None when invalid."""
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        price = to_decimal(value.strip() if isinstance(value, str) else value)
    except ValueError:
        return None
    return price if price > 0 else None

def parse_item_id(raw_id: Any) -> int:
    """Parse a user-entered inventory id.

    Args:
        raw_id: Id as typed by the user

    Returns:
        Integer id

    Raises:
        ValidationError: If the id is missing or not numeric
    """
    if _is_blank(raw_id):
        raise ValidationError("Please enter an ID to search.", details={'id': 'ID is required'})

    item_id = parse_positive_int(raw_id)
    if item_id is None:
        raise ValidationError("Please enter a valid numeric ID.", details={'id': 'ID must be a positive number'})

    return item_id

def validate_inventory_fields(fields: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """Validate and normalize inventory form fields.

    Args:
        fields: Dictionary with coffee_name, coffee_type_id,
            quantity_in_stock, price_per_kg and optional description

    Returns:
        Tuple of (normalized values, dictionary with validation errors)
    """
    errors = {}
    values = {}

    name = fields.get('coffee_name')
    if _is_blank(name):
        errors['coffee_name'] = 'Please enter a coffee name.'
    else:
        values['coffee_name'] = name.strip()

    type_id = fields.get('coffee_type_id')
    if type_id is None or parse_positive_int(type_id) is None:
        errors['coffee_type_id'] = 'Please select a coffee type.'
    else:
        values['coffee_type_id'] = parse_positive_int(type_id)

    quantity = parse_positive_int(fields.get('quantity_in_stock'))
    if quantity is None:
        errors['quantity_in_stock'] = 'Please enter a valid quantity (positive number).'
    else:
        values['quantity_in_stock'] = quantity

    price = parse_positive_price(fields.get('price_per_kg'))
    if price is None:
        errors['price_per_kg'] = 'Please enter a valid price (positive number).'
    else:
        values['price_per_kg'] = price

    description = fields.get('description')
    values['description'] = None if _is_blank(description) else description.strip()

    return values, errors

def validate_coffee_type_name(type_name: Any) -> Dict[str, str]:
    """Validate a coffee type name.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if _is_blank(type_name):
        errors['type_name'] = 'Please enter a coffee type name.'

    return errors

def validate_customer(customer_name: Any) -> Dict[str, str]:
    """Validate order customer details.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if _is_blank(customer_name):
        errors['customer_name'] = 'Please enter customer name'

    return errors
