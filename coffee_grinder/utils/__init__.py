from .math_utils import to_decimal, calculate_subtotal, calculate_total, format_currency
from .validation import (
    parse_item_id, validate_inventory_fields, validate_coffee_type_name, validate_customer
)

__all__ = [
    'to_decimal',
    'calculate_subtotal',
    'calculate_total',
    'format_currency',
    'parse_item_id',
    'validate_inventory_fields',
    'validate_coffee_type_name',
    'validate_customer'
]
