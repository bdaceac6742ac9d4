"""
Core ordering logic for the Coffee Grinder system.
"""

from .order_composer import (
    OrderComposer,
    OrderLineSelection,
    CustomerDetails,
    ComposerState,
    CompositionUpdate,
    StockLimitReached,
    OrderReceipt
)

__all__ = [
    'OrderComposer',
    'OrderLineSelection',
    'CustomerDetails',
    'ComposerState',
    'CompositionUpdate',
    'StockLimitReached',
    'OrderReceipt'
]
