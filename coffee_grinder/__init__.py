from .config import config
from .db import db, session_scope
from .logging_setup import logger, get_logger
from .exceptions import (
    CoffeeGrinderError, ConfigError, DatabaseError, ValidationError, NotFoundError,
    StoreError, InsufficientStockError, LoadError, CommitError
)

__all__ = [
    'config',
    'db',
    'session_scope',
    'logger',
    'get_logger',
    'CoffeeGrinderError',
    'ConfigError',
    'DatabaseError',
    'ValidationError',
    'NotFoundError',
    'StoreError',
    'InsufficientStockError',
    'LoadError',
    'CommitError'
]
