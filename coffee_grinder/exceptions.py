class CoffeeGrinderError(Exception):
    """Base exception for Coffee Grinder errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Coffee Grinder system"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(CoffeeGrinderError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(CoffeeGrinderError):
    """Exception raised for database connection errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class StoreError(CoffeeGrinderError):
    """Exception raised when a store rejects a write."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Store error"
        super().__init__(message, code, details)


class InsufficientStockError(StoreError):
    """Exception raised when a stock decrement would go below zero."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Insufficient stock"
        super().__init__(message, code or 'INSUFFICIENT_STOCK', details)


class NotFoundError(CoffeeGrinderError):
    """Exception raised when a requested record is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Record not found"
        super().__init__(message, code or 'NOT_FOUND', details)


class ValidationError(CoffeeGrinderError):
    """Exception raised for data validation errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code or 'VALIDATION', details)


class LoadError(CoffeeGrinderError):
    """Exception raised when available inventory cannot be loaded."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Error loading coffees"
        super().__init__(message, code or 'LOAD', details)


class CommitError(CoffeeGrinderError):
    """Exception raised when an order could not be committed."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Error creating order"
        super().__init__(message, code or 'COMMIT', details)
