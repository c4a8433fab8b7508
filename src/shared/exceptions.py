"""Custom exceptions for the budget tracker application."""


class BudgetTrackerException(Exception):
    """Base exception for all budget tracker errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(BudgetTrackerException):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class NotFoundError(BudgetTrackerException):
    """Raised when a resource is not found or not owned by the caller."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictError(BudgetTrackerException):
    """Raised when there's a conflict (e.g., a failed conditional write)."""

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message, status_code=409)


class DuplicateBudgetError(ConflictError):
    """Raised when a user already has an active budget for a category."""

    def __init__(self, message: str = "Budget already exists for this category"):
        super().__init__(message)


class StorageError(BudgetTrackerException):
    """Raised when storage operations fail."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, status_code=500)
