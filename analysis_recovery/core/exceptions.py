"""Custom exception classes for the recovery pipeline."""


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class NonJsonError(AppError):
    """Raised when text cannot be parsed as JSON, even after repair."""
    code = "NON_JSON"


class PayloadTooLargeError(AppError):
    """Raised when an analyze payload exceeds the configured byte ceiling."""
    def __init__(self, size: int, limit: int):
        super().__init__(f"Total file size {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit
