"""
Custom exceptions for the estimation service
"""
from typing import Optional


class EstimationError(Exception):
    """Base exception for the estimation service"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class ValidationError(EstimationError):
    """Validation error"""
    pass


class StorageError(EstimationError):
    """Storage backend unavailable or returned garbage"""
    pass


class BroadcastError(EstimationError):
    """Broadcast channel error"""
    pass


class ConfigurationError(EstimationError):
    """Configuration error"""
    pass


class ClientError(EstimationError):
    """Estimation service answered with an error"""

    def __init__(self, message: str, status: int, error_code: Optional[str] = None):
        self.status = status
        super().__init__(message, error_code)
