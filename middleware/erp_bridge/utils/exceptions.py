"""
Custom Exception Classes

Defines application-specific exceptions for better error handling and logging.
"""

from typing import Any, Dict, Optional


class MiddlewareException(Exception):
    """Base exception for all middleware errors"""

    def __init__(
        self,
        message: str,
        error_code: str = "MIDDLEWARE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/API responses"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidPayloadException(MiddlewareException):
    """Inbound webhook body could not be parsed into an order"""

    def __init__(self, message: str = "Invalid JSON", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)


class ERPDeliveryException(MiddlewareException):
    """Order could not be delivered to the ERP within the retry budget"""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["attempts"] = attempts
        if last_status_code:
            details["last_status_code"] = last_status_code
        super().__init__(message, error_code="ERP_DELIVERY_ERROR", details=details)


class AuditLogException(MiddlewareException):
    """Audit log file could not be written or read"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="AUDIT_LOG_ERROR", details=details)
