"""
Consolidated CameraBridge Exception Hierarchy

Every error surfaced by a vendor client is one of a closed set of kinds so
callers can handle Hikvision, Dahua and Uniview failures the same way:

- ApiError: non-success HTTP status, or a business failure inside a 2xx body
- AuthError: 401/403 responses, login refusals, credential encryption failures
- NetworkError: no response was received at all
- RequestTimeoutError: the request exceeded its deadline (a NetworkError)
- ParameterError: invalid caller input, detected before any I/O
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Stable error classification shared by all vendors"""
    API = "api"
    AUTH = "auth"
    NETWORK = "network"
    PARAMETER = "parameter"
    TIMEOUT = "timeout"


# Fields vendors use for their business code and human readable message
VENDOR_CODE_FIELDS = ("code", "ErrCode", "errCode")
VENDOR_MESSAGE_FIELDS = ("errMsg", "ErrMsg", "desc", "message", "msg")


def extract_vendor_code(data: Any) -> Optional[str]:
    """Pull the vendor business code out of a raw payload, if any"""
    if not isinstance(data, dict):
        return None
    for field in VENDOR_CODE_FIELDS:
        value = data.get(field)
        if value is not None and value != "":
            return str(value)
    return None


def extract_vendor_message(data: Any) -> Optional[str]:
    """Pull the vendor's human readable message out of a raw payload, if any"""
    if not isinstance(data, dict):
        return None
    for field in VENDOR_MESSAGE_FIELDS:
        value = data.get(field)
        if value:
            return str(value)
    return None


# =============================================================================
# Base Exception Class
# =============================================================================


class CameraBridgeException(Exception):
    """Base exception for all CameraBridge errors."""

    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code
        self.status_code = status_code
        self.response_data = response_data
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for logging or API responses."""
        return {
            "kind": self.kind.value,
            "error_code": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "response_data": self.response_data,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value!r}, message={self.message!r}, error_code={self.error_code!r})"


# =============================================================================
# Taxonomy
# =============================================================================


class ApiError(CameraBridgeException):
    """Raised for non-success HTTP statuses and vendor business failures."""

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        response_data: Any = None,
        status_code: Optional[int] = None,
        vendor: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code=extract_vendor_code(response_data),
            status_code=status_code,
            response_data=response_data,
        )
        self.vendor = vendor
        self.vendor_message = extract_vendor_message(response_data)

        if vendor:
            self.details.update({"vendor": vendor})
        if self.vendor_message:
            self.details.update({"vendor_message": self.vendor_message})


class AuthError(CameraBridgeException):
    """Raised when authentication fails or the platform rejects credentials."""

    kind = ErrorKind.AUTH

    def __init__(
        self,
        message: str = "Authentication failed",
        response_data: Any = None,
        status_code: Optional[int] = None,
        vendor: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code=extract_vendor_code(response_data) or "AUTH_FAILED",
            status_code=status_code,
            response_data=response_data,
        )
        self.vendor = vendor

        if vendor:
            self.details.update({"vendor": vendor})


class NetworkError(CameraBridgeException):
    """Raised when no response was received (connection refused, DNS failure, reset)."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, endpoint: Optional[str] = None, original_error: Optional[BaseException] = None):
        super().__init__(message, error_code="NETWORK_ERROR")
        self.endpoint = endpoint
        self.original_error = original_error

        if endpoint:
            self.details.update({"endpoint": endpoint})
        if original_error is not None:
            self.details.update(
                {"original_error": {"type": type(original_error).__name__, "message": str(original_error)}}
            )


class RequestTimeoutError(NetworkError):
    """Raised when a request exceeds its deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_ms: Optional[int] = None,
        endpoint: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, endpoint=endpoint, original_error=original_error)
        self.error_code = "TIMEOUT"
        self.timeout_ms = timeout_ms

        if timeout_ms is not None:
            self.details.update({"timeout_ms": timeout_ms})


class ParameterError(CameraBridgeException):
    """Raised when caller input is missing or invalid."""

    kind = ErrorKind.PARAMETER

    def __init__(
        self,
        message: str,
        parameter_name: Optional[str] = None,
        parameter_value: Any = None,
        missing_fields: Optional[List[str]] = None,
    ):
        super().__init__(message, error_code="PARAMETER_ERROR")
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value
        self.missing_fields = missing_fields or []

        if parameter_name:
            self.details.update({"parameter_name": parameter_name})
        if self.missing_fields:
            self.details.update({"missing_fields": self.missing_fields})


class VendorNotFoundError(ParameterError):
    """Raised when a vendor name is not registered."""

    def __init__(self, vendor_name: str, available: Optional[List[str]] = None):
        available = available or []
        super().__init__(
            f"Vendor '{vendor_name}' not found. Available: {', '.join(available) or 'none'}",
            parameter_name="vendor",
            parameter_value=vendor_name,
        )
        self.error_code = "VENDOR_NOT_FOUND"
        self.vendor_name = vendor_name


def classify_http_error(status: int, data: Any, vendor: Optional[str] = None) -> CameraBridgeException:
    """Build the normalized error for a non-success HTTP response."""
    if status in (401, 403):
        return AuthError("Authentication failed", response_data=data, status_code=status, vendor=vendor)

    vendor_message = extract_vendor_message(data)
    message = f"API error ({status})"
    if vendor_message:
        message = f"{message}: {vendor_message}"
    return ApiError(message, response_data=data, status_code=status, vendor=vendor)
