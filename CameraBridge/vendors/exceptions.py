"""
Vendor Client Exceptions

Re-exports the consolidated CameraBridge.exceptions hierarchy so vendor code
and callers can import errors next to the clients.
"""

from CameraBridge.exceptions import (
    ApiError,
    AuthError,
    CameraBridgeException,
    ErrorKind,
    NetworkError,
    ParameterError,
    RequestTimeoutError,
    VendorNotFoundError,
    classify_http_error,
)

__all__ = [
    'ApiError',
    'AuthError',
    'CameraBridgeException',
    'ErrorKind',
    'NetworkError',
    'ParameterError',
    'RequestTimeoutError',
    'VendorNotFoundError',
    'classify_http_error',
]
