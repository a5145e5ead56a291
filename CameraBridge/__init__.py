"""
CameraBridge

Unified async SDK for Hikvision Artemis, Dahua ICC and Uniview VIID.
"""

from CameraBridge.exceptions import (
    ApiError,
    AuthError,
    CameraBridgeException,
    ErrorKind,
    NetworkError,
    ParameterError,
    RequestTimeoutError,
)
from CameraBridge.vendors import (
    DahuaClient,
    HikvisionClient,
    UniviewClient,
    create_client,
    get_available_vendors,
)

__version__ = "1.0.0"

__all__ = [
    "HikvisionClient",
    "DahuaClient",
    "UniviewClient",
    "create_client",
    "get_available_vendors",
    "ApiError",
    "AuthError",
    "CameraBridgeException",
    "ErrorKind",
    "NetworkError",
    "ParameterError",
    "RequestTimeoutError",
]
