"""
Vendor Client System

One request/auth/error contract over three camera management platforms.

Architecture:
- BaseVendorClient: request pipeline shared by every vendor
- Authenticators: HMAC signing, RSA password grant, MD5 challenge-response
- Vendor clients: HikvisionClient, DahuaClient, UniviewClient
- VendorRegistry: factory for building clients by vendor name

Usage:
    from CameraBridge.vendors import create_client

    async with create_client("uniview", host="10.0.0.5", username="admin", password="...") as client:
        cameras = await client.api.query_all_cameras()
"""

from .base import BaseVendorClient, NormalizedResponse, VendorInfo
from .registry import VendorRegistry, create_client, get_available_vendors, get_vendor_info, register_vendor
from .exceptions import ApiError, AuthError, CameraBridgeException, NetworkError, ParameterError, RequestTimeoutError

# Import vendor implementations to register them
from .hikvision import HikvisionClient
from .dahua import DahuaClient
from .uniview import UniviewClient

__all__ = [
    "BaseVendorClient",
    "NormalizedResponse",
    "VendorInfo",
    "VendorRegistry",
    "create_client",
    "get_available_vendors",
    "get_vendor_info",
    "register_vendor",
    "HikvisionClient",
    "DahuaClient",
    "UniviewClient",
    "ApiError",
    "AuthError",
    "CameraBridgeException",
    "NetworkError",
    "ParameterError",
    "RequestTimeoutError",
]
