"""
Vendor Registry

Central registry for discovering and instantiating vendor clients.
Provides a factory pattern for building a configured client by vendor name.
"""

from typing import Any, Dict, List, Mapping, Type, Union

from CameraBridge.config.models import VendorConfig
from CameraBridge.exceptions import VendorNotFoundError
from .base import BaseVendorClient, VendorInfo


class VendorRegistry:
    """
    Registry for managing vendor client implementations.

    Clients register themselves when their module is imported.
    Use create_client() to build instances, get_available_vendors() to list them.
    """

    _vendors: Dict[str, Type[BaseVendorClient]] = {}

    @classmethod
    def register(cls, name: str, client_class: Type[BaseVendorClient]):
        """Register a vendor client implementation"""
        if not issubclass(client_class, BaseVendorClient):
            raise ValueError("Vendor client class must inherit from BaseVendorClient")
        cls._vendors[name.lower()] = client_class

    @classmethod
    def get_client_class(cls, name: str) -> Type[BaseVendorClient]:
        key = name.lower()
        if key not in cls._vendors:
            raise VendorNotFoundError(name, available=cls.get_available_vendors())
        return cls._vendors[key]

    @classmethod
    def create_client(
        cls, name: str, config: Union[VendorConfig, Mapping[str, Any], None] = None, **options: Any
    ) -> BaseVendorClient:
        """Build a configured client for the named vendor"""
        return cls.get_client_class(name)(config, **options)

    @classmethod
    def get_available_vendors(cls) -> List[str]:
        return list(cls._vendors.keys())

    @classmethod
    def get_vendor_info(cls, name: str) -> VendorInfo:
        return cls.get_client_class(name).get_vendor_info()

    @classmethod
    def get_all_vendor_info(cls) -> Dict[str, VendorInfo]:
        return {name: cls.get_vendor_info(name) for name in cls.get_available_vendors()}

    @classmethod
    def is_vendor_available(cls, name: str) -> bool:
        return name.lower() in cls._vendors


def register_vendor(name: str):
    """Decorator for automatically registering vendor clients"""

    def decorator(client_class: Type[BaseVendorClient]):
        VendorRegistry.register(name, client_class)
        return client_class

    return decorator


# Convenience functions for easier access
def create_client(name: str, config: Union[VendorConfig, Mapping[str, Any], None] = None, **options: Any) -> BaseVendorClient:
    """Build a configured client for the named vendor"""
    return VendorRegistry.create_client(name, config, **options)


def get_available_vendors() -> List[str]:
    """Get list of all available vendor names"""
    return VendorRegistry.get_available_vendors()


def get_vendor_info(name: str) -> VendorInfo:
    """Get information about a specific vendor"""
    return VendorRegistry.get_vendor_info(name)
