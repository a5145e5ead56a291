"""
Vendor Configuration Module

Each vendor has its own module with connection defaults and API paths.
"""

from typing import Dict, Any

from .hikvision import HIKVISION_CONFIG
from .dahua import DAHUA_CONFIG
from .uniview import UNIVIEW_CONFIG

VENDOR_CONFIGS: Dict[str, Dict[str, Any]] = {
    "hikvision": HIKVISION_CONFIG,
    "dahua": DAHUA_CONFIG,
    "uniview": UNIVIEW_CONFIG,
}


def get_vendor_defaults(vendor_name: str) -> Dict[str, Any]:
    """
    Get connection defaults for a vendor

    Raises:
        KeyError: If vendor not found
    """
    key = vendor_name.lower()
    if key not in VENDOR_CONFIGS:
        available = ", ".join(VENDOR_CONFIGS.keys())
        raise KeyError(f"Vendor '{vendor_name}' not found. Available: {available}")
    return VENDOR_CONFIGS[key]


__all__ = ["HIKVISION_CONFIG", "DAHUA_CONFIG", "UNIVIEW_CONFIG", "VENDOR_CONFIGS", "get_vendor_defaults"]
