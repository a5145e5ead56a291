"""
CameraBridge Configuration

Validated client option models and per-vendor defaults.
"""

from .models import VendorConfig, HikvisionConfig, DahuaConfig, UniviewConfig, load_config
from .vendors import VENDOR_CONFIGS, get_vendor_defaults

__all__ = [
    "VendorConfig",
    "HikvisionConfig",
    "DahuaConfig",
    "UniviewConfig",
    "load_config",
    "VENDOR_CONFIGS",
    "get_vendor_defaults",
]
