"""
Environment Variable Configuration Utility

Reads vendor client options from environment variables (and a .env file,
when present) so scripts can build clients without hard-coded credentials.
"""

import os
import logging
from typing import Any, Dict, List, Optional, Type

from dotenv import load_dotenv

from CameraBridge.config.models import DahuaConfig, HikvisionConfig, UniviewConfig, VendorConfig
from CameraBridge.exceptions import VendorNotFoundError

logger = logging.getLogger(__name__)

VENDOR_CONFIG_MODELS: Dict[str, Type[VendorConfig]] = {
    "hikvision": HikvisionConfig,
    "dahua": DahuaConfig,
    "uniview": UniviewConfig,
}


def _config_model_for(vendor_name: str) -> Type[VendorConfig]:
    key = vendor_name.lower()
    if key not in VENDOR_CONFIG_MODELS:
        raise VendorNotFoundError(vendor_name, available=list(VENDOR_CONFIG_MODELS.keys()))
    return VENDOR_CONFIG_MODELS[key]


def get_vendor_config_from_env(vendor_name: str, load_env_file: bool = True) -> Optional[Dict[str, str]]:
    """
    Get vendor client options from environment variables

    Environment variable naming convention:
    {VENDOR_NAME}_{OPTION_NAME}

    For example:
    - HIKVISION_HOST, HIKVISION_APP_KEY, HIKVISION_APP_SECRET
    - DAHUA_HOST, DAHUA_USERNAME, DAHUA_PASSWORD, DAHUA_CLIENT_ID, DAHUA_CLIENT_SECRET
    - UNIVIEW_HOST, UNIVIEW_PORT, UNIVIEW_USERNAME, UNIVIEW_PASSWORD, UNIVIEW_DEFAULT_ORG

    Args:
        vendor_name: Name of vendor ("hikvision", "dahua", "uniview")
        load_env_file: Load a .env file into the environment first

    Returns:
        Dictionary of options found in environment variables, or None if none found.
        Values stay strings; the client's config model converts them.
    """
    config_model = _config_model_for(vendor_name)
    if load_env_file:
        load_dotenv()

    env_prefix = vendor_name.upper().replace("-", "_").replace(" ", "_")
    options = {}

    for field_name in config_model.model_fields:
        env_var_name = f"{env_prefix}_{field_name.upper()}"
        value = os.getenv(env_var_name)

        if value:
            options[field_name] = value
            logger.debug(f"Found option {field_name} for {vendor_name} from env var {env_var_name}")

    if options:
        logger.info(f"Loaded {len(options)} options for {vendor_name} from environment variables")
        return options

    logger.debug(f"No environment options found for {vendor_name} (checked prefix: {env_prefix}_*)")
    return None


def get_required_fields(vendor_name: str) -> List[str]:
    """Names of the options a vendor client cannot be built without"""
    config_model = _config_model_for(vendor_name)
    return [name for name, field in config_model.model_fields.items() if field.is_required()]


def validate_vendor_env_config(vendor_name: str, load_env_file: bool = True) -> Dict[str, Any]:
    """
    Validate that every required option is available in environment variables

    Returns:
        Dictionary with validation results:
        {
            "valid": bool,
            "missing_fields": list,
            "available_fields": list,
            "message": str
        }
    """
    required_fields = get_required_fields(vendor_name)
    options = get_vendor_config_from_env(vendor_name, load_env_file=load_env_file)

    if not options:
        return {
            "valid": False,
            "missing_fields": required_fields,
            "available_fields": [],
            "message": f"No environment options found for {vendor_name}",
        }

    available_fields = list(options.keys())
    missing_fields = [field for field in required_fields if field not in available_fields]

    return {
        "valid": len(missing_fields) == 0,
        "missing_fields": missing_fields,
        "available_fields": available_fields,
        "message": (
            f"Found {len(available_fields)} options, missing {len(missing_fields)} required fields"
            if missing_fields
            else f"All {len(required_fields)} required options available"
        ),
    }
