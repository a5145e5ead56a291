"""
Dahua Vendor Configuration

Connection defaults and ICC OpenAPI paths for the Dahua platform
"""

from typing import Dict, Any

DAHUA_CONFIG: Dict[str, Any] = {
    "vendor_name": "dahua",
    "display_name": "Dahua ICC",
    "auth_type": "rsa_password",

    # Connection defaults
    "default_port": 443,
    "default_protocol": "https",
    "default_timeout_ms": 10000,
    "user_agent": "CameraBridge-Dahua/1.0.0",

    # Token handling
    "default_token_type": "bearer",
    "token_renewal_margin_seconds": 60,

    # Organization tree is fetched with large pages
    "organization_page_size": 1000,
    "device_page_size": 50,
}

API_PATHS: Dict[str, str] = {
    # OAuth
    "PUBLIC_KEY": "/evo-apigw/evo-oauth/1.0.0/oauth/public-key",
    "ACCESS_TOKEN": "/evo-apigw/evo-oauth/1.0.0/oauth/extend/token",

    # Devices
    "DEVICES_PAGE": "/evo-apigw/evo-brm/1.2.0/device/subsystem/page",

    # Organizations
    "ORGANIZATIONS_PAGE": "/evo-apigw/evo-brm/1.2.0/organization/page",

    # Playback
    "PLAYBACK_BY_TIME": "/evo-apigw/admin/API/SS/Playback/StartPlaybackByTime",
}
