"""
Hikvision Vendor Configuration

Connection defaults and Artemis OpenAPI paths for the Hikvision platform
"""

from typing import Dict, Any

HIKVISION_CONFIG: Dict[str, Any] = {
    "vendor_name": "hikvision",
    "display_name": "Hikvision Artemis",
    "auth_type": "hmac_sha256",

    # Connection defaults
    "default_port": 443,
    "default_protocol": "https",
    "default_timeout_ms": 30000,
    "user_agent": "CameraBridge-Hikvision/1.0.0",

    # Default page size used by the list endpoints
    "default_page_size": 1000,
}

# Headers covered by the X-Ca-Signature, in the order they are announced
SIGNED_HEADER_NAMES = "x-ca-key,x-ca-nonce,x-ca-timestamp"

API_PATHS: Dict[str, str] = {
    # OAuth
    "OAUTH_TOKEN": "/artemis/api/v1/oauth/token",

    # Resources
    "CAMERAS": "/artemis/api/resource/v1/cameras",
    "CAMERA_PREVIEW_URLS": "/artemis/api/video/v1/cameras/previewURLs",
    "REGIONS": "/artemis/api/resource/v1/regions",
    "ORGANIZATIONS": "/artemis/api/resource/v1/org/orgList",

    # Events
    "EVENTS": "/artemis/api/event/v1/events",
    "EVENTS_SUBSCRIPTION": "/artemis/api/event/v1/eventSubscriptionByEventTypes",

    # Devices
    "DEVICES": "/artemis/api/resource/v1/devices",
    "DEVICE_STATUS": "/artemis/api/nms/v1/online/device/get",

    # Persons
    "PERSONS": "/artemis/api/resource/v1/person",

    # Vehicles
    "VEHICLES": "/artemis/api/resource/v1/vehicle",

    # Access control
    "ACCESS_CONTROL_POINTS": "/artemis/api/acs/v1/accessControlPoint",
    "CARD_READERS": "/artemis/api/acs/v1/cardReader",
    "DOORS": "/artemis/api/acs/v1/door",
}
