"""
Uniview Vendor Configuration

Connection defaults and VIID OpenAPI paths for the Uniview platform
"""

from typing import Dict, Any

UNIVIEW_CONFIG: Dict[str, Any] = {
    "vendor_name": "uniview",
    "display_name": "Uniview VIID",
    "auth_type": "challenge_response",

    # Connection defaults
    "default_port": 80,
    "default_protocol": "http",
    "default_timeout_ms": 10000,
    "default_org": "iccsid",
    "user_agent": "CameraBridge-Uniview/1.0.0",

    # Tokens live for 48 hours and are renewed a minute early
    "token_lifetime_seconds": 48 * 3600,
    "token_renewal_margin_seconds": 60,

    # Keep-alive touch once a day
    "keep_alive_interval_seconds": 24 * 3600,

    # Login retries with exponential backoff
    "login_max_retries": 3,
    "login_retry_base_delay": 1.0,

    "default_page_size": 200,
}

API_PATHS: Dict[str, str] = {
    # Authentication
    "LOGIN": "/VIID/login",
    "TOKEN_KEEP_ALIVE": "/VIID/token/alive/keep",

    # Resources
    "QUERY_RESOURCES": "/VIID/query",

    # Third party devices
    "QUERY_THIRD_PARTY_IPC": "/VIID/hadesadapter/third/party/ec/v2/query",
}

# Resource query condition types
QUERY_TYPE_RESOURCE_TYPE = 256
QUERY_TYPE_INCLUDE_CHILD_ORGS = 257
QUERY_TYPE_NAME = 1

RESOURCE_TYPE_CAMERA = "1001"
RESOURCE_TYPE_ORGANIZATION = "1"
