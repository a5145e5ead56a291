from .debug import build_curl_command, redact_headers, redact_payload
from .env_credentials import get_vendor_config_from_env, validate_vendor_env_config

__all__ = [
    "build_curl_command",
    "redact_headers",
    "redact_payload",
    "get_vendor_config_from_env",
    "validate_vendor_env_config",
]
