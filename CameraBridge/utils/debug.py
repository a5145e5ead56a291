"""
Request debugging helpers

Used by clients constructed with debug=True to log what goes over the wire
without leaking credentials.
"""

from typing import Any, Dict, Mapping, Optional

SENSITIVE_HEADERS = {"authorization", "x-ca-signature", "cookie"}
SENSITIVE_FIELDS = {"password", "client_secret", "app_secret", "appsecret", "loginsignature", "access_token", "accesstoken"}
SKIPPED_CURL_HEADERS = {"content-length", "host", "connection"}

REDACTED = "***"


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return {key: (REDACTED if key.lower() in SENSITIVE_HEADERS else value) for key, value in headers.items()}


def redact_payload(payload: Any) -> Any:
    """Recursively mask credential fields in a JSON-like payload"""
    if isinstance(payload, dict):
        return {
            key: (REDACTED if str(key).lower() in SENSITIVE_FIELDS else redact_payload(value))
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    return payload


def build_curl_command(method: str, url: str, headers: Mapping[str, str], body: Optional[str] = None) -> str:
    """Render an equivalent curl command (headers redacted) for manual replay"""
    method = method.upper()
    command = f"curl -X {method} '{url}'"

    for key, value in redact_headers(headers).items():
        if key.lower() not in SKIPPED_CURL_HEADERS:
            command += f" \\\n  -H '{key}: {value}'"

    if body and method in ("POST", "PUT", "PATCH"):
        escaped = body.replace("'", "'\"'\"'")
        command += f" \\\n  -d '{escaped}'"

    command += " \\\n  --insecure \\\n  --connect-timeout 30 \\\n  --max-time 60 \\\n  -v"
    return command
