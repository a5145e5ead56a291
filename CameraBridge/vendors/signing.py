"""
Vendor Signing Strategies

Pure functions that turn credentials plus request metadata into the
authentication material each platform expects. Nothing here performs I/O:

- HMAC-SHA256 signed headers (Hikvision Artemis)
- RSA PKCS#1 v1.5 encrypted password login payload (Dahua ICC)
- MD5 challenge-response login payload (Uniview VIID)
"""

import base64
import hashlib
import hmac
import json
import logging
import time
import uuid
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from CameraBridge.config.vendors.hikvision import SIGNED_HEADER_NAMES
from CameraBridge.exceptions import AuthError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


# ========== HMAC (Hikvision) ==========

def build_signature_string(method: str, path: str, app_key: str, timestamp: str, nonce: str) -> str:
    """
    Build the canonical string covered by the HMAC signature.

    Layout: METHOD, content type, accept, the sorted x-ca-* headers and the
    request path (including its query string), one per line.
    """
    clean_path = path if path.startswith("/") else f"/{path}"

    custom_headers = sorted([
        f"x-ca-key:{app_key}",
        f"x-ca-nonce:{nonce}",
        f"x-ca-timestamp:{timestamp}",
    ])

    parts = [method.upper(), JSON_CONTENT_TYPE, JSON_CONTENT_TYPE, *custom_headers, clean_path]
    return "\n".join(parts)


def hmac_sha256_base64(secret: str, data: str) -> str:
    """HMAC-SHA256 of data keyed by secret, base64 encoded"""
    digest = hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def generate_hmac_headers(
    method: str,
    path: str,
    app_key: str,
    app_secret: str,
    timestamp: Optional[str] = None,
    nonce: Optional[str] = None,
) -> Dict[str, str]:
    """
    Generate the X-Ca-* authentication headers for one request.

    timestamp defaults to the current epoch milliseconds and nonce to a
    random UUID4; pass both to get a reproducible signature.
    """
    timestamp = timestamp or str(int(time.time() * 1000))
    nonce = nonce or str(uuid.uuid4())

    signature_string = build_signature_string(method, path, app_key, timestamp, nonce)
    signature = hmac_sha256_base64(app_secret, signature_string)

    return {
        "X-Ca-Key": app_key,
        "X-Ca-Nonce": nonce,
        "X-Ca-Timestamp": timestamp,
        "X-Ca-Signature": signature,
        "X-Ca-Signature-Headers": SIGNED_HEADER_NAMES,
    }


def verify_hmac_signature(
    method: str,
    path: str,
    app_key: str,
    app_secret: str,
    timestamp: str,
    nonce: str,
    expected_signature: str,
) -> bool:
    """Recompute the signature with the same canonical builder and compare"""
    signature_string = build_signature_string(method, path, app_key, timestamp, nonce)
    actual = hmac_sha256_base64(app_secret, signature_string)
    return hmac.compare_digest(actual, expected_signature)


# ========== RSA password (Dahua) ==========

def _to_pem(public_key: str) -> bytes:
    """The platform hands out a bare base64 key body; wrap it in PEM armor"""
    key = public_key.strip()
    if not key.startswith("-----BEGIN"):
        key = f"-----BEGIN PUBLIC KEY-----\n{key}\n-----END PUBLIC KEY-----"
    return key.encode("ascii")


def rsa_encrypt_password(password: str, public_key: str) -> str:
    """
    Encrypt the plaintext password with the platform's RSA public key.

    Raises:
        AuthError: If the key cannot be loaded or encryption fails
    """
    try:
        loaded_key = serialization.load_pem_public_key(_to_pem(public_key))
        if not isinstance(loaded_key, rsa.RSAPublicKey):
            raise TypeError(f"Expected an RSA public key, got {type(loaded_key).__name__}")
        encrypted = loaded_key.encrypt(password.encode("utf-8"), padding.PKCS1v15())
    except (ValueError, TypeError, UnicodeEncodeError) as e:
        logger.error(f"RSA password encryption failed: {e}")
        raise AuthError(f"Password encryption failed: {e}", vendor="dahua") from e

    return base64.b64encode(encrypted).decode("ascii")


def build_dahua_auth_payload(
    username: str,
    password: str,
    client_id: str,
    client_secret: str,
    public_key: str,
) -> Dict[str, str]:
    """Password-grant token request body with the encrypted password"""
    return {
        "grant_type": "password",
        "username": username,
        "password": rsa_encrypt_password(password, public_key),
        "client_id": client_id,
        "client_secret": client_secret,
        "public_key": public_key,
    }


# ========== Challenge-response (Uniview) ==========

def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def uniview_login_signature(username: str, access_code: str, password: str) -> str:
    """MD5(base64(username) + access code + MD5(password)), hex encoded"""
    username_b64 = base64.b64encode(username.encode("utf-8")).decode("ascii")
    return md5_hex(username_b64 + access_code + md5_hex(password))


def build_uniview_login_payload(username: str, password: str, access_code: str) -> Dict[str, str]:
    return {
        "UserName": username,
        "AccessCode": access_code,
        "LoginSignature": uniview_login_signature(username, access_code, password),
    }


def encode_uniview_login_body(payload: Dict[str, Any]) -> str:
    """
    Serialize the login payload the way the platform expects it.

    The second login step is a compact JSON document posted as text/plain,
    with non-ASCII characters left unescaped.
    """
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
