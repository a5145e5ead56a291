"""
Shared fixtures for CameraBridge unit tests

Clients never touch the network here: tests replace the transport's send()
coroutine with an AsyncMock that yields canned HTTPResponse objects.
"""

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from CameraBridge.vendors.http_client import HTTPResponse


def build_response(status=200, data=None, url="https://platform.local/"):
    return HTTPResponse(
        status=status,
        data={} if data is None else data,
        headers={},
        url=url,
        duration_ms=1,
    )


@pytest.fixture
def make_response():
    """Factory for canned transport responses"""
    return build_response


@pytest.fixture
def hikvision_config():
    return {"host": "artemis.local", "appKey": "23456789", "appSecret": "s3cr3t-app-secret"}


@pytest.fixture
def dahua_config():
    return {
        "host": "icc.local",
        "username": "system",
        "password": "Pass@123",
        "clientId": "camera-bridge",
        "clientSecret": "client-secret-value",
    }


@pytest.fixture
def uniview_config():
    return {"host": "viid.local", "username": "loadmin", "password": "admin123"}


@pytest.fixture(scope="session")
def rsa_key_pair():
    """RSA key pair plus the bare base64 public key body the platform hands out"""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_key, base64.b64encode(der).decode("ascii")
