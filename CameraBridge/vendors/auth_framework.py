"""
Common Authentication Framework for Vendors

Provides the session record and the three authenticator variants that sit
behind every vendor client:
- HmacAuthenticator: stateless per-request HMAC signing (Hikvision)
- RsaPasswordAuthenticator: RSA-encrypted password grant, bearer token (Dahua)
- ChallengeResponseAuthenticator: MD5 challenge-response, opaque token (Uniview)

Each one exposes the same capability: is_valid(), ensure_authenticated(),
login(), invalidate() and get_auth_headers().
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from CameraBridge.exceptions import AuthError, CameraBridgeException, extract_vendor_message
from .http_client import HTTPResponse, RequestDescriptor
from .signing import (
    build_dahua_auth_payload,
    build_uniview_login_payload,
    encode_uniview_login_body,
    generate_hmac_headers,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class LoginTransport(Protocol):
    """Unauthenticated request path used by login flows"""

    async def raw_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        content_type: str = "application/json",
    ) -> HTTPResponse:
        ...


@dataclass
class Session:
    """
    Credential material currently held by one client.

    A session is valid only while a token is present and now < expires_at;
    an expired session is treated exactly like an empty one.
    """
    token: Optional[str] = None
    token_type: Optional[str] = None
    issued_at: Optional[float] = None
    expires_at: Optional[float] = None
    renewal_margin: float = 0.0

    def is_valid(self, now: float) -> bool:
        if not self.token or self.expires_at is None:
            return False
        return now < self.expires_at

    def store(self, token: str, lifetime_seconds: float, now: float, token_type: Optional[str] = None):
        """Record a fresh token; expiry is pulled forward by the renewal margin"""
        self.token = token
        self.token_type = token_type
        self.issued_at = now
        self.expires_at = now + lifetime_seconds - self.renewal_margin

    def clear(self):
        self.token = None
        self.token_type = None
        self.issued_at = None
        self.expires_at = None

    def to_header_value(self) -> str:
        if self.token_type:
            return f"{self.token_type} {self.token}"
        return self.token or ""


@dataclass
class RetryConfig:
    """Configuration for login retry behavior"""
    max_retries: int = 3
    base_delay: float = 1.0  # Initial delay in seconds
    max_delay: float = 60.0  # Maximum delay in seconds
    backoff_factor: float = 2.0  # Exponential backoff multiplier

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (self.backoff_factor ** attempt), self.max_delay)


class BaseAuthenticator(ABC):
    """Abstract base class for the vendor authentication variants"""

    def __init__(self, vendor_name: str, transport: LoginTransport, renewal_margin: float = 0.0, clock: Clock = time.time):
        self.vendor_name = vendor_name
        self.transport = transport
        self.clock = clock
        self.session = Session(renewal_margin=renewal_margin)
        self.login_count = 0
        self._login_listeners: List[Callable[[], Any]] = []

    def add_login_listener(self, callback: Callable[[], Any]):
        """Register a callback invoked after every successful login"""
        self._login_listeners.append(callback)

    def is_valid(self) -> bool:
        return self.session.is_valid(self.clock())

    async def ensure_authenticated(self):
        """Return immediately with a valid session, otherwise log in"""
        if self.is_valid():
            return
        logger.info(f"No valid session for {self.vendor_name}, logging in")
        await self.login()

    async def login(self) -> Session:
        """
        Acquire fresh credential material.

        Raises:
            AuthError: If the platform refuses the credentials
        """
        self.login_count += 1
        await self._login()
        logger.info(f"Login successful for {self.vendor_name}")

        for callback in self._login_listeners:
            callback()
        return self.session

    def invalidate(self):
        """Drop the current session so the next call logs in again"""
        self.session.clear()

    def clear(self):
        self.session.clear()

    @abstractmethod
    async def _login(self):
        """Vendor specific login flow; must populate self.session"""
        pass

    @abstractmethod
    def get_auth_headers(self, descriptor: RequestDescriptor) -> Dict[str, str]:
        """Headers that authenticate one outgoing request"""
        pass


class HmacAuthenticator(BaseAuthenticator):
    """
    Per-request HMAC-SHA256 signing.

    There is no server-side session: every request carries a fresh
    timestamp, nonce and signature, so the authenticator is always valid and
    login() has nothing to fetch.
    """

    def __init__(self, vendor_name: str, transport: LoginTransport, app_key: str, app_secret: str, clock: Clock = time.time):
        super().__init__(vendor_name, transport, clock=clock)
        self.app_key = app_key
        self.app_secret = app_secret

    def is_valid(self) -> bool:
        return True

    async def _login(self):
        logger.debug(f"{self.vendor_name} signs every request; nothing to fetch on login")

    def get_auth_headers(self, descriptor: RequestDescriptor) -> Dict[str, str]:
        timestamp = str(int(self.clock() * 1000))
        return generate_hmac_headers(
            descriptor.method,
            descriptor.path_with_query,
            self.app_key,
            self.app_secret,
            timestamp=timestamp,
        )


class RsaPasswordAuthenticator(BaseAuthenticator):
    """
    OAuth password grant with an RSA-encrypted password.

    Fetches the platform public key, encrypts the password with it and
    exchanges the result for a bearer token. Failures surface immediately.
    """

    DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

    def __init__(
        self,
        vendor_name: str,
        transport: LoginTransport,
        username: str,
        password: str,
        client_id: str,
        client_secret: str,
        public_key_path: str,
        token_path: str,
        default_token_type: str = "bearer",
        renewal_margin: float = 60.0,
        clock: Clock = time.time,
    ):
        super().__init__(vendor_name, transport, renewal_margin=renewal_margin, clock=clock)
        self.username = username
        self.password = password
        self.client_id = client_id
        self.client_secret = client_secret
        self.public_key_path = public_key_path
        self.token_path = token_path
        self.default_token_type = default_token_type

    async def fetch_public_key(self) -> str:
        response = await self.transport.raw_request("GET", self.public_key_path)
        body = response.data if isinstance(response.data, dict) else {}

        if not body.get("success"):
            raise AuthError(
                f"Failed to fetch public key: {extract_vendor_message(body) or 'unknown error'}",
                response_data=body,
                status_code=response.status,
                vendor=self.vendor_name,
            )

        public_key = (body.get("data") or {}).get("publicKey")
        if not public_key:
            raise AuthError("Public key missing from response", response_data=body, vendor=self.vendor_name)
        return public_key

    async def request_token(self, public_key: str) -> Dict[str, Any]:
        payload = build_dahua_auth_payload(
            self.username, self.password, self.client_id, self.client_secret, public_key
        )
        response = await self.transport.raw_request("POST", self.token_path, data=payload)
        return response.data if isinstance(response.data, dict) else {}

    async def _login(self):
        public_key = await self.fetch_public_key()
        token_response = await self.request_token(public_key)

        if not token_response.get("success"):
            raise AuthError(
                f"Login failed: {extract_vendor_message(token_response) or 'unknown error'}",
                response_data=token_response,
                vendor=self.vendor_name,
            )

        token_data = token_response.get("data") or {}
        access_token = token_data.get("access_token")
        if not access_token:
            raise AuthError("No access token in response", response_data=token_response, vendor=self.vendor_name)

        expires_in = token_data.get("expires_in")
        if expires_in is None:
            logger.warning(
                f"{self.vendor_name} token response has no expires_in, "
                f"assuming {self.DEFAULT_TOKEN_LIFETIME_SECONDS}s"
            )
            expires_in = self.DEFAULT_TOKEN_LIFETIME_SECONDS

        self.session.store(
            access_token,
            float(expires_in),
            now=self.clock(),
            token_type=token_data.get("token_type") or self.default_token_type,
        )
        logger.debug(f"{self.vendor_name} token expires at {self.session.expires_at}")

    def get_auth_headers(self, descriptor: RequestDescriptor) -> Dict[str, str]:
        if not self.session.token:
            return {}
        return {"Authorization": self.session.to_header_value()}


class ChallengeResponseAuthenticator(BaseAuthenticator):
    """
    Two-step MD5 challenge-response login.

    The first POST returns an access code (or, when the platform resumes an
    existing session, a token directly). The second POST submits the signed
    credentials as compact JSON text. Failed attempts are retried with
    exponential backoff before an AuthError is surfaced.
    """

    def __init__(
        self,
        vendor_name: str,
        transport: LoginTransport,
        username: str,
        password: str,
        login_path: str,
        token_lifetime: float,
        renewal_margin: float = 60.0,
        retry_config: Optional[RetryConfig] = None,
        clock: Clock = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__(vendor_name, transport, renewal_margin=renewal_margin, clock=clock)
        self.username = username
        self.password = password
        self.login_path = login_path
        self.token_lifetime = token_lifetime
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep

    async def request_access_code(self) -> Dict[str, Any]:
        response = await self.transport.raw_request("POST", self.login_path, data={})
        return response.data if isinstance(response.data, dict) else {}

    async def submit_login(self, access_code: str) -> Dict[str, Any]:
        payload = build_uniview_login_payload(self.username, self.password, access_code)
        response = await self.transport.raw_request(
            "POST",
            self.login_path,
            data=encode_uniview_login_body(payload),
            content_type="text/plain",
        )
        return response.data if isinstance(response.data, dict) else {}

    async def _attempt_login(self):
        challenge = await self.request_access_code()

        if challenge.get("AccessToken"):
            logger.info(f"{self.vendor_name} resumed an existing session")
            self.session.store(challenge["AccessToken"], self.token_lifetime, now=self.clock())
            return

        access_code = challenge.get("AccessCode")
        if not access_code:
            raise AuthError(
                f"Unexpected login response format: {json.dumps(challenge, ensure_ascii=False)}",
                response_data=challenge,
                vendor=self.vendor_name,
            )

        logger.debug(f"{self.vendor_name} received access code, submitting credentials")
        result = await self.submit_login(access_code)

        err_code = result.get("ErrCode")
        if (err_code is None or err_code == 0) and result.get("AccessToken"):
            self.session.store(result["AccessToken"], self.token_lifetime, now=self.clock())
            return

        raise AuthError(
            f"Login failed [{err_code}]: {result.get('ErrMsg') or 'unknown error'}",
            response_data=result,
            vendor=self.vendor_name,
        )

    async def _login(self):
        self.session.clear()

        last_error: Optional[CameraBridgeException] = None
        total_attempts = self.retry_config.max_retries + 1

        for attempt in range(total_attempts):
            try:
                await self._attempt_login()
                return
            except CameraBridgeException as e:
                last_error = e
                if attempt < self.retry_config.max_retries:
                    delay = self.retry_config.delay_for(attempt)
                    logger.warning(
                        f"Login attempt {attempt + 1}/{total_attempts} for {self.vendor_name} failed "
                        f"({e.message}), retrying in {delay:.2f}s"
                    )
                    await self._sleep(delay)

        logger.error(f"Login failed for {self.vendor_name} after {total_attempts} attempts")
        raise AuthError(
            f"Login failed after {total_attempts} attempts: {last_error.message if last_error else 'unknown error'}",
            response_data=last_error.response_data if last_error else None,
            vendor=self.vendor_name,
        ) from last_error

    def get_auth_headers(self, descriptor: RequestDescriptor) -> Dict[str, str]:
        if not self.session.token:
            return {}
        return {"Authorization": self.session.token}
