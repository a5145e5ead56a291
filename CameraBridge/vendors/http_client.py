"""
Vendor HTTP Transport

Thin aiohttp wrapper shared by all vendor clients:
- Lazily created session with automatic cleanup
- Bounded per-request timeout
- Defensive JSON parsing of response bodies
- Translation of transport failures into NetworkError / RequestTimeoutError

Classification of HTTP statuses and vendor payloads happens one layer up,
in the request pipeline.
"""

import asyncio
import json
import logging
import ssl
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlencode

import aiohttp
from yarl import URL

from CameraBridge.exceptions import NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def encode_param_value(value: Any) -> str:
    """Render one query parameter value; nested structures travel as compact JSON"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def encode_query(params: Optional[Mapping[str, Any]]) -> str:
    if not params:
        return ""
    return urlencode([(key, encode_param_value(value)) for key, value in params.items() if value is not None])


@dataclass(frozen=True)
class RequestDescriptor:
    """
    One logical request: method, path, query parameters and body.

    Built once per call and never changed afterwards, so the same descriptor
    can be signed and re-sent verbatim on the single authentication retry.
    """
    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    content_type: str = JSON_CONTENT_TYPE

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "path", self.path if self.path.startswith("/") else f"/{self.path}")
        object.__setattr__(self, "params", dict(self.params or {}))

    @property
    def query_string(self) -> str:
        return encode_query(self.params)

    @property
    def path_with_query(self) -> str:
        """Exact path that is signed and sent"""
        query = self.query_string
        return f"{self.path}?{query}" if query else self.path

    @property
    def serialized_body(self) -> Optional[str]:
        if self.body is None:
            return None
        if isinstance(self.body, (str, bytes)):
            return self.body
        return json.dumps(self.body, separators=(",", ":"), ensure_ascii=False)


@dataclass
class HTTPResponse:
    """Standardized HTTP response wrapper"""
    status: int
    data: Any
    headers: Dict[str, str]
    url: str
    duration_ms: int
    raw_content: Optional[str] = None

    @property
    def success(self) -> bool:
        return 200 <= self.status < 300


class VendorHTTPClient:
    """
    aiohttp transport for one vendor client.

    Owns a single ClientSession which is created on first use and released
    by close().
    """

    def __init__(
        self,
        vendor_name: str,
        base_url: str,
        timeout_seconds: float = 30.0,
        default_headers: Optional[Dict[str, str]] = None,
        verify_ssl: bool = False,
    ):
        self.vendor_name = vendor_name
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.default_headers = default_headers or {}
        self.verify_ssl = verify_ssl

        self._session: Optional[aiohttp.ClientSession] = None

        logger.debug(f"Initialized HTTP client for vendor: {vendor_name} ({self.base_url})")

    def _build_url(self, path_with_query: str) -> str:
        return f"{self.base_url}{path_with_query}"

    def _build_ssl(self) -> Union[ssl.SSLContext, bool]:
        if self.verify_ssl:
            return True

        # Camera platforms commonly run with self-signed certificates
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session with proper configuration"""
        if not self._session or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            connector = aiohttp.TCPConnector(ssl=self._build_ssl(), enable_cleanup_closed=True)
            self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self._session

    def _safe_json_parse(self, response_text: str) -> Any:
        """Parse a JSON body, falling back to an empty dict for empty or non-JSON content"""
        if not response_text:
            return {}
        try:
            parsed = json.loads(response_text)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning(f"Failed to parse JSON response for {self.vendor_name}: {e}")
            return {}
        return {} if parsed is None else parsed

    async def send(self, descriptor: RequestDescriptor, headers: Optional[Dict[str, str]] = None) -> HTTPResponse:
        """
        Dispatch one request and return the response, whatever its status.

        Raises:
            RequestTimeoutError: If the request exceeded the configured deadline
            NetworkError: If no response was received
        """
        url = self._build_url(descriptor.path_with_query)
        request_headers = {"Content-Type": descriptor.content_type, **self.default_headers}
        if headers:
            request_headers.update(headers)

        start_time = time.time()
        try:
            session = await self._get_session()
            async with session.request(
                descriptor.method,
                URL(url, encoded=True),
                data=descriptor.serialized_body,
                headers=request_headers,
            ) as response:
                raw = await response.read()
                response_text = raw.decode(response.charset or "utf-8", errors="replace")
                duration_ms = int((time.time() - start_time) * 1000)

                logger.debug(
                    f"{self.vendor_name} {descriptor.method} {descriptor.path} -> "
                    f"status={response.status} ({duration_ms}ms)"
                )

                return HTTPResponse(
                    status=response.status,
                    data=self._safe_json_parse(response_text),
                    headers=dict(response.headers),
                    url=str(response.url),
                    duration_ms=duration_ms,
                    raw_content=response_text,
                )

        except asyncio.TimeoutError as e:
            timeout_ms = int(self.timeout_seconds * 1000)
            logger.warning(f"Request to {self.vendor_name} {descriptor.path} timed out after {timeout_ms}ms")
            raise RequestTimeoutError(
                f"Request timed out after {timeout_ms}ms",
                timeout_ms=timeout_ms,
                endpoint=descriptor.path,
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"Network error talking to {self.vendor_name} {descriptor.path}: {e}")
            raise NetworkError(
                "Network error, please check the connection",
                endpoint=descriptor.path,
                original_error=e,
            ) from e

    # ========== Cleanup ==========

    @property
    def closed(self) -> bool:
        return self._session is None or self._session.closed

    async def close(self):
        """Close HTTP session and cleanup resources"""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug(f"Closed HTTP session for vendor: {self.vendor_name}")
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
