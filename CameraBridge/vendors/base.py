"""
Base Vendor Client

Defines the abstract interface that all vendor clients follow, and the
request pipeline they share:

1. ensure the session is authenticated
2. attach credentials (signing headers or token header)
3. dispatch through the transport
4. classify the outcome (HTTP status, then vendor business payload)
5. on 401/403, invalidate, log in once and retry the same request once
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Type, Union

from CameraBridge.config.models import VendorConfig, load_config
from CameraBridge.exceptions import (
    ApiError,
    AuthError,
    CameraBridgeException,
    classify_http_error,
    extract_vendor_message,
)
from CameraBridge.utils.debug import build_curl_command, redact_headers, redact_payload
from .auth_framework import BaseAuthenticator
from .http_client import HTTPResponse, RequestDescriptor, VendorHTTPClient

logger = logging.getLogger(__name__)


@dataclass
class VendorInfo:
    """Information about a vendor platform"""
    name: str
    display_name: str
    description: str
    auth_type: str
    website_url: Optional[str] = None
    supports_keep_alive: bool = False


@dataclass
class NormalizedResponse:
    """Successful outcome of one pipeline call"""
    status: int
    data: Any
    message: str = "success"
    success: bool = True


class BaseVendorClient(ABC):
    """
    Abstract base class for all vendor clients.

    Subclasses provide the config model, the authenticator variant and the
    vendor's business-failure rule; everything else lives here.
    """

    config_class: Type[VendorConfig] = VendorConfig
    user_agent: Optional[str] = None

    def __init__(self, config: Union[VendorConfig, Mapping[str, Any], None] = None, **options: Any):
        # Validation happens before any I/O
        self.config = load_config(self.config_class, config, **options)
        info = self.get_vendor_info()
        self.vendor_name = info.name

        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        if self.config.debug:
            self.logger.setLevel(logging.DEBUG)

        default_headers = {"Accept": "application/json"}
        if self.user_agent:
            default_headers["User-Agent"] = self.user_agent

        self.http_client = VendorHTTPClient(
            vendor_name=self.vendor_name,
            base_url=self.config.base_url,
            timeout_seconds=self.config.timeout_seconds,
            default_headers=default_headers,
            verify_ssl=self.config.reject_unauthorized,
        )
        self.authenticator: BaseAuthenticator = self._create_authenticator()
        self._closed = False

        self.logger.debug(f"{info.display_name} client created for {self.config.base_url}")

    # ========== Abstract Methods ==========

    @classmethod
    @abstractmethod
    def get_vendor_info(cls) -> VendorInfo:
        """Get information about this vendor"""
        pass

    @abstractmethod
    def _create_authenticator(self) -> BaseAuthenticator:
        """Build the authenticator variant for this vendor"""
        pass

    @abstractmethod
    def _business_failure(self, data: Any) -> Optional[str]:
        """
        Inspect a 2xx body for a vendor business failure.

        Returns the failure message, or None when the body reports success.
        """
        pass

    def _success_message(self, data: Any) -> str:
        return extract_vendor_message(data) or "success"

    # ========== Properties ==========

    @property
    def api(self) -> "BaseVendorClient":
        """Business endpoint accessor; the endpoints live on the client itself"""
        return self

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def debug(self) -> bool:
        return self.config.debug

    @property
    def closed(self) -> bool:
        return self._closed

    # ========== Authentication ==========

    def is_authenticated(self) -> bool:
        return self.authenticator.is_valid()

    async def ensure_authenticated(self):
        await self.authenticator.ensure_authenticated()

    async def login(self):
        """Force a fresh login regardless of the current session"""
        return await self.authenticator.login()

    async def test_connection(self) -> Dict[str, Any]:
        """Check that the platform is reachable and accepts our credentials"""
        info = self.get_vendor_info()
        try:
            await self._connection_probe()
            return {
                "success": True,
                "message": f"Connected to {info.display_name}",
                "details": {
                    "base_url": self.base_url,
                    "auth_type": info.auth_type,
                    "login_count": self.authenticator.login_count,
                },
            }
        except CameraBridgeException as e:
            self.logger.warning(f"Connection test failed for {self.vendor_name}: {e.message}")
            return {
                "success": False,
                "message": f"Connection test failed: {e.message}",
                "details": e.to_dict(),
            }

    async def _connection_probe(self):
        await self.ensure_authenticated()

    # ========== Request Pipeline ==========

    async def execute(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> NormalizedResponse:
        """
        Run one authenticated call through the pipeline.

        Raises:
            AuthError: If authentication fails, or the single retry is rejected again
            ApiError: For non-success HTTP statuses and vendor business failures
            NetworkError: If no response was received
            RequestTimeoutError: If the request exceeded the configured deadline
        """
        descriptor = RequestDescriptor(method, path, params or {}, body)

        await self.authenticator.ensure_authenticated()
        try:
            response = await self._send_authenticated(descriptor, headers)
        except AuthError as e:
            self.logger.info(
                f"{self.vendor_name} rejected {descriptor.method} {descriptor.path} "
                f"(status {e.status_code}), logging in again and retrying once"
            )
            self.authenticator.invalidate()
            await self.authenticator.login()
            response = await self._send_authenticated(descriptor, headers)

        return self._process_response(response)

    async def _send_authenticated(self, descriptor: RequestDescriptor, headers: Optional[Dict[str, str]]) -> HTTPResponse:
        request_headers = dict(headers or {})
        request_headers.update(self.authenticator.get_auth_headers(descriptor))
        return await self._dispatch(descriptor, request_headers)

    async def _dispatch(self, descriptor: RequestDescriptor, headers: Dict[str, str]) -> HTTPResponse:
        self._log_request(descriptor, headers)
        response = await self.http_client.send(descriptor, headers)
        self._log_response(descriptor, response)

        if not response.success:
            raise classify_http_error(response.status, response.data, vendor=self.vendor_name)
        return response

    def _process_response(self, response: HTTPResponse) -> NormalizedResponse:
        data = response.data
        failure = self._business_failure(data)
        if failure is not None:
            self.logger.warning(f"{self.vendor_name} business error: {failure}")
            raise ApiError(
                f"API business error: {failure}",
                response_data=data,
                status_code=response.status,
                vendor=self.vendor_name,
            )

        return NormalizedResponse(status=response.status, data=data, message=self._success_message(data))

    async def raw_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        content_type: str = "application/json",
    ) -> HTTPResponse:
        """
        Unauthenticated dispatch used by login flows.

        HTTP statuses are classified as usual; there is no business check and
        no retry.
        """
        descriptor = RequestDescriptor(method, path, params or {}, data, content_type=content_type)
        return await self._dispatch(descriptor, dict(headers or {}))

    async def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None, data: Any = None) -> Any:
        """Generic authenticated request returning the vendor body"""
        response = await self.execute(method, path, params=params, body=data)
        return response.data

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, data: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, params=params, data=data)

    async def put(self, path: str, data: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PUT", path, params=params, data=data)

    async def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("DELETE", path, params=params)

    # ========== Debug Logging ==========

    def _log_request(self, descriptor: RequestDescriptor, headers: Dict[str, str]):
        if not self.logger.isEnabledFor(logging.DEBUG):
            return

        self.logger.debug(f"{descriptor.method} {self.base_url}{descriptor.path_with_query}")
        self.logger.debug(f"Headers: {redact_headers(headers)}")
        if descriptor.body is not None and not isinstance(descriptor.body, (str, bytes)):
            self.logger.debug(f"Body: {json.dumps(redact_payload(descriptor.body), ensure_ascii=False)}")

        if self.config.debug:
            curl = build_curl_command(
                descriptor.method,
                f"{self.base_url}{descriptor.path_with_query}",
                {"Content-Type": descriptor.content_type, **headers},
                descriptor.serialized_body if isinstance(descriptor.serialized_body, str) else None,
            )
            self.logger.debug(f"Equivalent curl command:\n{curl}")

    def _log_response(self, descriptor: RequestDescriptor, response: HTTPResponse):
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        self.logger.debug(
            f"Response {response.status} for {descriptor.method} {descriptor.path} "
            f"({response.duration_ms}ms): {json.dumps(redact_payload(response.data), ensure_ascii=False, default=str)[:2000]}"
        )

    # ========== Cleanup ==========

    async def _stop_background_tasks(self):
        """Hook for clients that own background work"""
        pass

    async def close(self):
        """Stop background work, drop the session and release the HTTP session"""
        await self._stop_background_tasks()
        self.authenticator.clear()
        await self.http_client.close()

        if not self._closed:
            self._closed = True
            self.logger.info(f"{self.vendor_name} client closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
