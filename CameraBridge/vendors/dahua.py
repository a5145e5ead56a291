"""
Dahua ICC Client

Login is an OAuth password grant: the platform's RSA public key encrypts
the password, and the token endpoint answers with a bearer token that is
renewed 60 seconds before it expires.

Business failures are reported through a "success" flag in the body.
"""

import logging
from typing import Any, Dict, List, Optional

from CameraBridge.config.models import DahuaConfig
from CameraBridge.config.vendors.dahua import API_PATHS, DAHUA_CONFIG
from CameraBridge.exceptions import ApiError
from .auth_framework import BaseAuthenticator, RsaPasswordAuthenticator
from .base import BaseVendorClient, VendorInfo
from .pagination import DEFAULT_MAX_PAGES, Page, PageCursor, collect_all, parse_total
from .registry import register_vendor

logger = logging.getLogger(__name__)

ORGANIZATION_PAGE_SIZE = DAHUA_CONFIG["organization_page_size"]
DEVICE_PAGE_SIZE = DAHUA_CONFIG["device_page_size"]


class DahuaAPI:
    """ICC business endpoints; mixed into DahuaClient"""

    authenticator: RsaPasswordAuthenticator
    vendor_name: str

    # ========== OAuth ==========

    async def get_public_key(self) -> str:
        return await self.authenticator.fetch_public_key()

    async def get_access_token(self, public_key: str) -> Dict[str, Any]:
        """Exchange the encrypted password for a token without storing it"""
        return await self.authenticator.request_token(public_key)

    # ========== Devices ==========

    async def get_devices_page(
        self,
        page_num: int = 1,
        page_size: int = DEVICE_PAGE_SIZE,
        show_child_node_data: int = 1,
        **filters: Any,
    ) -> Any:
        params = {"pageNum": page_num, "pageSize": page_size, "showChildNodeData": show_child_node_data}
        params.update(filters)
        return await self.post(API_PATHS["DEVICES_PAGE"], params)

    # ========== Organizations ==========

    async def get_organizations_page(
        self, page_num: int = 1, page_size: int = ORGANIZATION_PAGE_SIZE, **filters: Any
    ) -> Any:
        params = {"pageNum": page_num, "pageSize": page_size}
        params.update(filters)
        return await self.get(API_PATHS["ORGANIZATIONS_PAGE"], params=params)

    async def get_all_organizations(
        self, page_size: int = ORGANIZATION_PAGE_SIZE, max_pages: int = DEFAULT_MAX_PAGES
    ) -> List[Any]:
        """Fetch the whole organization tree, page by page"""

        async def fetch_page(cursor: PageCursor) -> Page:
            result = await self.get_organizations_page(page_num=cursor.page_number, page_size=cursor.page_size)

            data = result.get("data") if isinstance(result, dict) else None
            if not isinstance(data, dict):
                raise ApiError("Organization page returned no data", response_data=result, vendor=self.vendor_name)

            page_data = data.get("pageData")
            if not isinstance(page_data, list):
                raise ApiError(
                    f"Organization page {cursor.page_number} returned a non-list pageData",
                    response_data=result,
                    vendor=self.vendor_name,
                )
            return Page(items=page_data, total=parse_total(data.get("totalRows")))

        organizations = await collect_all(fetch_page, page_size, max_pages=max_pages)
        logger.info(f"Fetched {len(organizations)} organizations")
        return organizations

    # ========== Playback ==========

    async def start_playback_by_time(self, data: Dict[str, Any]) -> Any:
        """Start time-based playback and get the RTSP stream address"""
        return await self.post(API_PATHS["PLAYBACK_BY_TIME"], data)


@register_vendor(DAHUA_CONFIG["vendor_name"])
class DahuaClient(DahuaAPI, BaseVendorClient):
    """Client for the Dahua ICC OpenAPI"""

    config_class = DahuaConfig
    user_agent = DAHUA_CONFIG["user_agent"]
    config: DahuaConfig

    @classmethod
    def get_vendor_info(cls) -> VendorInfo:
        return VendorInfo(
            name=DAHUA_CONFIG["vendor_name"],
            display_name=DAHUA_CONFIG["display_name"],
            description="Dahua ICC platform with RSA-encrypted password grant and bearer tokens",
            auth_type=DAHUA_CONFIG["auth_type"],
            website_url="https://open-icc.dahuatech.com",
        )

    def _create_authenticator(self) -> BaseAuthenticator:
        return RsaPasswordAuthenticator(
            self.vendor_name,
            self,
            username=self.config.username,
            password=self.config.password,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            public_key_path=API_PATHS["PUBLIC_KEY"],
            token_path=API_PATHS["ACCESS_TOKEN"],
            default_token_type=DAHUA_CONFIG["default_token_type"],
            renewal_margin=DAHUA_CONFIG["token_renewal_margin_seconds"],
        )

    def _business_failure(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict) or "success" not in data:
            return None
        if data["success"]:
            return None
        return data.get("desc") or data.get("errMsg") or "unknown error"

    def _success_message(self, data: Any) -> str:
        if isinstance(data, dict):
            return data.get("desc") or data.get("errMsg") or "success"
        return "success"
