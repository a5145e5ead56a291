"""
Uniview VIID Client

Login is a two-step MD5 challenge-response against /VIID/login. Tokens live
for 48 hours and are sent raw in the Authorization header. After every
successful login a background keep-alive touches the session once a day
until the client is closed.

Business failures are reported through a non-zero "ErrCode".
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from CameraBridge.config.models import UniviewConfig
from CameraBridge.config.vendors.uniview import (
    API_PATHS,
    QUERY_TYPE_INCLUDE_CHILD_ORGS,
    QUERY_TYPE_NAME,
    QUERY_TYPE_RESOURCE_TYPE,
    RESOURCE_TYPE_CAMERA,
    RESOURCE_TYPE_ORGANIZATION,
    UNIVIEW_CONFIG,
)
from CameraBridge.exceptions import CameraBridgeException, ParameterError
from .auth_framework import BaseAuthenticator, ChallengeResponseAuthenticator, RetryConfig
from .base import BaseVendorClient, VendorInfo
from .keep_alive import KeepAliveScheduler
from .pagination import DEFAULT_MAX_PAGES, Page, PageCursor, collect_all, parse_total
from .registry import register_vendor

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = UNIVIEW_CONFIG["default_page_size"]
DEFAULT_THIRD_PARTY_IPC_CODE = "192168002041"


def _condition_item(query_type: int, query_data: str, logic_flag: int = 0) -> Dict[str, Any]:
    return {"QueryType": query_type, "LogicFlag": logic_flag, "QueryData": query_data}


def camera_condition() -> Dict[str, Any]:
    """All cameras, child organizations included"""
    return {
        "ItemNum": 2,
        "Condition": [
            _condition_item(QUERY_TYPE_RESOURCE_TYPE, RESOURCE_TYPE_CAMERA),
            _condition_item(QUERY_TYPE_INCLUDE_CHILD_ORGS, "1"),
        ],
    }


def organization_condition() -> Dict[str, Any]:
    """All organizations, child organizations included, any name"""
    return {
        "ItemNum": 3,
        "Condition": [
            _condition_item(QUERY_TYPE_RESOURCE_TYPE, RESOURCE_TYPE_ORGANIZATION),
            _condition_item(QUERY_TYPE_INCLUDE_CHILD_ORGS, "1"),
            _condition_item(QUERY_TYPE_NAME, "", logic_flag=5),
        ],
    }


class UniviewAPI:
    """VIID business endpoints; mixed into UniviewClient"""

    authenticator: ChallengeResponseAuthenticator
    config: UniviewConfig

    # ========== Authentication ==========

    async def get_access_code(self) -> Dict[str, Any]:
        """First login step: ask the platform for a fresh access code"""
        return await self.authenticator.request_access_code()

    # ========== Resources ==========

    async def query_resources(self, org: Optional[str], condition: Optional[Dict[str, Any]]) -> Any:
        """
        Query one page of resources under an organization.

        Args:
            org: Organization code
            condition: VIID query condition (ItemNum, Condition, paging fields)
        """
        if not org:
            raise ParameterError("org cannot be empty", parameter_name="org", parameter_value=org)
        if not condition:
            raise ParameterError("condition cannot be empty", parameter_name="condition", parameter_value=condition)

        return await self.get(API_PATHS["QUERY_RESOURCES"], params={"org": org, "condition": condition})

    async def query_all_resources(
        self,
        org: Optional[str] = None,
        condition: Optional[Dict[str, Any]] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> List[Any]:
        """Walk every page of a resource query and return the InfoList items"""
        org = org or self.config.default_org
        if not condition:
            raise ParameterError("condition cannot be empty", parameter_name="condition", parameter_value=condition)

        async def fetch_page(cursor: PageCursor) -> Page:
            page_condition = copy.deepcopy(condition)
            page_condition.update({
                "QueryCount": 1,
                "PageRowNum": cursor.page_size,
                "PageFirstRowNumber": cursor.offset,
            })

            body = await self.query_resources(org, page_condition)
            result = body.get("Result") if isinstance(body, dict) else None
            result = result if isinstance(result, dict) else {}
            page_info = result.get("RspPageInfo") or {}
            return Page(items=result.get("InfoList") or [], total=parse_total(page_info.get("TotalRowNum")))

        resources = await collect_all(fetch_page, page_size, max_pages=max_pages, first_page=0)
        logger.info(f"Fetched {len(resources)} resources under {org}")
        return resources

    async def query_all_cameras(self, org: Optional[str] = None, page_size: int = DEFAULT_PAGE_SIZE) -> List[Any]:
        return await self.query_all_resources(org, camera_condition(), page_size=page_size)

    async def query_all_orgs(self, org: Optional[str] = None, page_size: int = DEFAULT_PAGE_SIZE) -> List[Any]:
        return await self.query_all_resources(org, organization_condition(), page_size=page_size)

    # ========== Third Party Devices ==========

    async def query_third_party_ipc(self, ipc_code: str = DEFAULT_THIRD_PARTY_IPC_CODE) -> Any:
        return await self.get(API_PATHS["QUERY_THIRD_PARTY_IPC"], params={"pszThirdPartyIPCCode": ipc_code})


@register_vendor(UNIVIEW_CONFIG["vendor_name"])
class UniviewClient(UniviewAPI, BaseVendorClient):
    """Client for the Uniview VIID OpenAPI"""

    config_class = UniviewConfig
    user_agent = UNIVIEW_CONFIG["user_agent"]
    config: UniviewConfig

    def __init__(self, config: Any = None, **options: Any):
        super().__init__(config, **options)
        self.keep_alive = KeepAliveScheduler(
            self.keep_token_alive,
            interval_seconds=UNIVIEW_CONFIG["keep_alive_interval_seconds"],
            name=f"{self.vendor_name}-keep-alive",
        )
        self.authenticator.add_login_listener(self.keep_alive.start)

    @classmethod
    def get_vendor_info(cls) -> VendorInfo:
        return VendorInfo(
            name=UNIVIEW_CONFIG["vendor_name"],
            display_name=UNIVIEW_CONFIG["display_name"],
            description="Uniview VIID platform with MD5 challenge-response login and token keep-alive",
            auth_type=UNIVIEW_CONFIG["auth_type"],
            website_url="https://www.uniview.com",
            supports_keep_alive=True,
        )

    def _create_authenticator(self) -> BaseAuthenticator:
        return ChallengeResponseAuthenticator(
            self.vendor_name,
            self,
            username=self.config.username,
            password=self.config.password,
            login_path=API_PATHS["LOGIN"],
            token_lifetime=UNIVIEW_CONFIG["token_lifetime_seconds"],
            renewal_margin=UNIVIEW_CONFIG["token_renewal_margin_seconds"],
            retry_config=RetryConfig(
                max_retries=UNIVIEW_CONFIG["login_max_retries"],
                base_delay=UNIVIEW_CONFIG["login_retry_base_delay"],
            ),
        )

    def _business_failure(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict) or "ErrCode" not in data:
            return None
        err_code = data["ErrCode"]
        if err_code == 0 or err_code == "0":
            return None
        return f"[{err_code}] {data.get('ErrMsg') or 'unknown error'}"

    def _success_message(self, data: Any) -> str:
        if isinstance(data, dict) and data.get("ErrMsg"):
            return str(data["ErrMsg"])
        return "success"

    # ========== Keep-Alive ==========

    async def keep_token_alive(self) -> bool:
        """
        Touch the session so it does not expire from inactivity.

        Falls back to a full login when the session is gone or the touch is
        refused. Never raises; returns whether a usable session remains.
        """
        try:
            if self.is_authenticated():
                body = await self.get(API_PATHS["TOKEN_KEEP_ALIVE"])
                if isinstance(body, dict) and body.get("ErrCode") in (0, "0"):
                    self.logger.debug("Token keep-alive succeeded")
                    return True
                self.logger.warning(f"Token keep-alive returned no success code ({body!r}), logging in again")
            else:
                self.logger.warning("Token no longer valid, logging in again")
        except CameraBridgeException as e:
            self.logger.warning(f"Token keep-alive failed ({e.message}), logging in again")

        try:
            await self.login()
            return True
        except CameraBridgeException as e:
            self.logger.error(f"Re-login after failed keep-alive did not succeed: {e.message}")
            return False

    async def _stop_background_tasks(self):
        await self.keep_alive.stop()
