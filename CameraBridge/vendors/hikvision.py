"""
Hikvision Artemis Client

Every request is signed with HMAC-SHA256 over the method, content headers,
X-Ca-* headers and the exact path (query included). There is no token; a
rejected signature is retried once with a fresh nonce and timestamp.

Business endpoints are plain POSTs with JSON bodies. The vendor body is
returned unchanged; failures are reported through a "code" field other
than "0".
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from CameraBridge.config.models import HikvisionConfig
from CameraBridge.config.vendors.hikvision import API_PATHS, HIKVISION_CONFIG
from CameraBridge.exceptions import CameraBridgeException, ParameterError
from .auth_framework import BaseAuthenticator, HmacAuthenticator
from .base import BaseVendorClient, VendorInfo
from .pagination import DEFAULT_MAX_PAGES, Page, PageCursor, collect_all, parse_total
from .registry import register_vendor

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = HIKVISION_CONFIG["default_page_size"]


def _page_params(page_no: int, page_size: int, **filters: Any) -> Dict[str, Any]:
    params = {"pageNo": page_no, "pageSize": page_size}
    params.update(filters)
    return params


class HikvisionAPI:
    """Artemis business endpoints; mixed into HikvisionClient"""

    post: Callable[..., Awaitable[Any]]

    # ========== OAuth ==========

    async def get_oauth_token(self) -> Any:
        return await self.post(API_PATHS["OAUTH_TOKEN"], {})

    # ========== Cameras ==========

    async def get_cameras(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        """
        List cameras.

        Args:
            page_no: Page number, starting at 1
            page_size: Page size
            **filters: Extra Artemis filters such as cameraName or regionIndexCode
        """
        return await self.post(API_PATHS["CAMERAS"], _page_params(page_no, page_size, **filters))

    async def get_camera(self, camera_index_code: str) -> Any:
        if not camera_index_code:
            raise ParameterError(
                "camera_index_code cannot be empty",
                parameter_name="camera_index_code",
                parameter_value=camera_index_code,
            )
        return await self.post(API_PATHS["CAMERAS"], {"cameraIndexCode": camera_index_code})

    async def get_camera_preview_url(
        self,
        camera_index_code: str,
        stream_type: int = 0,
        protocol: str = "rtsp",
        transmode: int = 0,
    ) -> Any:
        """
        Get a live preview URL.

        Args:
            camera_index_code: Camera index code
            stream_type: 0 main stream, 1 sub stream, 2 third stream
            protocol: rtsp, rtmp, hls, ...
            transmode: 0 UDP, 1 TCP
        """
        if not camera_index_code:
            raise ParameterError(
                "camera_index_code cannot be empty",
                parameter_name="camera_index_code",
                parameter_value=camera_index_code,
            )

        params = {
            "cameraIndexCode": camera_index_code,
            "streamType": stream_type,
            "protocol": protocol,
            "transmode": transmode,
        }
        return await self.post(API_PATHS["CAMERA_PREVIEW_URLS"], params)

    # ========== Regions & Organizations ==========

    async def get_regions(
        self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, tree_code: str = "0", **filters: Any
    ) -> Any:
        params = _page_params(page_no, page_size, treeCode=tree_code, **filters)
        return await self.post(API_PATHS["REGIONS"], params)

    async def get_organizations(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        return await self.post(API_PATHS["ORGANIZATIONS"], _page_params(page_no, page_size, **filters))

    # ========== Events ==========

    async def get_events(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        """List events; filters include startTime, endTime and eventTypes"""
        return await self.post(API_PATHS["EVENTS"], _page_params(page_no, page_size, **filters))

    async def subscribe_events(self, event_types: List[int], event_dest: Optional[str] = None, **options: Any) -> Any:
        if not event_types or not isinstance(event_types, (list, tuple)):
            raise ParameterError(
                "event_types must be a non-empty list",
                parameter_name="event_types",
                parameter_value=event_types,
            )

        payload: Dict[str, Any] = {"eventTypes": list(event_types)}
        if event_dest is not None:
            payload["eventDest"] = event_dest
        payload.update(options)
        return await self.post(API_PATHS["EVENTS_SUBSCRIPTION"], payload)

    # ========== Devices ==========

    async def get_devices(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        return await self.post(API_PATHS["DEVICES"], _page_params(page_no, page_size, **filters))

    async def get_device_status(self, index_codes: List[str], **options: Any) -> Any:
        if not index_codes or not isinstance(index_codes, (list, tuple)):
            raise ParameterError(
                "index_codes must be a non-empty list",
                parameter_name="index_codes",
                parameter_value=index_codes,
            )

        payload: Dict[str, Any] = {"indexCodes": list(index_codes)}
        payload.update(options)
        return await self.post(API_PATHS["DEVICE_STATUS"], payload)

    # ========== Persons & Vehicles ==========

    async def get_persons(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        return await self.post(API_PATHS["PERSONS"], _page_params(page_no, page_size, **filters))

    async def add_person(self, person_data: Dict[str, Any]) -> Any:
        """Add a person; personName is required, orgIndexCode usually is too"""
        if not isinstance(person_data, dict) or not person_data.get("personName"):
            raise ParameterError(
                "personName cannot be empty",
                parameter_name="personName",
                parameter_value=person_data.get("personName") if isinstance(person_data, dict) else None,
            )
        return await self.post(API_PATHS["PERSONS"], person_data)

    async def get_vehicles(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        return await self.post(API_PATHS["VEHICLES"], _page_params(page_no, page_size, **filters))

    # ========== Access Control ==========

    async def get_access_control_points(
        self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any
    ) -> Any:
        return await self.post(API_PATHS["ACCESS_CONTROL_POINTS"], _page_params(page_no, page_size, **filters))

    async def get_card_readers(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        return await self.post(API_PATHS["CARD_READERS"], _page_params(page_no, page_size, **filters))

    async def get_doors(self, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any) -> Any:
        return await self.post(API_PATHS["DOORS"], _page_params(page_no, page_size, **filters))

    # ========== Generic Helpers ==========

    async def paginated_query(
        self, path: str, page_no: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters: Any
    ) -> Any:
        """Fetch one page from any Artemis list endpoint"""
        return await self.post(path, _page_params(page_no, page_size, **filters))

    async def get_all(
        self,
        path: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        **filters: Any,
    ) -> List[Any]:
        """Walk every page of an Artemis list endpoint (data.list / data.total)"""

        async def fetch_page(cursor: PageCursor) -> Page:
            body = await self.paginated_query(path, page_no=cursor.page_number, page_size=cursor.page_size, **filters)
            data = body.get("data") if isinstance(body, dict) else None
            data = data if isinstance(data, dict) else {}
            return Page(items=data.get("list") or [], total=parse_total(data.get("total")))

        return await collect_all(fetch_page, page_size, max_pages=max_pages)

    async def batch_process(
        self,
        api_method: Callable[[Any], Awaitable[Any]],
        items: List[Any],
        batch_size: int = 10,
    ) -> List[Any]:
        """
        Call api_method for every item, batch_size calls at a time.

        Results keep the order of items. The first failing batch stops the
        run; the error is re-raised with the batch number in its details.
        """
        if batch_size <= 0:
            raise ParameterError("batch_size must be positive", parameter_name="batch_size", parameter_value=batch_size)

        results: List[Any] = []
        for start in range(0, len(items), batch_size):
            batch_number = start // batch_size + 1
            batch = items[start:start + batch_size]
            try:
                results.extend(await asyncio.gather(*(api_method(item) for item in batch)))
            except CameraBridgeException as e:
                logger.error(f"Batch {batch_number} failed: {e.message}")
                e.details.update({"batch": batch_number})
                raise
        return results


@register_vendor(HIKVISION_CONFIG["vendor_name"])
class HikvisionClient(HikvisionAPI, BaseVendorClient):
    """Client for the Hikvision Artemis OpenAPI"""

    config_class = HikvisionConfig
    user_agent = HIKVISION_CONFIG["user_agent"]
    config: HikvisionConfig

    @classmethod
    def get_vendor_info(cls) -> VendorInfo:
        return VendorInfo(
            name=HIKVISION_CONFIG["vendor_name"],
            display_name=HIKVISION_CONFIG["display_name"],
            description="Hikvision Artemis platform with per-request HMAC-SHA256 signing",
            auth_type=HIKVISION_CONFIG["auth_type"],
            website_url="https://open.hikvision.com",
        )

    def _create_authenticator(self) -> BaseAuthenticator:
        return HmacAuthenticator(
            self.vendor_name,
            self,
            app_key=self.config.app_key,
            app_secret=self.config.app_secret,
        )

    def _business_failure(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        code = data.get("code")
        if code is None or code == "" or str(code) == "0":
            return None
        return f"[{code}] {data.get('msg') or 'unknown error'}"

    def _success_message(self, data: Any) -> str:
        if isinstance(data, dict) and data.get("msg"):
            return str(data["msg"])
        return "success"

    async def _connection_probe(self):
        # Signing has no login step, so probe with a one-row organization query
        await self.get_organizations(page_no=1, page_size=1)
