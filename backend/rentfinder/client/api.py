from typing import Any, Dict, List, Optional
import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from rentfinder.core.config import settings
from rentfinder.models.property import Property, PropertyResponse
from rentfinder.models.search import PropertyListResponse
from rentfinder.models.user import SavedProperty, SavedPropertyListResponse, SavedPropertyResponse
import logging

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the listings API"""

    def __init__(self, message: str, status_code: int, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.data = data or {}


class ListingsClient:
    """Async HTTP client for the listings API"""

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout or settings.CLIENT_TIMEOUT_SECONDS,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10)
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    # Transport failures are retried; HTTP error responses are not
    @retry(
        stop=stop_after_attempt(settings.CLIENT_MAX_RETRIES),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True
    )
    async def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                       json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = await self.client.request(
                method, path, params=params, json=json, headers=self._headers()
            )
        except httpx.TransportError as e:
            logger.error(f"Request error for {method} {path}: {e}")
            raise

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            data = None

        if response.is_error:
            message = data.get("error") if data else None
            raise ApiError(message or "Request failed", response.status_code, data)
        if data is None:
            # e.g. an HTML page from a proxy in front of the API
            raise ApiError("Invalid response from server", response.status_code)
        return data

    async def get_properties(self, params: Optional[Dict[str, Any]] = None) -> PropertyListResponse:
        """Fetch one page of listings; empty and None parameters are dropped"""
        clean = {
            key: value for key, value in (params or {}).items()
            if value is not None and value != ""
        }
        data = await self._request("GET", "/properties", params=clean)
        return PropertyListResponse.model_validate(data)

    async def get_property(self, property_id: str) -> Property:
        data = await self._request("GET", f"/properties/{property_id}")
        return PropertyResponse.model_validate(data).property

    async def get_featured(self, listing_type: Optional[str] = None, limit: int = 8) -> List[Property]:
        params: Dict[str, Any] = {"limit": limit}
        if listing_type:
            params["listingType"] = listing_type
        data = await self._request("GET", "/properties/featured", params=params)
        return [Property.model_validate(item) for item in data.get("properties", [])]

    async def get_saved(self) -> List[SavedProperty]:
        data = await self._request("GET", "/users/saved")
        return SavedPropertyListResponse.model_validate(data).saved

    async def save_property(self, property_id: str, notes: str = "") -> SavedProperty:
        data = await self._request("POST", f"/users/saved/{property_id}", json={"notes": notes})
        return SavedPropertyResponse.model_validate(data).saved

    async def unsave_property(self, property_id: str) -> None:
        await self._request("DELETE", f"/users/saved/{property_id}")
