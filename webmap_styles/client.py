"""
ArcGIS REST client.

Fetches WebMap item data from a portal and layer metadata (drawingInfo,
description) from feature services. All failures surface as
ServiceFetchError so callers can treat them as "no service data".

Exports:
    ArcGISServiceClient: HTTP client for portal and feature service JSON
    build_webmap_url: Portal item data URL for a WebMap id
"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError as PydanticValidationError

from config.defaults import ServiceDefaults
from exceptions import ServiceFetchError
from util_logger import ComponentType, LoggerFactory

from .models import ServiceMetadata

logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "ArcGISServiceClient")


def _webmap_data_url(webmap_id: str, portal_url: str) -> str:
    return f"{portal_url.rstrip('/')}/sharing/rest/content/items/{webmap_id}/data"


def _webmap_params(token: Optional[str]) -> Dict[str, str]:
    params = {"f": "json"}
    if token:
        params["token"] = token
    return params


def build_webmap_url(
    webmap_id: str,
    token: Optional[str] = None,
    portal_url: str = ServiceDefaults.PORTAL_URL
) -> str:
    """
    Build the portal URL for a WebMap's JSON data.

    Example:
        build_webmap_url("376af635c84643cd816a8c5d017a53aa")
        # "https://www.arcgis.com/sharing/rest/content/items/376af635c84643cd816a8c5d017a53aa/data?f=json"
    """
    return f"{_webmap_data_url(webmap_id, portal_url)}?{urlencode(_webmap_params(token))}"


class ArcGISServiceClient:
    """
    Synchronous ArcGIS REST client built on httpx.

    Safe to share across threads: each request opens its own httpx.Client.
    """

    def __init__(
        self,
        timeout: float = ServiceDefaults.FETCH_TIMEOUT_SECONDS,
        portal_url: str = ServiceDefaults.PORTAL_URL,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Args:
            timeout: Per-request timeout in seconds
            portal_url: Portal base URL for WebMap item requests
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.timeout = timeout
        self.portal_url = portal_url.rstrip("/")
        self.transport = transport

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        GET a URL and decode a JSON object body.

        Raises:
            ServiceFetchError: Timeout, transport error, non-2xx status,
                non-JSON body, non-object body or ArcGIS error payload
        """
        try:
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport
            ) as client:
                response = client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise ServiceFetchError(f"Request timeout: {url}", url=url) from e
        except httpx.RequestError as e:
            raise ServiceFetchError(f"Request error: {e}", url=url) from e

        if not response.is_success:
            raise ServiceFetchError(
                f"HTTP {response.status_code} from {url}",
                url=url,
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ServiceFetchError(
                f"Invalid JSON response from {url}",
                url=url,
                status_code=response.status_code
            ) from e

        if not isinstance(data, dict):
            raise ServiceFetchError(
                f"Expected JSON object from {url}, got {type(data).__name__}",
                url=url,
                status_code=response.status_code
            )

        # ArcGIS reports errors in the body with HTTP 200
        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise ServiceFetchError(
                f"ArcGIS error from {url}: {message}",
                url=url,
                status_code=code if isinstance(code, int) else response.status_code
            )

        return data

    def fetch_service_metadata(self, service_url: str) -> ServiceMetadata:
        """
        Fetch a feature service layer's metadata ({url}?f=json).

        Returns:
            ServiceMetadata with optional drawingInfo and description
        """
        logger.debug(f"Fetching service metadata: {service_url}")
        data = self._get_json(service_url, params={"f": "json"})

        try:
            return ServiceMetadata.model_validate(data)
        except PydanticValidationError as e:
            raise ServiceFetchError(
                f"Unexpected service metadata shape from {service_url}: {e.error_count()} errors",
                url=service_url
            ) from e

    def fetch_webmap(self, webmap_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch WebMap JSON from the portal.

        Args:
            webmap_id: Portal item id
            token: Optional access token for private items

        Returns:
            Raw WebMap document
        """
        # Token travels as a query param only, never in error messages
        url = _webmap_data_url(webmap_id, self.portal_url)
        params = _webmap_params(token)
        logger.info(
            f"Fetching WebMap {webmap_id}",
            extra={'custom_dimensions': {'webmap_id': webmap_id, 'has_token': bool(token)}}
        )
        return self._get_json(url, params=params)
