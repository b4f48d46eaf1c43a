"""REST client for the pharmacy backend (API Platform / JSON-LD)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, Optional, TypeVar
from urllib.parse import urlencode

import requests

from pharmawidgets.api.config import ApiConfig
from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ApiError(RuntimeError):
    """Non-2xx response from the backend."""

    def __init__(self, message: str, status_code: int, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass
class Collection(Generic[T]):
    """One page of a paginated collection."""

    items: list[T] = field(default_factory=list)
    total_items: int = 0
    items_per_page: int = 30
    total_pages: int = 0
    current_page: int = 1


class ApiClient:
    """Thin wrapper over a ``requests.Session`` with JSON-LD defaults.

    The session is injectable so tests (and the app) can substitute their own.
    """

    def __init__(self, config: ApiConfig | None = None, session: requests.Session | None = None) -> None:
        self._config = config or ApiConfig()
        self._session = session or requests.Session()
        self._headers: dict[str, str] = dict(self._config.headers)
        logger.debug("ApiClient base_url=%s", self._config.base_url)

    @property
    def config(self) -> ApiConfig:
        return self._config

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def set_auth_token(self, token: str) -> None:
        self._headers["Authorization"] = f"Bearer {token}"

    def remove_auth_token(self) -> None:
        self._headers.pop("Authorization", None)

    def build_url(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Join ``endpoint`` onto the base URL; ``None`` params are dropped."""
        url = f"{self._config.base_url}{endpoint}"
        if params:
            query = {k: str(v) for k, v in params.items() if v is not None}
            if query:
                url = f"{url}?{urlencode(query)}"
        return url

    def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (or None).

        Raises:
            ApiError: On a non-2xx response.
            requests.RequestException: On transport failure or timeout.
        """
        url = self.build_url(endpoint, params)
        logger.debug("%s %s", method, url)

        response = self._session.request(
            method,
            url,
            headers=self._headers,
            json=data,
            timeout=self._config.timeout_s,
        )

        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = None
            if isinstance(payload, Mapping):
                message = payload.get("hydra:description") or payload.get("message")
            if not message:
                message = f"API error: {response.status_code} {response.reason}"
            logger.error("%s %s failed: %s", method, url, message)
            raise ApiError(message, response.status_code, payload)

        content_type = response.headers.get("Content-Type", "")
        if "json" in content_type and response.content:
            return response.json()
        return None

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, data: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("POST", endpoint, data=data, params=params)

    def put(self, endpoint: str, data: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("PUT", endpoint, data=data, params=params)

    def patch(self, endpoint: str, data: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("PATCH", endpoint, data=data, params=params)

    def delete(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("DELETE", endpoint, params=params)

    def get_collection(
        self,
        endpoint: str,
        page: int = 1,
        items_per_page: int = 30,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Collection[dict[str, Any]]:
        """Fetch one page of an API Platform collection."""
        params: dict[str, Any] = {"page": page, "itemsPerPage": items_per_page}
        if filters:
            params.update(filters)

        response = self.get(endpoint, params) or {}
        items = response.get("hydra:member", response.get("member")) or []
        total = response.get("hydra:totalItems", response.get("totalItems")) or 0

        return Collection(
            items=list(items),
            total_items=int(total),
            items_per_page=items_per_page,
            total_pages=math.ceil(int(total) / items_per_page) if items_per_page else 0,
            current_page=page,
        )
