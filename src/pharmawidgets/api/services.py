"""CRUD services over backend collections.

Each service is constructed with an explicit ApiClient so pages and tests
can inject their own (or a fake).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pharmawidgets.api.api_client import ApiClient, Collection
from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

ItemId = Union[int, str]


class ResourceService:
    """List/get/create/update/delete for one collection endpoint (e.g. '/medications')."""

    def __init__(self, client: ApiClient, endpoint: str) -> None:
        if not endpoint.startswith("/"):
            raise ValueError(f"endpoint must start with '/', got {endpoint!r}")
        self._client = client
        self._endpoint = endpoint.rstrip("/")

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def list_page(
        self,
        page: int = 1,
        items_per_page: int = 30,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Collection[dict[str, Any]]:
        return self._client.get_collection(self._endpoint, page, items_per_page, filters)

    def get(self, item_id: ItemId) -> dict[str, Any]:
        return self._client.get(f"{self._endpoint}/{item_id}")

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        logger.info("create %s", self._endpoint)
        return self._client.post(self._endpoint, dict(data))

    def update(self, item_id: ItemId, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Partial update (PATCH) with only the changed fields."""
        logger.info("update %s/%s fields=%s", self._endpoint, item_id, sorted(updates))
        return self._client.patch(f"{self._endpoint}/{item_id}", dict(updates))

    def delete(self, item_id: ItemId) -> None:
        logger.info("delete %s/%s", self._endpoint, item_id)
        self._client.delete(f"{self._endpoint}/{item_id}")


class MedicationService(ResourceService):
    def __init__(self, client: ApiClient) -> None:
        super().__init__(client, "/medications")

    def low_stock(self) -> list[dict[str, Any]]:
        return self._client.get(f"{self._endpoint}/low-stock") or []

    def by_category(self, category: str) -> list[dict[str, Any]]:
        return self._client.get(self._endpoint, {"category": category}) or []
