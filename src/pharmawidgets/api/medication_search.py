"""Drug catalogue search used to prefill new inventory rows."""

from __future__ import annotations

import re
from typing import Any, Mapping

import requests
from nicegui import run

from pharmawidgets.api.api_client import ApiClient, ApiError
from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

# e.g. "ASPIRINE ARROW 100 mg" -> "100 mg"
_DOSAGE_RE = re.compile(r"(\d+\s*mg)", re.IGNORECASE)


def map_catalogue_entry(entry: Mapping[str, Any]) -> dict[str, Any]:
    """Map one catalogue entry onto the medication row shape."""
    denomination = str(entry.get("denomination") or "")
    form = entry.get("forme_pharma") or ""
    match = _DOSAGE_RE.search(denomination)
    return {
        "id": None,
        "code_cis": entry.get("cis"),
        "name": denomination,
        "description": denomination,
        "category": form,
        "dosage": match.group(1) if match else form,
        "stock": 0,
        "price": 0.0,
        "supplier": entry.get("titulaire") or "",
        "status": entry.get("statut_amm") or "",
        "distribution": entry.get("commercialisation") or "",
    }


class MedicationSearchService:
    """Search the drug catalogue by name."""

    def __init__(self, client: ApiClient, endpoint: str = "/drugs/search") -> None:
        self._client = client
        self._endpoint = endpoint

    def search_sync(self, query: str) -> list[dict[str, Any]]:
        """Blocking search. Returns [] for blank queries and on request failure."""
        if not query.strip():
            return []
        try:
            response = self._client.get(self._endpoint, {"name": query})
        except (ApiError, requests.RequestException):
            logger.exception("medication search failed for %r", query)
            return []
        entries = response.get("data") if isinstance(response, Mapping) else None
        entries = entries or []
        results = [map_catalogue_entry(e) for e in entries if isinstance(e, Mapping)]
        logger.debug("medication search %r -> %d result(s)", query, len(results))
        return results

    async def search(self, query: str) -> list[dict[str, Any]]:
        """Non-blocking search for use as an autocomplete ``search`` callback."""
        return await run.io_bound(self.search_sync, query) or []
