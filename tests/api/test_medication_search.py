"""Tests for catalogue search and entry mapping."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

import pharmawidgets.api.medication_search as ms_mod
from pharmawidgets.api import ApiClient, ApiError, MedicationSearchService, map_catalogue_entry

ENTRY = {
    "cis": "60234100",
    "denomination": "DOLIPRANE 500 mg, comprimé",
    "forme_pharma": "comprimé",
    "titulaire": "OPELLA HEALTHCARE",
    "statut_amm": "Autorisation active",
    "commercialisation": "Commercialisée",
}


def test_map_catalogue_entry_extracts_dosage() -> None:
    row = map_catalogue_entry(ENTRY)
    assert row["id"] is None
    assert row["name"] == "DOLIPRANE 500 mg, comprimé"
    assert row["dosage"] == "500 mg"
    assert row["category"] == "comprimé"
    assert row["supplier"] == "OPELLA HEALTHCARE"
    assert row["stock"] == 0
    assert row["price"] == 0.0
    assert row["code_cis"] == "60234100"


def test_map_catalogue_entry_dosage_falls_back_to_form() -> None:
    row = map_catalogue_entry({"denomination": "SERUM PHYSIOLOGIQUE", "forme_pharma": "solution"})
    assert row["dosage"] == "solution"
    assert row["supplier"] == ""


def test_search_sync_maps_results() -> None:
    client = MagicMock(spec=ApiClient)
    client.get.return_value = {"data": [ENTRY, "junk"]}
    results = MedicationSearchService(client).search_sync("doli")
    client.get.assert_called_once_with("/drugs/search", {"name": "doli"})
    assert [r["name"] for r in results] == ["DOLIPRANE 500 mg, comprimé"]


def test_search_sync_blank_query_skips_request() -> None:
    client = MagicMock(spec=ApiClient)
    assert MedicationSearchService(client).search_sync("   ") == []
    client.get.assert_not_called()


@pytest.mark.parametrize("error", [ApiError("bad", 500), requests.ConnectionError("down")])
def test_search_sync_failures_return_empty(error: Exception) -> None:
    client = MagicMock(spec=ApiClient)
    client.get.side_effect = error
    assert MedicationSearchService(client).search_sync("doli") == []


def test_search_sync_unexpected_body() -> None:
    client = MagicMock(spec=ApiClient)
    client.get.return_value = None
    assert MedicationSearchService(client).search_sync("doli") == []


@pytest.mark.asyncio
async def test_search_runs_in_io_bound(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    async def fake_io_bound(fn, *args):
        calls.append(args)
        return fn(*args)

    monkeypatch.setattr(ms_mod.run, "io_bound", fake_io_bound)
    client = MagicMock(spec=ApiClient)
    client.get.return_value = {"data": [ENTRY]}
    results = await MedicationSearchService(client).search("doli")
    assert calls == [("doli",)]
    assert len(results) == 1
