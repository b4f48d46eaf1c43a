"""In-memory stand-ins for the backend, used when PHARMA_USE_MOCK is on."""

from __future__ import annotations

import copy
from typing import Any, Mapping

from pharmawidgets.api.api_client import Collection
from pharmawidgets.api.services import ItemId
from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

LOW_STOCK_THRESHOLD = 10

SAMPLE_MEDICATIONS: list[dict[str, Any]] = [
    {"id": 1, "name": "Amoxicillin", "category": "Antibiotic", "dosage": "500mg", "stock": 15,
     "supplier": "Pharma Wholesale Inc.", "price": 12.99, "status": "Low Stock"},
    {"id": 2, "name": "Lisinopril", "category": "Antihypertensive", "dosage": "10mg", "stock": 28,
     "supplier": "MedSource Supply", "price": 8.50, "status": "Low Stock"},
    {"id": 3, "name": "Atorvastatin", "category": "Statin", "dosage": "20mg", "stock": 32,
     "supplier": "HealthMed Suppliers", "price": 15.75, "status": "Low Stock"},
    {"id": 4, "name": "Metformin", "category": "Antidiabetic", "dosage": "1000mg", "stock": 65,
     "supplier": "Pharma Wholesale Inc.", "price": 9.25, "status": "In Stock"},
    {"id": 5, "name": "Omeprazole", "category": "Proton Pump Inhibitor", "dosage": "20mg", "stock": 78,
     "supplier": "MedSource Supply", "price": 7.99, "status": "In Stock"},
    {"id": 6, "name": "Sertraline", "category": "SSRI", "dosage": "50mg", "stock": 52,
     "supplier": "HealthMed Suppliers", "price": 11.50, "status": "In Stock"},
    {"id": 7, "name": "Ibuprofen", "category": "NSAID", "dosage": "400mg", "stock": 95,
     "supplier": "Pharma Wholesale Inc.", "price": 5.25, "status": "In Stock"},
    {"id": 8, "name": "Cetirizine", "category": "Antihistamine", "dosage": "10mg", "stock": 42,
     "supplier": "MedSource Supply", "price": 6.75, "status": "In Stock"},
]

# catalogue entries already mapped to the medication row shape
SAMPLE_CATALOGUE: list[dict[str, Any]] = [
    {"id": "X1", "code_cis": "60234100", "name": "Paracetamol", "category": "Analgesic", "dosage": "500 mg",
     "supplier": "Sanofi"},
    {"id": "X2", "code_cis": "61266250", "name": "Paracetamol Codeine", "category": "Analgesic",
     "dosage": "500 mg", "supplier": "Sanofi"},
    {"id": "X3", "code_cis": "68634000", "name": "Pantoprazole", "category": "Proton Pump Inhibitor",
     "dosage": "40 mg", "supplier": "Takeda"},
    {"id": "X4", "code_cis": "65319857", "name": "Amlodipine", "category": "Calcium Channel Blocker",
     "dosage": "5 mg", "supplier": "Pfizer"},
    {"id": "X5", "code_cis": "62204255", "name": "Azithromycin", "category": "Antibiotic", "dosage": "250 mg",
     "supplier": "Pfizer"},
]


def stock_status(stock: int) -> str:
    if stock <= 0:
        return "Out of Stock"
    if stock < LOW_STOCK_THRESHOLD:
        return "Low Stock"
    return "In Stock"


class MockMedicationService:
    """Same surface as MedicationService, backed by a list in memory."""

    def __init__(self, rows: list[Mapping[str, Any]] | None = None) -> None:
        source = SAMPLE_MEDICATIONS if rows is None else rows
        self._rows: list[dict[str, Any]] = [dict(r) for r in copy.deepcopy(list(source))]

    def _find(self, item_id: ItemId) -> dict[str, Any]:
        for row in self._rows:
            if row.get("id") == item_id:
                return row
        raise KeyError(f"no medication with id {item_id!r}")

    def list_page(self, page: int = 1, items_per_page: int = 30, filters: Mapping[str, Any] | None = None) -> Collection[dict[str, Any]]:
        rows = [dict(r) for r in self._rows]
        for key, value in (filters or {}).items():
            rows = [r for r in rows if r.get(key) == value]
        start = (page - 1) * items_per_page
        total = len(rows)
        return Collection(
            items=rows[start:start + items_per_page],
            total_items=total,
            items_per_page=items_per_page,
            total_pages=-(-total // items_per_page),
            current_page=page,
        )

    def get(self, item_id: ItemId) -> dict[str, Any]:
        return dict(self._find(item_id))

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        row = {k: v for k, v in data.items() if k != "id"}
        row["id"] = max((int(r["id"]) for r in self._rows), default=0) + 1
        row.setdefault("stock", 0)
        row.setdefault("status", stock_status(int(row["stock"] or 0)))
        self._rows.append(row)
        logger.info("mock create medication id=%s name=%r", row["id"], row.get("name"))
        return dict(row)

    def update(self, item_id: ItemId, updates: Mapping[str, Any]) -> dict[str, Any]:
        row = self._find(item_id)
        row.update(updates)
        if "stock" in updates:
            row["status"] = stock_status(int(row["stock"] or 0))
        return dict(row)

    def delete(self, item_id: ItemId) -> None:
        self._rows.remove(self._find(item_id))

    def low_stock(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._rows if int(r.get("stock") or 0) < LOW_STOCK_THRESHOLD]

    def by_category(self, category: str) -> list[dict[str, Any]]:
        return [dict(r) for r in self._rows if r.get("category") == category]


class MockCatalogueSearch:
    """Case-insensitive substring search over SAMPLE_CATALOGUE."""

    def __init__(self, catalogue: list[Mapping[str, Any]] | None = None) -> None:
        self._catalogue = [dict(c) for c in (SAMPLE_CATALOGUE if catalogue is None else catalogue)]

    def search_sync(self, query: str) -> list[dict[str, Any]]:
        q = query.strip().lower()
        if not q:
            return []
        return [dict(c) for c in self._catalogue if q in str(c.get("name", "")).lower()]

    async def search(self, query: str) -> list[dict[str, Any]]:
        return self.search_sync(query)
