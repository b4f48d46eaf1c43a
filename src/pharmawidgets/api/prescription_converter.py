"""Conversion between backend prescriptions and the flat records shown in tables."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pharmawidgets.utils.logging import get_logger

logger = get_logger(__name__)

PRESCRIPTION_STATUSES = ("pending", "prepared", "ready_for_pickup", "delivered")


def format_prescription_id(api_id: Any) -> str:
    """42 -> 'RX-0042'."""
    return f"RX-{str(api_id).zfill(4)}"


def api_to_ui(api: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a backend prescription (nested patient/doctor/items) for display.

    Raises:
        KeyError: If a required nested field is missing.
    """
    patient = api["patient"]
    doctor = api["doctor"]
    issued = str(api["issuedDate"])

    items = []
    for item in api.get("items") or []:
        medication = item["medication"]
        items.append(
            {
                "medication": f"{medication['name']} {medication.get('dosage', '')}".strip(),
                "medication_id": str(medication["id"]),
                "dosage": item.get("posology", ""),
                "quantity": item.get("quantity", 0),
                "instructions": item.get("instructions", ""),
            }
        )

    converted = {
        "id": format_prescription_id(api["id"]),
        "@id": f"/prescriptions/RX-{api['id']}",
        "patient": f"{patient['firstName']} {patient['lastName']}",
        "patient_id": str(patient["id"]),
        "items": items,
        "doctor": f"Dr. {doctor['firstName']} {doctor['lastName']}",
        "date": issued.split("T")[0],
        "status": PRESCRIPTION_STATUSES[0],
        "notes": api.get("notes") or "",
        "created_at": issued,
        "updated_at": issued,
    }
    logger.debug("converted prescription %s (%d item(s))", converted["id"], len(items))
    return converted


def ui_to_api(ui_record: Mapping[str, Any], issued_date: Optional[datetime] = None) -> dict[str, Any]:
    """Build the create/update payload from a UI record.

    ``issuedDate`` is ``issued_date`` (or now, UTC) as an ISO timestamp.
    """
    when = issued_date or datetime.now(timezone.utc)
    return {
        "patient": ui_record["patient_id"],
        "doctor": ui_record["doctor"],
        "items": [
            {
                "medication": item["medication_id"],
                "posology": item.get("dosage", ""),
                "quantity": item.get("quantity", 0),
                "instructions": item.get("instructions") or "",
            }
            for item in ui_record.get("items") or []
        ],
        "notes": ui_record.get("notes") or "",
        "issuedDate": when.isoformat(),
    }
