"""
Office Service - regional offices that receive report notifications.

Offices are managed independently of reports: a report keeps its own
snapshot of the offices it was sent to, so edits here never alter history.
"""

from city_reporter.core.exceptions import NotFoundError, ValidationError
from city_reporter.models.office import OfficeType
from city_reporter.utils.firestore_helpers import firestore_errors, snapshot_to_dict, utc_now, where_filter
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


SAMPLE_OFFICES = [
    {"type": "DS", "name": "Divisional Secretariat Colombo", "email": "ds.colombo@gov.lk", "district": "Colombo", "province": "Western"},
    {"type": "PS", "name": "Colombo Central Police Station", "email": "ps.colombo@police.lk", "district": "Colombo", "province": "Western"},
    {"type": "DS", "name": "Divisional Secretariat Gampaha", "email": "ds.gampaha@gov.lk", "district": "Gampaha", "province": "Western"},
    {"type": "PS", "name": "Gampaha Police Station", "email": "ps.gampaha@police.lk", "district": "Gampaha", "province": "Western"},
    {"type": "DS", "name": "Divisional Secretariat Kandy", "email": "ds.kandy@gov.lk", "district": "Kandy", "province": "Central"},
    {"type": "PS", "name": "Kandy Police Station", "email": "ps.kandy@police.lk", "district": "Kandy", "province": "Central"},
    {"type": "DS", "name": "Divisional Secretariat Galle", "email": "ds.galle@gov.lk", "district": "Galle", "province": "Southern"},
    {"type": "PS", "name": "Galle Police Station", "email": "ps.galle@police.lk", "district": "Galle", "province": "Southern"},
]


def normalize_office_type(value: Optional[str]) -> str:
    normalized = (value or "").strip().upper()
    valid = [t.value for t in OfficeType]
    if normalized not in valid:
        raise ValidationError(f"Office type must be one of {valid}")
    return normalized


class OfficeService:
    """
    Service for RegionalOffice CRUD.
    """

    COLLECTION = "offices"

    def __init__(self, db):
        self.db = db

    def create_office(self, office_data: Dict) -> Dict:
        if not office_data.get("type") or not office_data.get("name") or not office_data.get("email"):
            raise ValidationError("Type, name, and email are required")

        now = utc_now()
        office_ref = self.db.collection(self.COLLECTION).document()
        office = {
            "type": normalize_office_type(office_data["type"]),
            "name": office_data["name"].strip(),
            "email": office_data["email"].strip().lower(),
            "phone": office_data.get("phone"),
            "address": office_data.get("address"),
            "district": office_data.get("district"),
            "province": office_data.get("province"),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        with firestore_errors("create office"):
            office_ref.set(office)

        office["id"] = office_ref.id
        logger.info(f"Office created: {office_ref.id} ({office['type']} {office['name']})")
        return office

    def list_offices(
        self,
        office_type: Optional[str] = None,
        district: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Dict]:
        query = self.db.collection(self.COLLECTION)
        if office_type:
            query = where_filter(query, "type", "==", office_type.strip().upper())
        if district:
            query = where_filter(query, "district", "==", district)
        if is_active is not None:
            query = where_filter(query, "is_active", "==", is_active)

        with firestore_errors("list offices"):
            offices = [snapshot_to_dict(doc) for doc in query.stream()]
        offices.sort(key=lambda o: o.get("name") or "")
        return offices

    def get_office(self, office_id: str) -> Dict:
        with firestore_errors("get office"):
            office = snapshot_to_dict(self.db.collection(self.COLLECTION).document(office_id).get())
        if office is None:
            raise NotFoundError("Office not found")
        return office

    def update_office(self, office_id: str, updates: Dict) -> Dict:
        updates = {k: v for k, v in updates.items() if v is not None}
        if "type" in updates:
            updates["type"] = normalize_office_type(updates["type"])
        if "email" in updates:
            updates["email"] = updates["email"].strip().lower()
        updates["updated_at"] = utc_now()

        office_ref = self.db.collection(self.COLLECTION).document(office_id)
        with firestore_errors("update office"):
            if not office_ref.get().exists:
                raise NotFoundError("Office not found")
            office_ref.update(updates)
            return snapshot_to_dict(office_ref.get())

    def delete_office(self, office_id: str) -> None:
        office_ref = self.db.collection(self.COLLECTION).document(office_id)
        with firestore_errors("delete office"):
            if not office_ref.get().exists:
                raise NotFoundError("Office not found")
            office_ref.delete()
        logger.info(f"Office deleted: {office_id}")

    def seed_offices(self) -> List[Dict]:
        return [self.create_office(dict(office)) for office in SAMPLE_OFFICES]


def get_office_service() -> OfficeService:
    """FastAPI dependency: office service bound to the initialized client."""
    from city_reporter.config.firebase import get_db
    return OfficeService(get_db())
