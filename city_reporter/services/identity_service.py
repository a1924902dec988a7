"""
Identity Service - citizen users and staff admins in Firestore.

Both collections use find-or-update-by-email semantics: registering an email
that already exists overwrites the mutable fields instead of creating a
duplicate record.
"""

from city_reporter.core.exceptions import NotFoundError, ValidationError
from city_reporter.utils.firestore_helpers import firestore_errors, snapshot_to_dict, utc_now, where_filter
from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


SAMPLE_ADMINS = [
    {"name": "John Silva", "email": "john.silva@colombo.gov.lk", "position": "Senior Administrator", "city": "Colombo", "district": "Colombo", "province": "Western", "phone": "+94112223344"},
    {"name": "Maria Fernando", "email": "maria.fernando@colombo.gov.lk", "position": "Issue Manager", "city": "Colombo", "district": "Colombo", "province": "Western", "phone": "+94112225566"},
    {"name": "Ravi Perera", "email": "ravi.perera@gampaha.gov.lk", "position": "Administrative Officer", "city": "Gampaha", "district": "Gampaha", "province": "Western", "phone": "+94332234455"},
    {"name": "Nisha Jayasuriya", "email": "nisha.jayasuriya@kandy.gov.lk", "position": "Resolution Coordinator", "city": "Kandy", "district": "Kandy", "province": "Central", "phone": "+94812334566"},
]


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class IdentityService:
    """
    Service for user and admin identity records.
    """

    USERS = "users"
    ADMINS = "admins"

    def __init__(self, db):
        self.db = db

    # ---------- Users ----------

    def _find_by_email(self, collection: str, email: str) -> Optional[Dict]:
        query = where_filter(self.db.collection(collection), "email", "==", email).limit(1)
        with firestore_errors(f"lookup {collection} by email"):
            docs = list(query.stream())
        if not docs:
            return None
        return snapshot_to_dict(docs[0])

    def resolve_or_create_user(self, name: str, email: str, phone: Optional[str] = None) -> Dict:
        """
        Find the user for ``email`` or create one.

        An existing user's name is overwritten, and phone too when a non-empty
        value is supplied. Fails only on storage errors.
        """
        return self.register_user(name, email, phone)[0]

    def register_user(self, name: str, email: str, phone: Optional[str] = None) -> Tuple[Dict, bool]:
        """
        Returns:
            (user dict, created flag)
        """
        email = normalize_email(email)
        name = (name or "").strip()
        if not name or not email:
            raise ValidationError("Name and email are required")

        existing = self._find_by_email(self.USERS, email)
        now = utc_now()

        if existing:
            update_data = {"name": name, "updated_at": now}
            if phone and phone.strip():
                update_data["phone"] = phone.strip()

            with firestore_errors("update user"):
                self.db.collection(self.USERS).document(existing["id"]).update(update_data)

            existing.update(update_data)
            logger.info(f"User updated: {existing['id']}")
            return existing, False

        user_ref = self.db.collection(self.USERS).document()
        user_data = {
            "name": name,
            "email": email,
            "phone": phone.strip() if phone and phone.strip() else None,
            "created_at": now,
            "updated_at": now,
        }
        with firestore_errors("create user"):
            user_ref.set(user_data)

        user_data["id"] = user_ref.id
        logger.info(f"User created: {user_ref.id}")
        return user_data, True

    def get_user(self, user_id: str) -> Dict:
        with firestore_errors("get user"):
            user = snapshot_to_dict(self.db.collection(self.USERS).document(user_id).get())
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(self) -> List[Dict]:
        with firestore_errors("list users"):
            users = [snapshot_to_dict(doc) for doc in self.db.collection(self.USERS).stream()]
        users.sort(key=lambda u: u.get("created_at") or utc_now(), reverse=True)
        return users

    # ---------- Admins ----------

    def register_admin(
        self,
        name: str,
        email: str,
        city: str,
        position: Optional[str] = None,
        district: Optional[str] = None,
        province: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Tuple[Dict, bool]:
        """
        Create an admin, or update the one registered under ``email``.

        Returns:
            (admin dict, created flag)
        """
        email = normalize_email(email)
        name = (name or "").strip()
        city = (city or "").strip()
        if not name or not email or not city:
            raise ValidationError("Name, email, and city are required")

        now = utc_now()
        fields = {
            "name": name,
            "position": position,
            "city": city,
            "district": district,
            "province": province,
            "updated_at": now,
        }
        if phone and phone.strip():
            fields["phone"] = phone.strip()

        existing = self._find_by_email(self.ADMINS, email)
        if existing:
            with firestore_errors("update admin"):
                self.db.collection(self.ADMINS).document(existing["id"]).update(fields)
            existing.update(fields)
            logger.info(f"Admin updated: {existing['id']}")
            return existing, False

        admin_ref = self.db.collection(self.ADMINS).document()
        admin_data = {"email": email, "phone": None, "created_at": now, **fields}
        with firestore_errors("create admin"):
            admin_ref.set(admin_data)

        admin_data["id"] = admin_ref.id
        logger.info(f"Admin created: {admin_ref.id}")
        return admin_data, True

    def resolve_admin(self, admin_id: Optional[str]) -> Dict:
        """
        Plain existence lookup for admin-attributed mutations.

        Raises:
            NotFoundError: no admin with this id
        """
        if not admin_id:
            raise NotFoundError("Admin not found")
        with firestore_errors("get admin"):
            admin = snapshot_to_dict(self.db.collection(self.ADMINS).document(admin_id).get())
        if admin is None:
            raise NotFoundError("Admin not found")
        return admin

    def list_admins_by_city(self, city: str) -> List[Dict]:
        """Case-insensitive substring match on city, sorted by name."""
        needle = (city or "").strip().lower()
        with firestore_errors("list admins"):
            admins = [snapshot_to_dict(doc) for doc in self.db.collection(self.ADMINS).stream()]
        matches = [a for a in admins if needle in (a.get("city") or "").lower()]
        matches.sort(key=lambda a: a.get("name") or "")
        return matches

    def seed_admins(self) -> List[Dict]:
        return [self.register_admin(**admin)[0] for admin in SAMPLE_ADMINS]


def get_identity_service() -> IdentityService:
    """FastAPI dependency: identity service bound to the initialized client."""
    from city_reporter.config.firebase import get_db
    return IdentityService(get_db())
