"""
Resolution Lifecycle Service - admin-attributed mutations on a report.

Every mutation follows the same shape:
1. Resolve the acting admin (NotFoundError if absent)
2. Resolve the target report (NotFoundError if absent)
3. Apply the change and append one entry to ``admin_actions``

Both lookups happen before any write, so a failed lookup leaves the report
exactly as it was. Log entries are appended with ``ArrayUnion`` (an atomic
server-side append), never by rewriting a previously read array, so
concurrent admins cannot lose each other's entries. Status changes read the
current value and write inside one transaction, so the logged from/to pair
always names the value that was actually replaced.

resolution_status is an open enum: any value may follow any other, and every
change (including A -> A) is logged with its from/to pair.
"""

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from firebase_admin import firestore

from city_reporter.core.exceptions import InvalidStatusError, NotFoundError, ValidationError
from city_reporter.core.settings import settings
from city_reporter.models.report import ActionType, PhotoUpload, ResolutionStatus
from city_reporter.services.identity_service import IdentityService
from city_reporter.services.report_service import upload_photo, validate_photo
from city_reporter.utils.firestore_helpers import (
    firestore_errors,
    run_in_transaction,
    snapshot_to_dict,
    utc_now,
    where_filter,
)

logger = logging.getLogger(__name__)


def validate_resolution_status(status: Optional[str]) -> str:
    valid = [s.value for s in ResolutionStatus]
    if status not in valid:
        raise InvalidStatusError(f"Invalid status. Must be one of {valid}")
    return status


def build_action(admin: Dict, action_type: ActionType, **fields) -> Dict:
    """Action log entry attributed to ``admin``."""
    entry = {
        "id": uuid.uuid4().hex,
        "admin_id": admin["id"],
        "admin_name": admin["name"],
        "admin_position": admin.get("position"),
        "action_type": action_type.value,
        "comment": None,
        "status_change": None,
        "photo_url": None,
        "photo_path": None,
        "timestamp": utc_now(),
    }
    entry.update(fields)
    return entry


class ResolutionLifecycleService:
    """
    Service for admin workflow operations on reports.
    """

    COLLECTION = "reports"

    def __init__(self, db, identity: IdentityService, blob_store=None, upload_timeout: Optional[float] = None):
        self.db = db
        self.identity = identity
        self.blob_store = blob_store
        self.upload_timeout = upload_timeout or settings.UPLOAD_TIMEOUT_SECONDS

    def _load_report(self, report_id: str) -> Tuple[object, Dict]:
        doc_ref = self.db.collection(self.COLLECTION).document(report_id)
        with firestore_errors("get report"):
            report = snapshot_to_dict(doc_ref.get())
        if report is None:
            raise NotFoundError("Report not found")
        return doc_ref, report

    def _reload(self, doc_ref) -> Dict:
        with firestore_errors("get report"):
            return snapshot_to_dict(doc_ref.get())

    def assign_admin(self, report_id: str, admin_id: str) -> Dict:
        """
        Assign (or reassign) an admin to a report.

        Overwrites the previous assignment. Assignment is not written to the
        action log.
        """
        if not admin_id:
            raise ValidationError("Admin ID is required")

        admin = self.identity.resolve_admin(admin_id)
        doc_ref, _ = self._load_report(report_id)

        now = utc_now()
        with firestore_errors("assign admin"):
            doc_ref.update({
                "assigned_admin": admin["id"],
                "assigned_admin_name": admin["name"],
                "assigned_admin_position": admin.get("position"),
                "assigned_at": now,
                "updated_at": now,
            })

        logger.info(f"Admin {admin['id']} assigned to report {report_id}")
        return self._reload(doc_ref)

    def update_resolution_status(self, report_id: str, admin_id: str, status: str) -> Dict:
        """
        Set ``resolution_status`` and log the transition.

        Raises:
            InvalidStatusError: status is not one of the five workflow values
            NotFoundError: admin or report does not exist
        """
        status = validate_resolution_status(status)
        admin = self.identity.resolve_admin(admin_id)
        doc_ref = self.db.collection(self.COLLECTION).document(report_id)

        def apply(transaction) -> str:
            report = snapshot_to_dict(doc_ref.get(transaction=transaction))
            if report is None:
                raise NotFoundError("Report not found")

            previous = report.get("resolution_status", ResolutionStatus.PENDING.value)
            action = build_action(
                admin,
                ActionType.STATUS_UPDATE,
                status_change={"from": previous, "to": status},
            )
            transaction.update(doc_ref, {
                "resolution_status": status,
                "admin_actions": firestore.ArrayUnion([action]),
                "updated_at": utc_now(),
            })
            return previous

        # The from/to pair must describe the value actually replaced
        with firestore_errors("update resolution status"):
            previous = run_in_transaction(self.db, apply)

        logger.info(f"Admin {admin['id']} updated report {report_id}: {previous} -> {status}")
        return self._reload(doc_ref)

    def add_comment(self, report_id: str, admin_id: str, comment: Optional[str]) -> Dict:
        """Append an admin comment. Does not touch either status field."""
        comment = (comment or "").strip()
        if not comment or not admin_id:
            raise ValidationError("Comment and Admin ID are required")

        admin = self.identity.resolve_admin(admin_id)
        doc_ref, _ = self._load_report(report_id)

        action = build_action(admin, ActionType.COMMENT, comment=comment)
        with firestore_errors("add admin comment"):
            doc_ref.update({
                "admin_actions": firestore.ArrayUnion([action]),
                "updated_at": utc_now(),
            })

        logger.info(f"Admin {admin['id']} commented on report {report_id}")
        return self._reload(doc_ref)

    async def add_evidence_photo(self, report_id: str, admin_id: str, photo: Optional[PhotoUpload]) -> Dict:
        """
        Upload an evidence photo and log it.

        An upload failure aborts the mutation: no evidence entry and no log
        entry are written.
        """
        photo = validate_photo(photo)
        if not admin_id:
            raise ValidationError("Admin ID is required")

        admin = self.identity.resolve_admin(admin_id)
        doc_ref, _ = self._load_report(report_id)

        stored = await upload_photo(self.blob_store, photo, self.upload_timeout)

        now = utc_now()
        evidence = {
            "url": stored.url,
            "path": stored.path,
            "uploaded_by": admin["name"],
            "uploaded_at": now,
        }
        action = build_action(admin, ActionType.PHOTO_UPLOAD, photo_url=stored.url, photo_path=stored.path)

        with firestore_errors("add evidence photo"):
            doc_ref.update({
                "evidence_photos": firestore.ArrayUnion([evidence]),
                "admin_actions": firestore.ArrayUnion([action]),
                "updated_at": now,
            })

        logger.info(f"Admin {admin['id']} uploaded evidence for report {report_id}: {stored.path}")
        return self._reload(doc_ref)

    def list_actions(self, report_id: str) -> List[Dict]:
        """Action log of a report, newest first."""
        _, report = self._load_report(report_id)
        actions = list(reversed(report.get("admin_actions") or []))
        actions.sort(key=lambda a: a.get("timestamp") or utc_now(), reverse=True)
        return actions

    def list_assigned_reports(
        self,
        admin_id: str,
        resolution_status: Optional[str] = None,
        limit: int = 50,
        skip: int = 0,
    ) -> Tuple[List[Dict], int]:
        """Reports assigned to ``admin_id``, newest first, with the unpaged total."""
        query = where_filter(self.db.collection(self.COLLECTION), "assigned_admin", "==", admin_id)
        if resolution_status:
            query = where_filter(query, "resolution_status", "==", validate_resolution_status(resolution_status))

        with firestore_errors("list assigned reports"):
            reports = [snapshot_to_dict(doc) for doc in query.stream()]
        reports.sort(key=lambda r: r.get("created_at") or utc_now(), reverse=True)
        return reports[skip:skip + limit], len(reports)


def get_lifecycle_service() -> ResolutionLifecycleService:
    """FastAPI dependency: lifecycle service wired to Firestore and Storage."""
    from city_reporter.config.firebase import get_db
    from city_reporter.services.storage_service import get_blob_store

    db = get_db()
    return ResolutionLifecycleService(db=db, identity=IdentityService(db), blob_store=get_blob_store())
