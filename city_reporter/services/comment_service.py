"""
Comment Service - public, unauthenticated comments on reports.

The public ledger is independent of the admin action log. There is no
moderation or access control here: callers that need it must gate these
operations at the route layer.
"""

from firebase_admin import firestore
from city_reporter.core.exceptions import NotFoundError, ValidationError
from city_reporter.utils.firestore_helpers import firestore_errors, snapshot_to_dict, utc_now
from typing import Dict, List, Tuple
import logging
import re
import uuid

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class PublicCommentService:
    """Service for managing public comments stored on the report document."""

    COLLECTION = "reports"

    def __init__(self, db):
        self.db = db

    def _load_report(self, report_id: str):
        doc_ref = self.db.collection(self.COLLECTION).document(report_id)
        with firestore_errors("get report"):
            report = snapshot_to_dict(doc_ref.get())
        if report is None:
            raise NotFoundError("Report not found")
        return doc_ref, report

    def add_comment(self, report_id: str, name: str, email: str, text: str) -> Tuple[Dict, Dict]:
        """
        Add a public comment to a report.

        Returns:
            (comment, report) where report reflects the state after the append
        """
        name = (name or "").strip()
        email = (email or "").strip()
        text = (text or "").strip()

        if not name or not email or not text:
            raise ValidationError("Name, email, and comment text are required")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")

        doc_ref, _ = self._load_report(report_id)

        comment = {
            "id": uuid.uuid4().hex,
            "name": name,
            "email": email.lower(),
            "text": text,
            "timestamp": utc_now(),
        }
        with firestore_errors("add public comment"):
            doc_ref.update({"public_comments": firestore.ArrayUnion([comment])})
            report = snapshot_to_dict(doc_ref.get())

        logger.info(f"Public comment {comment['id']} added to report {report_id}")
        return comment, report

    def list_comments(self, report_id: str) -> List[Dict]:
        _, report = self._load_report(report_id)
        return list(report.get("public_comments") or [])

    def delete_comment(self, report_id: str, comment_id: str) -> int:
        """
        Remove the first comment with ``comment_id``.

        Returns:
            Number of comments remaining on the report
        """
        doc_ref, report = self._load_report(report_id)
        comments = report.get("public_comments") or []

        target = next((c for c in comments if c.get("id") == comment_id), None)
        if target is None:
            raise NotFoundError("Comment not found")

        # ArrayRemove matches the exact stored entry, so concurrent appends survive.
        with firestore_errors("delete public comment"):
            doc_ref.update({"public_comments": firestore.ArrayRemove([target])})
            remaining = len(snapshot_to_dict(doc_ref.get()).get("public_comments") or [])

        logger.info(f"Public comment {comment_id} deleted from report {report_id}")
        return remaining


def get_comment_service() -> PublicCommentService:
    """FastAPI dependency: comment service bound to the initialized client."""
    from city_reporter.config.firebase import get_db
    return PublicCommentService(get_db())
