"""
Report query service - read paths and plain field updates on reports.

Firestore has no case-insensitive or substring match and no geospatial
index, so location searches and nearby queries filter in Python over the
streamed documents.
"""

from city_reporter.core.exceptions import InvalidStatusError, NotFoundError
from city_reporter.models.report import ReportStatus
from city_reporter.utils.firestore_helpers import firestore_errors, snapshot_to_dict, utc_now, where_filter
from city_reporter.utils.geo import haversine_meters, point_lat_lon
from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

LOCATION_FIELDS = ("city", "district", "province")


def _newest_first(reports: List[Dict]) -> List[Dict]:
    reports.sort(key=lambda r: r.get("created_at") or utc_now(), reverse=True)
    return reports


class ReportQueryService:
    """
    Service for listing, filtering and maintaining reports.
    """

    COLLECTION = "reports"

    def __init__(self, db):
        self.db = db

    def _stream(self, query, operation: str) -> List[Dict]:
        with firestore_errors(operation):
            return [snapshot_to_dict(doc) for doc in query.stream()]

    def list_reports(self, status: Optional[str] = None, limit: int = 50, skip: int = 0) -> Tuple[List[Dict], int]:
        """
        Reports newest first.

        Returns:
            (page of reports, total matching reports)
        """
        query = self.db.collection(self.COLLECTION)
        if status:
            query = where_filter(query, "status", "==", status)

        reports = _newest_first(self._stream(query, "list reports"))
        return reports[skip:skip + limit], len(reports)

    def get_report(self, report_id: str) -> Dict:
        with firestore_errors("get report"):
            report = snapshot_to_dict(self.db.collection(self.COLLECTION).document(report_id).get())
        if report is None:
            raise NotFoundError("Report not found")
        return report

    def list_reports_by_user(self, user_id: str) -> List[Dict]:
        query = where_filter(self.db.collection(self.COLLECTION), "reporter.user_id", "==", user_id)
        return _newest_first(self._stream(query, "list reports by user"))

    def list_reports_by_location(self, field: str, value: str, limit: int = 50, skip: int = 0) -> Tuple[List[Dict], int]:
        """Case-insensitive substring match on location.city / district / province."""
        if field not in LOCATION_FIELDS:
            raise ValueError(f"Unsupported location field: {field}")

        needle = (value or "").strip().lower()
        reports = self._stream(self.db.collection(self.COLLECTION), f"list reports by {field}")
        matches = [r for r in reports if needle in ((r.get("location") or {}).get(field) or "").lower()]
        matches = _newest_first(matches)
        return matches[skip:skip + limit], len(matches)

    def find_nearby(self, latitude: float, longitude: float, max_distance: float = 5000) -> List[Dict]:
        """Reports within ``max_distance`` meters, nearest first."""
        reports = self._stream(self.db.collection(self.COLLECTION), "find nearby reports")

        nearby = []
        for report in reports:
            point = point_lat_lon((report.get("location") or {}).get("geolocation"))
            if point is None:
                continue
            distance = haversine_meters(latitude, longitude, point[0], point[1])
            if distance <= max_distance:
                report["distance_meters"] = round(distance, 1)
                nearby.append(report)

        nearby.sort(key=lambda r: r["distance_meters"])
        return nearby

    def update_status(self, report_id: str, status: str) -> Dict:
        """
        Set the coarse ``status`` field.

        Does not touch ``resolution_status``: the two fields are independent.
        """
        valid = [s.value for s in ReportStatus]
        if status not in valid:
            raise InvalidStatusError(f"Invalid status. Must be one of {valid}")

        doc_ref = self.db.collection(self.COLLECTION).document(report_id)
        with firestore_errors("update report status"):
            if not doc_ref.get().exists:
                raise NotFoundError("Report not found")
            doc_ref.update({"status": status, "updated_at": utc_now()})
            report = snapshot_to_dict(doc_ref.get())

        logger.info(f"Report {report_id} status set to {status}")
        return report

    def delete_report(self, report_id: str) -> None:
        doc_ref = self.db.collection(self.COLLECTION).document(report_id)
        with firestore_errors("delete report"):
            if not doc_ref.get().exists:
                raise NotFoundError("Report not found")
            doc_ref.delete()
        logger.info(f"Report deleted: {report_id}")


def get_query_service() -> ReportQueryService:
    """FastAPI dependency: query service bound to the initialized client."""
    from city_reporter.config.firebase import get_db
    return ReportQueryService(get_db())
