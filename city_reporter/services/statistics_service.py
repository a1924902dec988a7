"""
Statistics service - read-only aggregations over reports.

Counts are computed in Python over the streamed collection (Firestore has no
group-by). Each grouping is returned as ``[{"id": value, "count": n}, ...]``
sorted by count descending.
"""

from collections import Counter, defaultdict
from city_reporter.models.report import ActionType
from city_reporter.utils.firestore_helpers import firestore_errors, snapshot_to_dict
from typing import Dict, Iterable, List
import logging

logger = logging.getLogger(__name__)


def _group_counts(values: Iterable) -> List[Dict]:
    counter = Counter(values)
    return [{"id": value, "count": count} for value, count in counter.most_common()]


class StatisticsService:
    """Location, status and admin-activity aggregations."""

    COLLECTION = "reports"

    def __init__(self, db):
        self.db = db

    def _all_reports(self) -> List[Dict]:
        with firestore_errors("load reports for statistics"):
            return [snapshot_to_dict(doc) for doc in self.db.collection(self.COLLECTION).stream()]

    def location_statistics(self) -> Dict:
        reports = self._all_reports()
        locations = [r.get("location") or {} for r in reports]
        return {
            "total_reports": len(reports),
            "by_city": _group_counts(loc.get("city") for loc in locations),
            "by_district": _group_counts(loc.get("district") for loc in locations),
            "by_province": _group_counts(loc.get("province") for loc in locations),
        }

    def status_statistics(self) -> Dict:
        reports = self._all_reports()
        return {
            "total_reports": len(reports),
            "by_status": _group_counts(r.get("status") for r in reports),
            "by_resolution_status": _group_counts(r.get("resolution_status") for r in reports),
        }

    def admin_activity(self) -> List[Dict]:
        """Per admin name: total actions and a breakdown by action type."""
        activity = defaultdict(Counter)
        for report in self._all_reports():
            for action in report.get("admin_actions") or []:
                counts = activity[action.get("admin_name")]
                counts["total"] += 1
                counts[action.get("action_type")] += 1

        rows = [
            {
                "admin_name": admin_name,
                "total_actions": counts["total"],
                "comments": counts[ActionType.COMMENT.value],
                "status_updates": counts[ActionType.STATUS_UPDATE.value],
                "photo_uploads": counts[ActionType.PHOTO_UPLOAD.value],
            }
            for admin_name, counts in activity.items()
        ]
        rows.sort(key=lambda row: row["total_actions"], reverse=True)
        return rows


def get_statistics_service() -> StatisticsService:
    """FastAPI dependency: statistics service bound to the initialized client."""
    from city_reporter.config.firebase import get_db
    return StatisticsService(get_db())
