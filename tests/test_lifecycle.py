"""
Tests for admin-attributed report mutations and the action log.
"""

from datetime import datetime, timezone

import pytest
from firebase_admin import firestore

from fakes import FakeBlobStore
from city_reporter.core.exceptions import InvalidStatusError, NotFoundError, StorageError, ValidationError
from city_reporter.models.report import PhotoUpload
from city_reporter.services.lifecycle_service import ResolutionLifecycleService


class TestAssignAdmin:

    def test_reassignment_overwrites_without_log_entry(self, lifecycle, identity, admin, make_report) -> None:
        other, _ = identity.register_admin(name="Maria Fernando", email="maria@colombo.gov.lk", city="Colombo")
        report_id = make_report()

        lifecycle.assign_admin(report_id, admin["id"])
        report = lifecycle.assign_admin(report_id, other["id"])

        assert report["assigned_admin"] == other["id"]
        assert report["assigned_admin_name"] == "Maria Fernando"
        assert report["assigned_at"] is not None
        assert report["admin_actions"] == []

    def test_unknown_admin_checked_before_report(self, lifecycle) -> None:
        with pytest.raises(NotFoundError, match="Admin not found"):
            lifecycle.assign_admin("missing-report", "missing-admin")

    def test_unknown_report(self, lifecycle, admin) -> None:
        with pytest.raises(NotFoundError, match="Report not found"):
            lifecycle.assign_admin("missing-report", admin["id"])

    def test_admin_id_required(self, lifecycle, make_report) -> None:
        with pytest.raises(ValidationError):
            lifecycle.assign_admin(make_report(), "")


class TestResolutionStatus:

    def test_same_status_is_still_logged(self, lifecycle, admin, make_report) -> None:
        report_id = make_report()

        report = lifecycle.update_resolution_status(report_id, admin["id"], "pending")

        assert report["resolution_status"] == "pending"
        assert len(report["admin_actions"]) == 1
        action = report["admin_actions"][0]
        assert action["action_type"] == "status_update"
        assert action["status_change"] == {"from": "pending", "to": "pending"}
        assert action["admin_name"] == "John Silva"

    def test_any_transition_is_allowed(self, lifecycle, admin, make_report) -> None:
        report_id = make_report()

        lifecycle.update_resolution_status(report_id, admin["id"], "resolved")
        report = lifecycle.update_resolution_status(report_id, admin["id"], "pending")

        changes = [a["status_change"] for a in report["admin_actions"]]
        assert changes == [{"from": "pending", "to": "resolved"}, {"from": "resolved", "to": "pending"}]

    def test_does_not_touch_coarse_status(self, lifecycle, admin, make_report) -> None:
        report = lifecycle.update_resolution_status(make_report(), admin["id"], "resolved")
        assert report["status"] == "submitted"

    def test_invalid_status_writes_nothing(self, lifecycle, admin, make_report, db) -> None:
        report_id = make_report()

        with pytest.raises(InvalidStatusError):
            lifecycle.update_resolution_status(report_id, admin["id"], "done")

        assert db.docs("reports")[report_id]["admin_actions"] == []
        assert db.update_calls == []

    def test_transition_is_read_and_written_in_one_transaction(self, lifecycle, admin, make_report, db) -> None:
        report_id = make_report(resolution_status="resolving")

        lifecycle.update_resolution_status(report_id, admin["id"], "arranging")

        assert len(db.transactions) == 1
        transaction = db.transactions[0]
        assert transaction.reads == [("reports", report_id)]
        assert transaction.committed
        (_, written), = transaction.writes
        assert written["resolution_status"] == "arranging"
        assert isinstance(written["admin_actions"], firestore.ArrayUnion)
        assert written["admin_actions"].values[0]["status_change"] == {"from": "resolving", "to": "arranging"}

    def test_unknown_report_rolls_back(self, lifecycle, admin, db) -> None:
        with pytest.raises(NotFoundError, match="Report not found"):
            lifecycle.update_resolution_status("missing-report", admin["id"], "resolved")

        assert db.update_calls == []
        assert db.transactions[0].writes == []


class TestAdminComment:

    def test_comment_is_logged(self, lifecycle, admin, make_report) -> None:
        report = lifecycle.add_comment(make_report(), admin["id"], "  Crew dispatched  ")

        action = report["admin_actions"][0]
        assert action["action_type"] == "comment"
        assert action["comment"] == "Crew dispatched"
        assert report["resolution_status"] == "pending"

    def test_blank_comment_rejected(self, lifecycle, admin, make_report) -> None:
        with pytest.raises(ValidationError, match="Comment and Admin ID are required"):
            lifecycle.add_comment(make_report(), admin["id"], "   ")

    def test_unknown_admin_leaves_report_untouched(self, lifecycle, make_report, db) -> None:
        report_id = make_report()
        with pytest.raises(NotFoundError):
            lifecycle.add_comment(report_id, "ghost", "hello")
        assert db.update_calls == []


class TestEvidencePhoto:

    async def test_evidence_and_action_share_url(self, lifecycle, admin, make_report, photo) -> None:
        report = await lifecycle.add_evidence_photo(make_report(), admin["id"], photo)

        evidence = report["evidence_photos"][0]
        action = report["admin_actions"][0]
        assert action["action_type"] == "photo_upload"
        assert action["photo_url"] == evidence["url"]
        assert action["photo_path"] == evidence["path"]
        assert evidence["uploaded_by"] == "John Silva"

    async def test_upload_failure_writes_nothing(self, db, identity, admin, make_report, photo) -> None:
        lifecycle = ResolutionLifecycleService(db=db, identity=identity, blob_store=FakeBlobStore(fail=True))
        report_id = make_report()

        with pytest.raises(StorageError):
            await lifecycle.add_evidence_photo(report_id, admin["id"], photo)

        stored = db.docs("reports")[report_id]
        assert stored["evidence_photos"] == []
        assert stored["admin_actions"] == []

    async def test_empty_photo_rejected(self, lifecycle, admin, make_report) -> None:
        empty = PhotoUpload(content=b"", content_type="image/png", filename="x.png")
        with pytest.raises(ValidationError, match="Photo is required"):
            await lifecycle.add_evidence_photo(make_report(), admin["id"], empty)


class TestActionLog:

    async def test_log_only_grows(self, lifecycle, admin, make_report, photo) -> None:
        report_id = make_report()
        lengths = []

        lifecycle.add_comment(report_id, admin["id"], "Received")
        lengths.append(len(lifecycle.list_actions(report_id)))
        lifecycle.assign_admin(report_id, admin["id"])
        lengths.append(len(lifecycle.list_actions(report_id)))
        lifecycle.update_resolution_status(report_id, admin["id"], "resolving")
        lengths.append(len(lifecycle.list_actions(report_id)))
        await lifecycle.add_evidence_photo(report_id, admin["id"], photo)
        lengths.append(len(lifecycle.list_actions(report_id)))

        assert lengths == [1, 1, 2, 3]

    def test_actions_listed_newest_first(self, lifecycle, admin, make_report) -> None:
        report_id = make_report()
        lifecycle.add_comment(report_id, admin["id"], "first")
        lifecycle.add_comment(report_id, admin["id"], "second")

        actions = lifecycle.list_actions(report_id)
        assert [a["comment"] for a in actions] == ["second", "first"]

    def test_assigned_reports(self, lifecycle, admin, make_report) -> None:
        first = make_report()
        second = make_report()
        make_report()
        lifecycle.assign_admin(first, admin["id"])
        lifecycle.assign_admin(second, admin["id"])
        lifecycle.update_resolution_status(second, admin["id"], "processing")

        reports, total = lifecycle.list_assigned_reports(admin["id"])
        assert total == 2
        assert [r["id"] for r in reports] == [second, first]

        reports, total = lifecycle.list_assigned_reports(admin["id"], resolution_status="processing")
        assert total == 1
        assert reports[0]["id"] == second


class TestConcurrentAppends:
    """Another admin writing between our read and our update must not lose entries."""

    OTHER_ACTION = {
        "id": "other-admin-action",
        "admin_id": "admin-2",
        "admin_name": "Maria Fernando",
        "admin_position": None,
        "action_type": "comment",
        "comment": "Checked on site",
        "status_change": None,
        "photo_url": None,
        "photo_path": None,
        "timestamp": datetime(2025, 1, 2, tzinfo=timezone.utc),
    }

    def test_comment_is_sent_as_server_side_append(self, lifecycle, admin, make_report, db) -> None:
        lifecycle.add_comment(make_report(), admin["id"], "Crew dispatched")

        _, _, payload = db.update_calls[-1]
        assert isinstance(payload["admin_actions"], firestore.ArrayUnion)

    def test_competing_comment_survives(self, lifecycle, admin, make_report, db) -> None:
        report_id = make_report()
        db.append_before_next_update("admin_actions", self.OTHER_ACTION)

        report = lifecycle.add_comment(report_id, admin["id"], "Crew dispatched")

        ids = [a["id"] for a in report["admin_actions"]]
        assert len(ids) == 2
        assert "other-admin-action" in ids

    def test_competing_entry_survives_status_update(self, lifecycle, admin, make_report, db) -> None:
        report_id = make_report()
        db.append_before_next_update("admin_actions", self.OTHER_ACTION)

        report = lifecycle.update_resolution_status(report_id, admin["id"], "processing")

        types = sorted(a["action_type"] for a in report["admin_actions"])
        assert types == ["comment", "status_update"]

    async def test_competing_evidence_survives(self, lifecycle, admin, make_report, db, photo) -> None:
        report_id = make_report()
        other_evidence = {
            "url": "https://storage.test/issue-reports/other.png",
            "path": "issue-reports/other.png",
            "uploaded_by": "Maria Fernando",
            "uploaded_at": datetime(2025, 1, 2, tzinfo=timezone.utc),
        }
        db.append_before_next_update("evidence_photos", other_evidence)

        report = await lifecycle.add_evidence_photo(report_id, admin["id"], photo)

        _, _, payload = db.update_calls[-1]
        assert isinstance(payload["evidence_photos"], firestore.ArrayUnion)
        assert isinstance(payload["admin_actions"], firestore.ArrayUnion)
        paths = [e["path"] for e in report["evidence_photos"]]
        assert len(paths) == 2
        assert "issue-reports/other.png" in paths
