"""
Tests for the report submission pipeline.

Key Test Scenarios:
1. One emails_sent entry per office, whatever the delivery outcome
2. Upload failure leaves no report behind
3. Repeated reporter email reuses one user, with a fresh reporter snapshot
4. Preconditions are checked in order, before any side effect
5. Timeouts on upload and notification
"""

import json
import time

import pytest

from fakes import FakeBlobStore, FakeNotifier
from city_reporter.core.exceptions import DependencyError, PersistenceError, StorageError, ValidationError
from city_reporter.models.report import IssueReport
from city_reporter.services.report_service import ReportSubmissionService

OFFICES = [
    {"type": "DS", "name": "Divisional Secretariat Colombo", "email": "ds.colombo@gov.lk"},
    {"type": "ps", "name": "Colombo Central Police Station", "email": "PS.Colombo@police.lk"},
]

LOCATION = {"latitude": 6.9, "longitude": 79.9, "address": "Galle Road", "city": "Colombo"}

REPORTER = {"fullName": "Nimal Perera", "email": "Nimal@Example.com"}


async def submit(service, photo, offices=OFFICES, reporter=REPORTER, location=LOCATION, description="Pothole"):
    return await service.submit(
        description=description,
        location=json.dumps(location),
        offices=json.dumps(offices),
        reporter=json.dumps(reporter),
        photo=photo,
    )


class TestSubmissionPipeline:

    async def test_emails_sent_has_one_entry_per_office(self, submission, db, photo, notifier) -> None:
        result = await submit(submission, photo)

        stored = db.docs("reports")[result.report_id]
        assert len(stored["emails_sent"]) == 2
        assert [e["email"] for e in stored["emails_sent"]] == ["ds.colombo@gov.lk", "ps.colombo@police.lk"]
        assert result.total_emails == 2
        assert result.successful_emails == 2
        assert len(notifier.sent) == 2

    async def test_mixed_delivery_is_still_a_success(self, db, identity, blob_store, photo) -> None:
        notifier = FakeNotifier(failing={"ps.colombo@police.lk"})
        service = ReportSubmissionService(db=db, identity=identity, blob_store=blob_store, notifier=notifier)

        result = await submit(service, photo)

        assert result.report_id
        statuses = sorted(e.status.value for e in result.emails_sent)
        assert statuses == ["failed", "success"]
        failed = next(e for e in result.emails_sent if e.status.value == "failed")
        assert failed.error == "Mailbox unavailable"
        assert len(db.docs("reports")[result.report_id]["emails_sent"]) == 2

    async def test_raising_notifier_is_recorded_as_failure(self, db, identity, blob_store, photo) -> None:
        notifier = FakeNotifier(raising={"ds.colombo@gov.lk"})
        service = ReportSubmissionService(db=db, identity=identity, blob_store=blob_store, notifier=notifier)

        result = await submit(service, photo)

        outcome = {e.email: e for e in result.emails_sent}
        assert outcome["ds.colombo@gov.lk"].status.value == "failed"
        assert outcome["ds.colombo@gov.lk"].error == "Notification failed"
        assert outcome["ps.colombo@police.lk"].status.value == "success"

    async def test_notification_timeout_is_recorded_as_failure(self, db, identity, blob_store, photo) -> None:
        service = ReportSubmissionService(
            db=db,
            identity=identity,
            blob_store=blob_store,
            notifier=FakeNotifier(delay=0.5),
            notification_timeout=0.05,
        )

        result = await submit(service, photo, offices=OFFICES[:1])

        assert result.successful_emails == 0
        assert result.emails_sent[0].error == "Notification timed out"

    async def test_stored_report_shape(self, submission, db, photo, blob_store) -> None:
        result = await submit(submission, photo)
        stored = db.docs("reports")[result.report_id]

        assert stored["status"] == "submitted"
        assert stored["resolution_status"] == "pending"
        assert stored["admin_actions"] == []
        assert stored["public_comments"] == []
        assert stored["photo_url"] == blob_store.uploads[0].url
        assert stored["photo_path"] == blob_store.uploads[0].path
        assert stored["offices"][1] == {
            "type": "PS",
            "name": "Colombo Central Police Station",
            "email": "ps.colombo@police.lk",
        }

    async def test_location_defaults_and_geolocation(self, submission, db, photo) -> None:
        result = await submit(submission, photo)
        location = db.docs("reports")[result.report_id]["location"]

        assert location["city"] == "Colombo"
        assert location["district"] == "Unknown"
        assert location["province"] == "Unknown"
        assert location["full_address"] == "Galle Road"
        assert location["geolocation"] == {"type": "Point", "coordinates": [79.9, 6.9]}

    async def test_geocoder_fills_missing_fields(self, db, identity, blob_store, notifier, photo) -> None:
        class StubGeocoder:
            def reverse_geocode(self, latitude, longitude):
                return {"city": "Dehiwala", "district": "Colombo", "province": "Western"}

        service = ReportSubmissionService(
            db=db, identity=identity, blob_store=blob_store, notifier=notifier, geocoder=StubGeocoder()
        )
        result = await submit(service, photo)

        assert result.location.city == "Colombo"
        assert result.location.district == "Colombo"
        assert result.location.province == "Western"

    async def test_failing_geocoder_falls_back_to_unknown(self, db, identity, blob_store, notifier, photo) -> None:
        class BrokenGeocoder:
            def reverse_geocode(self, latitude, longitude):
                raise AttributeError("'list' object has no attribute 'get'")

        service = ReportSubmissionService(
            db=db, identity=identity, blob_store=blob_store, notifier=notifier, geocoder=BrokenGeocoder()
        )
        result = await submit(service, photo)

        assert result.location.city == "Colombo"
        assert result.location.district == "Unknown"
        assert result.successful_emails == 2

    async def test_slow_geocoder_is_bounded(self, db, identity, blob_store, notifier, photo) -> None:
        class SlowGeocoder:
            def reverse_geocode(self, latitude, longitude):
                time.sleep(0.5)
                return {"city": "Dehiwala", "district": "Colombo", "province": "Western"}

        service = ReportSubmissionService(
            db=db, identity=identity, blob_store=blob_store, notifier=notifier,
            geocoder=SlowGeocoder(), geocoding_timeout=0.05,
        )
        result = await submit(service, photo)

        assert result.location.province == "Unknown"
        assert db.docs("reports")[result.report_id]["location"]["district"] == "Unknown"

    async def test_line_breaks_in_city_do_not_break_notification(self, submission, photo, notifier) -> None:
        location = {**LOCATION, "city": "Colombo\r\nBcc: evil@x.y"}

        result = await submit(submission, photo, location=location)

        assert result.successful_emails == 2
        assert all("\n" not in sent["subject"] and "\r" not in sent["subject"] for sent in notifier.sent)

    async def test_email_body_carries_photo_and_escaped_description(self, submission, photo, notifier) -> None:
        await submit(submission, photo, description="<script>alert(1)</script>", offices=OFFICES[:1])

        body = notifier.sent[0]["body"]
        assert "&lt;script&gt;" in body
        assert "<script>" not in body
        assert "https://storage.test/issue-reports/" in body
        assert notifier.sent[0]["subject"] == "New City Issue Report - Colombo"


class TestReporterIdentity:

    async def test_repeated_email_creates_one_user(self, submission, db, photo) -> None:
        first = await submit(submission, photo)
        second = await submit(submission, photo, reporter={"fullName": "Nimal P. Perera", "email": "nimal@example.com"})

        users = db.docs("users")
        assert len(users) == 1
        user = next(iter(users.values()))
        assert user["name"] == "Nimal P. Perera"

        reports = db.docs("reports")
        assert reports[first.report_id]["reporter"]["name"] == "Nimal Perera"
        assert reports[second.report_id]["reporter"]["name"] == "Nimal P. Perera"
        assert reports[first.report_id]["reporter"]["user_id"] == reports[second.report_id]["reporter"]["user_id"]

    async def test_reporter_email_is_lowercased(self, submission, photo) -> None:
        result = await submit(submission, photo)
        assert result.reporter.email == "nimal@example.com"


class TestSubmissionFailures:

    async def test_upload_failure_leaves_no_report(self, db, identity, notifier, photo) -> None:
        service = ReportSubmissionService(db=db, identity=identity, blob_store=FakeBlobStore(fail=True), notifier=notifier)

        with pytest.raises(StorageError):
            await submit(service, photo)

        assert db.docs("reports") == {}
        assert notifier.sent == []

    async def test_upload_timeout_is_retryable(self, db, identity, notifier, photo) -> None:
        service = ReportSubmissionService(
            db=db,
            identity=identity,
            blob_store=FakeBlobStore(delay=0.5),
            notifier=notifier,
            upload_timeout=0.05,
        )

        with pytest.raises(DependencyError) as exc_info:
            await submit(service, photo)

        assert exc_info.value.retryable is True
        assert exc_info.value.status_code == 504
        assert db.docs("reports") == {}

    async def test_persistence_failure_surfaces(self, submission, db, identity, photo, notifier, blob_store) -> None:
        identity.register_user("Nimal Perera", "nimal@example.com")
        db.fail_on("set")

        with pytest.raises(PersistenceError):
            await submit(submission, photo)

        assert notifier.sent == []
        # blob stays orphaned
        assert len(blob_store.uploads) == 1


class TestSubmissionValidation:

    async def test_photo_checked_first(self, submission) -> None:
        with pytest.raises(ValidationError, match="Photo is required"):
            await submission.submit(description=None, location=None, offices=None, reporter=None, photo=None)

    async def test_missing_fields(self, submission, photo) -> None:
        with pytest.raises(ValidationError, match="Missing required fields"):
            await submission.submit(
                description="  ",
                location=json.dumps(LOCATION),
                offices=json.dumps(OFFICES),
                reporter=json.dumps(REPORTER),
                photo=photo,
            )

    async def test_malformed_location(self, submission, photo) -> None:
        with pytest.raises(ValidationError, match="Invalid location"):
            await submission.submit(
                description="Pothole",
                location="{not json",
                offices=json.dumps(OFFICES),
                reporter=json.dumps(REPORTER),
                photo=photo,
            )

    async def test_unknown_office_type(self, submission, photo) -> None:
        with pytest.raises(ValidationError, match="Invalid offices"):
            await submit(submission, photo, offices=[{"type": "XX", "name": "Nowhere", "email": "x@y.lk"}])

    async def test_non_image_rejected(self, submission, photo) -> None:
        photo.content_type = "application/pdf"
        with pytest.raises(ValidationError, match="Only image files"):
            await submit(submission, photo)

    async def test_zero_offices_creates_nothing(self, submission, db, photo, blob_store) -> None:
        with pytest.raises(ValidationError, match="At least one office"):
            await submit(submission, photo, offices=[])

        assert db.docs("reports") == {}
        assert db.docs("users") == {}
        assert blob_store.uploads == []

    async def test_accepts_decoded_structures(self, submission, photo) -> None:
        result = await submission.submit(
            description="Pothole",
            location=LOCATION,
            offices=OFFICES,
            reporter={"name": "Nimal Perera", "email": "nimal@example.com"},
            photo=photo,
        )
        assert result.total_emails == 2


class TestStoredDocumentSchema:

    async def test_report_after_workflow_matches_model(self, submission, lifecycle, comments, admin, db, photo) -> None:
        result = await submit(submission, photo)
        lifecycle.assign_admin(result.report_id, admin["id"])
        lifecycle.update_resolution_status(result.report_id, admin["id"], "arranging")
        await lifecycle.add_evidence_photo(result.report_id, admin["id"], photo)
        comments.add_comment(result.report_id, "Kamal", "kamal@example.com", "Thanks")

        report = IssueReport.model_validate({**db.docs("reports")[result.report_id], "id": result.report_id})

        assert report.resolution_status.value == "arranging"
        assert report.admin_actions[0].status_change.from_status == "pending"
        assert report.admin_actions[0].status_change.to_status == "arranging"
        assert report.location.geolocation.coordinates == [79.9, 6.9]
        assert len(report.evidence_photos) == 1
        assert report.public_comments[0].name == "Kamal"
