"""
Shared fixtures for City Reporter tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Services are built directly on the in-memory fakes in ``fakes.py``
- Route tests use TestClient with FastAPI dependency overrides
"""

from datetime import datetime, timedelta, timezone

import pytest
from firebase_admin import firestore

from fakes import FakeBlobStore, FakeFirestore, FakeNotifier, fake_transactional
from city_reporter.models.report import PhotoUpload
from city_reporter.services.comment_service import PublicCommentService
from city_reporter.services.identity_service import IdentityService
from city_reporter.services.lifecycle_service import ResolutionLifecycleService
from city_reporter.services.office_service import OfficeService
from city_reporter.services.query_service import ReportQueryService
from city_reporter.services.report_service import ReportSubmissionService
from city_reporter.services.statistics_service import StatisticsService
from city_reporter.utils.geo import geo_point


@pytest.fixture(autouse=True)
def _fake_transactions(monkeypatch):
    """The SDK transaction wrapper drives real RPCs; the fake runs once and commits."""
    monkeypatch.setattr(firestore, "transactional", fake_transactional)


@pytest.fixture
def db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def identity(db) -> IdentityService:
    return IdentityService(db)


@pytest.fixture
def submission(db, identity, blob_store, notifier) -> ReportSubmissionService:
    return ReportSubmissionService(
        db=db,
        identity=identity,
        blob_store=blob_store,
        notifier=notifier,
        upload_timeout=2,
        notification_timeout=2,
    )


@pytest.fixture
def lifecycle(db, identity, blob_store) -> ResolutionLifecycleService:
    return ResolutionLifecycleService(db=db, identity=identity, blob_store=blob_store, upload_timeout=2)


@pytest.fixture
def comments(db) -> PublicCommentService:
    return PublicCommentService(db)


@pytest.fixture
def queries(db) -> ReportQueryService:
    return ReportQueryService(db)


@pytest.fixture
def statistics(db) -> StatisticsService:
    return StatisticsService(db)


@pytest.fixture
def offices(db) -> OfficeService:
    return OfficeService(db)


@pytest.fixture
def photo() -> PhotoUpload:
    return PhotoUpload(content=b"\x89PNG\r\n\x1a\nfake", content_type="image/png", filename="pothole.png")


@pytest.fixture
def admin(identity) -> dict:
    created, _ = identity.register_admin(
        name="John Silva",
        email="john.silva@colombo.gov.lk",
        city="Colombo",
        position="Senior Administrator",
    )
    return created


@pytest.fixture
def make_report(db):
    """Insert a stored report document directly and return its id."""
    created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(
        city="Colombo",
        district="Colombo",
        province="Western",
        latitude=6.9271,
        longitude=79.8612,
        user_id="user-1",
        **overrides,
    ) -> str:
        counter["n"] += 1
        ref = db.collection("reports").document()
        report = {
            "reporter": {"user_id": user_id, "name": "Nimal Perera", "email": "nimal@example.com"},
            "description": f"Broken streetlight #{counter['n']}",
            "location": {
                "latitude": latitude,
                "longitude": longitude,
                "address": "Galle Road",
                "city": city,
                "district": district,
                "province": province,
                "full_address": "Galle Road",
                "geolocation": geo_point(latitude, longitude),
            },
            "photo_url": "https://storage.test/issue-reports/a.png",
            "photo_path": "issue-reports/a.png",
            "offices": [],
            "emails_sent": [],
            "resolution_status": "pending",
            "assigned_admin": None,
            "assigned_admin_name": None,
            "assigned_admin_position": None,
            "assigned_at": None,
            "admin_actions": [],
            "evidence_photos": [],
            "public_comments": [],
            "status": "submitted",
            "created_at": created_at + timedelta(minutes=counter["n"]),
            "updated_at": created_at + timedelta(minutes=counter["n"]),
        }
        report.update(overrides)
        ref.set(report)
        return ref.id

    return _make
