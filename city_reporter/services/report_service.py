"""
Report service - submission pipeline for citizen issue reports.

Flow:
1. Validate input (photo, required fields, structure, at least one office)
2. Resolve or create the reporter's user record
3. Upload the photo (hard dependency: failure aborts, nothing is stored)
4. Store the report in Firestore
5. Notify every selected office (concurrently, failures recorded as data)
6. Write the per-office outcomes to ``emails_sent`` in a single update

DESIGN NOTE:
- The report is committed BEFORE notification fan-out, so a mail failure
  never loses a report.
- Reporter and office data are copied into the report as snapshots; later
  edits of the user or office records do not alter stored reports.
- If step 4 fails after a successful upload the blob is left orphaned
  (no compensating delete).
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError as SchemaError

from city_reporter.core.exceptions import DependencyError, ValidationError
from city_reporter.core.settings import settings
from city_reporter.models.report import (
    EmailStatus,
    LocationInput,
    OfficeTarget,
    PhotoUpload,
    ReportStatus,
    ReporterInfo,
    ResolutionStatus,
    SubmissionResult,
)
from city_reporter.services.email_service import NotificationResult, render_report_email, render_subject
from city_reporter.services.identity_service import IdentityService
from city_reporter.utils.firestore_helpers import firestore_errors, utc_now
from city_reporter.utils.geo import geo_point

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

_location_adapter = TypeAdapter(LocationInput)
_offices_adapter = TypeAdapter(List[OfficeTarget])
_reporter_adapter = TypeAdapter(ReporterInfo)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes)):
        return not value.strip()
    return False


def _parse(adapter: TypeAdapter, value: Any, label: str):
    """Accepts either a JSON string (multipart form field) or already-decoded data."""
    try:
        if isinstance(value, (str, bytes)):
            return adapter.validate_json(value)
        return adapter.validate_python(value)
    except SchemaError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or label for err in e.errors())
        raise ValidationError(f"Invalid {label}: {fields}") from e


def check_photo_size(size: Optional[int], max_bytes: Optional[int] = None) -> None:
    max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
    if size is not None and size > max_bytes:
        raise ValidationError(f"Photo exceeds the {max_bytes // (1024 * 1024)} MB limit")


def validate_photo(photo: Optional[PhotoUpload], max_bytes: Optional[int] = None) -> PhotoUpload:
    if photo is None or not photo.content:
        raise ValidationError("Photo is required")
    if not (photo.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed")
    check_photo_size(len(photo.content), max_bytes)
    return photo


async def upload_photo(blob_store, photo: PhotoUpload, timeout: float):
    """
    Upload in a worker thread, bounded by ``timeout``.

    Raises:
        StorageError: the blob store rejected the upload
        DependencyError: the upload timed out (retryable)
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(blob_store.upload, photo.content, photo.content_type, photo.filename),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error(f"Photo upload timed out after {timeout}s")
        raise DependencyError("Photo upload timed out", retryable=True, status_code=504) from e


class ReportSubmissionService:
    """
    Orchestrates a single report submission.
    """

    COLLECTION = "reports"

    def __init__(
        self,
        db,
        identity: IdentityService,
        blob_store,
        notifier,
        geocoder=None,
        upload_timeout: Optional[float] = None,
        notification_timeout: Optional[float] = None,
        max_upload_bytes: Optional[int] = None,
        geocoding_timeout: Optional[float] = None,
    ):
        self.db = db
        self.identity = identity
        self.blob_store = blob_store
        self.notifier = notifier
        self.geocoder = geocoder
        self.upload_timeout = upload_timeout or settings.UPLOAD_TIMEOUT_SECONDS
        self.notification_timeout = notification_timeout or settings.NOTIFICATION_TIMEOUT_SECONDS
        self.max_upload_bytes = max_upload_bytes or settings.MAX_UPLOAD_BYTES
        self.geocoding_timeout = geocoding_timeout or settings.GEOCODING_TIMEOUT_SECONDS

    async def submit(
        self,
        description: Optional[str],
        location: Any,
        offices: Any,
        reporter: Any,
        photo: Optional[PhotoUpload],
    ) -> SubmissionResult:
        """
        Submit a new report.

        Args:
            description: Free-text description of the issue
            location: LocationInput, dict, or JSON string
            offices: list of OfficeTarget/dicts, or JSON string
            reporter: ReporterInfo, dict, or JSON string (``fullName``, ``email``)
            photo: Photo bytes with content type and original filename

        Returns:
            SubmissionResult, including per-office notification outcomes.
            Partial or total notification failure is NOT an error.

        Raises:
            ValidationError: input rejected, nothing was written or uploaded
            StorageError / DependencyError: photo upload failed, nothing stored
            PersistenceError: Firestore rejected the write
        """
        # Preconditions, checked in order
        photo = validate_photo(photo, self.max_upload_bytes)

        if any(_is_missing(v) for v in (description, location, offices, reporter)):
            raise ValidationError("Missing required fields")

        parsed_location: LocationInput = _parse(_location_adapter, location, "location")
        parsed_offices: List[OfficeTarget] = _parse(_offices_adapter, offices, "offices")
        reporter_info: ReporterInfo = _parse(_reporter_adapter, reporter, "userInfo")

        if not parsed_offices:
            raise ValidationError("At least one office must be selected")

        description = description.strip()
        logger.info(
            f"New report submission: reporter={reporter_info.email}, "
            f"address={parsed_location.address}, offices={len(parsed_offices)}"
        )

        # STEP 1: Reporter identity
        user = self.identity.resolve_or_create_user(
            name=reporter_info.full_name,
            email=reporter_info.email,
            phone=reporter_info.phone,
        )
        reporter_snapshot = {"user_id": user["id"], "name": user["name"], "email": user["email"]}

        # STEP 2: Photo upload (MUST succeed)
        stored = await upload_photo(self.blob_store, photo, self.upload_timeout)

        # STEP 3: Build the aggregate
        report_location = await self._build_location(parsed_location)
        office_snapshots = [{"type": o.type, "name": o.name, "email": o.email} for o in parsed_offices]
        now = utc_now()

        doc_ref = self.db.collection(self.COLLECTION).document()
        report_dict = {
            "reporter": reporter_snapshot,
            "description": description,
            "location": report_location,
            "photo_url": stored.url,
            "photo_path": stored.path,
            "offices": office_snapshots,
            "emails_sent": [],
            "resolution_status": ResolutionStatus.PENDING.value,
            "assigned_admin": None,
            "assigned_admin_name": None,
            "assigned_admin_position": None,
            "assigned_at": None,
            "admin_actions": [],
            "evidence_photos": [],
            "public_comments": [],
            "status": ReportStatus.SUBMITTED.value,
            "created_at": now,
            "updated_at": now,
        }

        # STEP 4: Persist before any notification
        try:
            with firestore_errors("save report"):
                doc_ref.set(report_dict)
        except Exception:
            logger.error(f"Failed to save report; uploaded blob orphaned at {stored.path}", exc_info=True)
            raise
        logger.info(f"Report saved to Firestore: {doc_ref.id}")

        # STEP 5: Fan-out, joined before the single emails_sent write
        emails_sent = await asyncio.gather(*(
            self._notify_office(office, description, report_location, stored.url, reporter_snapshot)
            for office in office_snapshots
        ))
        emails_sent = list(emails_sent)

        # STEP 6: Record outcomes
        with firestore_errors("record email outcomes"):
            doc_ref.update({"emails_sent": emails_sent, "updated_at": utc_now()})

        successful = sum(1 for e in emails_sent if e["status"] == EmailStatus.SUCCESS.value)
        logger.info(
            f"Submission complete: report={doc_ref.id}, emails={len(emails_sent)}, "
            f"successful={successful}, failed={len(emails_sent) - successful}"
        )

        return SubmissionResult(
            report_id=doc_ref.id,
            reporter=reporter_snapshot,
            photo_url=stored.url,
            location={
                "city": report_location["city"],
                "district": report_location["district"],
                "province": report_location["province"],
                "address": report_location["address"],
                "latitude": report_location["latitude"],
                "longitude": report_location["longitude"],
            },
            offices=office_snapshots,
            emails_sent=emails_sent,
            total_emails=len(emails_sent),
            successful_emails=successful,
        )

    async def _build_location(self, location: LocationInput) -> Dict:
        city, district, province = location.city, location.district, location.province

        if self.geocoder is not None and not (city and district and province):
            resolved = await self._reverse_geocode(location.latitude, location.longitude)
            city = city or resolved.get("city")
            district = district or resolved.get("district")
            province = province or resolved.get("province")

        return {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "address": location.address,
            "city": city or UNKNOWN,
            "district": district or UNKNOWN,
            "province": province or UNKNOWN,
            "full_address": location.full_address or location.address,
            "geolocation": geo_point(location.latitude, location.longitude),
        }

    async def _reverse_geocode(self, latitude: float, longitude: float) -> Dict:
        """Best-effort lookup, bounded by ``geocoding_timeout``. Returns {} on any failure."""
        try:
            resolved = await asyncio.wait_for(
                asyncio.to_thread(self.geocoder.reverse_geocode, latitude, longitude),
                timeout=self.geocoding_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Reverse geocoding timed out after {self.geocoding_timeout}s")
            return {}
        except Exception as e:
            logger.warning(f"Reverse geocoding failed: {e}", exc_info=True)
            return {}
        return resolved if isinstance(resolved, dict) else {}

    async def _notify_office(
        self,
        office: Dict,
        description: str,
        location: Dict,
        photo_url: str,
        reporter: Dict,
    ) -> Dict:
        """One notification attempt. Always returns an outcome record."""
        body = render_report_email(office["name"], description, location, photo_url, reporter)
        try:
            result: NotificationResult = await asyncio.wait_for(
                asyncio.to_thread(self.notifier.send, office["email"], render_subject(location), body),
                timeout=self.notification_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Email to {office['email']} timed out after {self.notification_timeout}s")
            result = NotificationResult(success=False, error="Notification timed out")
        except Exception as e:
            logger.warning(f"Notifier raised for {office['email']}: {e}", exc_info=True)
            result = NotificationResult(success=False, error="Notification failed")

        return {
            "email": office["email"],
            "sent_at": utc_now(),
            "status": (EmailStatus.SUCCESS if result.success else EmailStatus.FAILED).value,
            "message_id": result.message_id,
            "error": result.error,
        }


def get_report_submission_service() -> ReportSubmissionService:
    """FastAPI dependency: submission pipeline wired to Firebase, SMTP and geocoding."""
    from city_reporter.config.firebase import get_db
    from city_reporter.services.email_service import get_notifier
    from city_reporter.services.geocoding.resolver import get_geocoding_provider
    from city_reporter.services.storage_service import get_blob_store

    db = get_db()
    return ReportSubmissionService(
        db=db,
        identity=IdentityService(db),
        blob_store=get_blob_store(),
        notifier=get_notifier(),
        geocoder=get_geocoding_provider(),
    )
