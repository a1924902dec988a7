"""
Report endpoints - citizen report submission and retrieval.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from city_reporter.core.exceptions import ValidationError
from city_reporter.core.settings import settings
from city_reporter.models.report import PhotoUpload, ReportListResponse, ReportResponse, ReportStatusRequest
from city_reporter.services.query_service import ReportQueryService, get_query_service
from city_reporter.services.report_service import ReportSubmissionService, check_photo_size, get_report_submission_service

router = APIRouter(tags=["Reports"])


async def read_photo(photo: Optional[UploadFile]) -> Optional[PhotoUpload]:
    """
    Buffer a multipart upload into a PhotoUpload (None when absent).

    Oversized uploads are rejected from the declared size when the client
    sent one, otherwise after reading at most one byte past the limit.
    """
    if photo is None:
        return None
    max_bytes = settings.MAX_UPLOAD_BYTES
    check_photo_size(photo.size, max_bytes)
    content = await photo.read(max_bytes + 1)
    check_photo_size(len(content), max_bytes)
    return PhotoUpload(
        content=content,
        content_type=photo.content_type or "application/octet-stream",
        filename=photo.filename or "photo",
    )


@router.post("/submit-report", status_code=status.HTTP_201_CREATED)
async def submit_report(
    photo: Optional[UploadFile] = File(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    offices: Optional[str] = Form(None),
    user_info: Optional[str] = Form(None, alias="userInfo"),
    submission: ReportSubmissionService = Depends(get_report_submission_service)
):
    """
    Submit a new citizen report.

    Multipart form:
    - photo: the issue photo (required, image/*)
    - description: free text
    - location / offices / userInfo: JSON-encoded strings

    This endpoint:
    1. Resolves or creates the reporter
    2. Uploads the photo
    3. Stores the report
    4. Emails every selected office and records each outcome

    Notification failures do not fail the request; see ``emails_sent``.
    """
    result = await submission.submit(
        description=description,
        location=location,
        offices=offices,
        reporter=user_info,
        photo=await read_photo(photo),
    )
    return {
        "success": True,
        "message": (
            f"Report submitted successfully! Emails sent to "
            f"{result.successful_emails} of {result.total_emails} office(s)."
        ),
        "data": result,
    }


@router.get("/reports", response_model=ReportListResponse)
async def list_reports(
    report_status: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    queries: ReportQueryService = Depends(get_query_service)
):
    reports, total = queries.list_reports(status=report_status, limit=limit, skip=skip)
    return {"success": True, "count": len(reports), "total": total, "reports": reports}


@router.get("/reports/nearby")
async def nearby_reports(
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    max_distance: float = Query(5000, gt=0, alias="maxDistance"),
    queries: ReportQueryService = Depends(get_query_service)
):
    """Reports within ``maxDistance`` meters of a point, nearest first."""
    if latitude is None or longitude is None:
        raise ValidationError("Latitude and longitude required")

    reports = queries.find_nearby(latitude, longitude, max_distance)
    return {"success": True, "count": len(reports), "radius": max_distance, "reports": reports}


@router.get("/reports/user/{user_id}")
async def reports_by_user(user_id: str, queries: ReportQueryService = Depends(get_query_service)):
    reports = queries.list_reports_by_user(user_id)
    return {"success": True, "count": len(reports), "reports": reports}


def _location_listing(queries: ReportQueryService, field: str, value: str, limit: int, skip: int):
    reports, total = queries.list_reports_by_location(field, value, limit=limit, skip=skip)
    return {"success": True, field: value, "count": len(reports), "total": total, "reports": reports}


@router.get("/reports/by-city/{city}")
async def reports_by_city(
    city: str,
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    queries: ReportQueryService = Depends(get_query_service)
):
    return _location_listing(queries, "city", city, limit, skip)


@router.get("/reports/by-district/{district}")
async def reports_by_district(
    district: str,
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    queries: ReportQueryService = Depends(get_query_service)
):
    return _location_listing(queries, "district", district, limit, skip)


@router.get("/reports/by-province/{province}")
async def reports_by_province(
    province: str,
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    queries: ReportQueryService = Depends(get_query_service)
):
    return _location_listing(queries, "province", province, limit, skip)


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def get_report(report_id: str, queries: ReportQueryService = Depends(get_query_service)):
    return {"success": True, "report": queries.get_report(report_id)}


@router.patch("/reports/{report_id}/status")
async def update_report_status(
    report_id: str,
    request: ReportStatusRequest,
    queries: ReportQueryService = Depends(get_query_service)
):
    """Set the coarse report status (submitted / in-progress / resolved / rejected)."""
    report = queries.update_status(report_id, request.status)
    return {"success": True, "message": "Status updated successfully", "report": report}


@router.delete("/reports/{report_id}")
async def delete_report(report_id: str, queries: ReportQueryService = Depends(get_query_service)):
    queries.delete_report(report_id)
    return {"success": True, "message": "Report deleted successfully"}
