"""
Resolution endpoints - admin workflow on a report.

Every mutation here is attributed to an admin and, except assignment,
appends one entry to the report's action log.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile

from city_reporter.models.report import AdminCommentRequest, AssignAdminRequest, ResolutionStatusRequest
from city_reporter.routes.reports import read_photo
from city_reporter.services.lifecycle_service import ResolutionLifecycleService, get_lifecycle_service

router = APIRouter(prefix="/reports", tags=["Resolution"])


@router.patch("/{report_id}/assign-admin")
async def assign_admin(
    report_id: str,
    request: AssignAdminRequest,
    lifecycle: ResolutionLifecycleService = Depends(get_lifecycle_service)
):
    report = lifecycle.assign_admin(report_id, request.admin_id)
    return {"success": True, "message": "Admin assigned successfully", "report": report}


@router.patch("/{report_id}/resolution-status")
async def update_resolution_status(
    report_id: str,
    request: ResolutionStatusRequest,
    lifecycle: ResolutionLifecycleService = Depends(get_lifecycle_service)
):
    """
    Move a report through the resolution workflow.

    Any status may follow any other; each change is logged with its from/to pair.
    """
    report = lifecycle.update_resolution_status(report_id, request.admin_id, request.status)
    return {"success": True, "message": "Resolution status updated successfully", "report": report}


@router.post("/{report_id}/comments")
async def add_admin_comment(
    report_id: str,
    request: AdminCommentRequest,
    lifecycle: ResolutionLifecycleService = Depends(get_lifecycle_service)
):
    report = lifecycle.add_comment(report_id, request.admin_id, request.comment)
    return {"success": True, "message": "Comment added successfully", "report": report}


@router.post("/{report_id}/evidence-photo")
async def upload_evidence_photo(
    report_id: str,
    photo: UploadFile = File(None),
    admin_id: str = Form(None, alias="adminId"),
    lifecycle: ResolutionLifecycleService = Depends(get_lifecycle_service)
):
    """Multipart upload: ``photo`` plus ``adminId``."""
    report = await lifecycle.add_evidence_photo(report_id, admin_id, await read_photo(photo))
    return {"success": True, "message": "Evidence photo uploaded successfully", "report": report}


@router.get("/{report_id}/actions")
async def list_actions(report_id: str, lifecycle: ResolutionLifecycleService = Depends(get_lifecycle_service)):
    actions = lifecycle.list_actions(report_id)
    return {"success": True, "total_actions": len(actions), "actions": actions}
