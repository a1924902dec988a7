"""
Admin endpoints - staff registration, lookup, and assigned-issue queues.

Admin-attributed report mutations live in ``resolution.py``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from city_reporter.models.user import AdminRegister, AdminResponse
from city_reporter.services.identity_service import IdentityService, get_identity_service
from city_reporter.services.lifecycle_service import ResolutionLifecycleService, get_lifecycle_service

router = APIRouter(tags=["Admin"])


@router.post("/admin/register")
async def register_admin(
    request: AdminRegister,
    response: Response,
    identity: IdentityService = Depends(get_identity_service)
):
    """
    Register a staff admin. Re-registering an email updates the record.

    Returns 201 for a new admin and 200 for an update.
    """
    admin, created = identity.register_admin(**request.model_dump())

    if not created:
        return {"success": True, "message": "Admin information updated", "admin": admin}

    response.status_code = status.HTTP_201_CREATED
    return {"success": True, "message": "Admin registered successfully", "admin": admin}


@router.get("/admin/{admin_id}", response_model=AdminResponse)
async def get_admin(admin_id: str, identity: IdentityService = Depends(get_identity_service)):
    return {"success": True, "admin": identity.resolve_admin(admin_id)}


@router.get("/admins/city/{city}")
async def get_admins_by_city(city: str, identity: IdentityService = Depends(get_identity_service)):
    admins = identity.list_admins_by_city(city)
    return {"success": True, "count": len(admins), "admins": admins}


@router.get("/admin/{admin_id}/assigned-issues")
async def get_assigned_issues(
    admin_id: str,
    resolution_status: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    lifecycle: ResolutionLifecycleService = Depends(get_lifecycle_service)
):
    """
    Reports currently assigned to an admin, newest first.

    Query params:
    - status: optional resolution status filter
    - limit / skip: pagination
    """
    reports, total = lifecycle.list_assigned_reports(admin_id, resolution_status, limit, skip)
    return {"success": True, "count": len(reports), "total": total, "reports": reports}
