"""
Office endpoints - regional offices that receive report notifications.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from city_reporter.models.office import OfficeCreate, OfficeResponse, OfficeUpdate
from city_reporter.services.office_service import OfficeService, get_office_service

router = APIRouter(prefix="/offices", tags=["Offices"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_office(request: OfficeCreate, offices: OfficeService = Depends(get_office_service)):
    office = offices.create_office(request.model_dump())
    return {"success": True, "message": "Office created successfully", "office": office}


@router.get("")
async def list_offices(
    office_type: Optional[str] = Query(None, alias="type"),
    district: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    offices: OfficeService = Depends(get_office_service)
):
    """List offices, optionally filtered by type (DS/PS), district and active flag."""
    results = offices.list_offices(office_type=office_type, district=district, is_active=is_active)
    return {"success": True, "count": len(results), "offices": results}


@router.get("/{office_id}", response_model=OfficeResponse)
async def get_office(office_id: str, offices: OfficeService = Depends(get_office_service)):
    return {"success": True, "office": offices.get_office(office_id)}


@router.put("/{office_id}")
async def update_office(
    office_id: str,
    request: OfficeUpdate,
    offices: OfficeService = Depends(get_office_service)
):
    office = offices.update_office(office_id, request.model_dump(exclude_unset=True))
    return {"success": True, "message": "Office updated successfully", "office": office}


@router.delete("/{office_id}")
async def delete_office(office_id: str, offices: OfficeService = Depends(get_office_service)):
    offices.delete_office(office_id)
    return {"success": True, "message": "Office deleted successfully"}
