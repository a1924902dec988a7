"""
Seed endpoints - load the sample offices and admins into an empty project.
"""

from fastapi import APIRouter, Depends, status

from city_reporter.services.identity_service import IdentityService, get_identity_service
from city_reporter.services.office_service import OfficeService, get_office_service

router = APIRouter(prefix="/seed", tags=["Seed"])


@router.post("/offices", status_code=status.HTTP_201_CREATED)
async def seed_offices(offices: OfficeService = Depends(get_office_service)):
    created = offices.seed_offices()
    return {"success": True, "message": f"{len(created)} offices seeded successfully", "offices": created}


@router.post("/admins", status_code=status.HTTP_201_CREATED)
async def seed_admins(identity: IdentityService = Depends(get_identity_service)):
    admins = identity.seed_admins()
    return {"success": True, "message": f"{len(admins)} admins seeded successfully", "admins": admins}
