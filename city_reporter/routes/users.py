"""
User endpoints - citizen reporter registration and lookup.
"""

from fastapi import APIRouter, Depends, Response, status

from city_reporter.models.user import UserListResponse, UserRegister, UserResponse
from city_reporter.services.identity_service import IdentityService, get_identity_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register")
async def register_user(
    request: UserRegister,
    response: Response,
    identity: IdentityService = Depends(get_identity_service)
):
    """
    Register a citizen, or update name/phone when the email is already known.

    Returns 201 for a new user and 200 for an update.
    """
    user, created = identity.register_user(request.name, request.email, request.phone)

    if not created:
        return {"success": True, "message": "User information updated", "user": user}

    response.status_code = status.HTTP_201_CREATED
    return {"success": True, "message": "User registered successfully", "user": user}


@router.get("", response_model=UserListResponse)
async def list_users(identity: IdentityService = Depends(get_identity_service)):
    users = identity.list_users()
    return {"success": True, "count": len(users), "users": users}


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, identity: IdentityService = Depends(get_identity_service)):
    return {"success": True, "user": identity.get_user(user_id)}
