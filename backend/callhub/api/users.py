from typing import List

from fastapi import APIRouter, Depends, HTTPException

from callhub.api.deps import get_current_user, get_services
from callhub.container import Services
from callhub.models import User
from callhub.schemas.chat import UpdateUserRequest, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.user_service.to_response(current_user)


@router.put("/me", response_model=UserResponse)
async def update_me(
    req: UpdateUserRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    user = services.user_service.update_profile(current_user.id, req.display_name, req.avatar_url)
    return services.user_service.to_response(user)


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return [services.user_service.to_response(u) for u in services.user_service.list_all()]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    user = services.user_service.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return services.user_service.to_response(user)
