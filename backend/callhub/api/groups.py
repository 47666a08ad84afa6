"""
Groups API - Group management and group chat

Group calls live in calls.py.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from callhub.api.deps import get_current_user, get_services
from callhub.config.constants import MESSAGES_MAX_PAGE_SIZE, MESSAGES_PAGE_SIZE
from callhub.container import Services
from callhub.models import Group, User
from callhub.services.chat_service import GroupInCallError
from callhub.schemas.chat import (
    AddMemberRequest,
    CreateGroupRequest,
    GroupResponse,
    MessageResponse,
    PaginatedMessages,
    SendMessageRequest,
)

router = APIRouter(prefix="/groups", tags=["groups"])


def _member_group(services: Services, group_id: str, user: User) -> Group:
    group = services.chat_service.get_group(group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    if not group.is_member(user.id):
        raise HTTPException(status_code=403, detail="Not a member")
    return group


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    req: CreateGroupRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    unknown = [m for m in req.member_ids if not services.user_service.get_by_id(m)]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown users: {', '.join(unknown)}")
    group = services.chat_service.create_group(req.name, current_user.id, req.member_ids, req.description)
    return services.chat_service.group_response(group)


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return [services.chat_service.group_response(g) for g in services.chat_service.groups_for_user(current_user.id)]


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.chat_service.group_response(_member_group(services, group_id, current_user))


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_member(
    group_id: str,
    req: AddMemberRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    group = _member_group(services, group_id, current_user)
    if group.admin_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the group admin can add members")
    if not services.user_service.get_by_id(req.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    group = services.chat_service.add_member(group_id, req.user_id)
    return services.chat_service.group_response(group)


@router.delete("/{group_id}/members/{user_id}", response_model=GroupResponse)
async def remove_member(
    group_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    group = _member_group(services, group_id, current_user)
    # Members may leave; only the admin removes others
    if user_id != current_user.id and group.admin_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the group admin can remove members")
    group = services.chat_service.remove_member(group_id, user_id)
    return services.chat_service.group_response(group)


@router.post("/{group_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_group_message(
    group_id: str,
    req: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _member_group(services, group_id, current_user)
    message = await services.message_service.send_message(current_user.id, req.content, group_id=group_id)
    return services.message_service.to_response(message)


@router.get("/{group_id}/messages", response_model=PaginatedMessages)
async def get_group_messages(
    group_id: str,
    limit: int = Query(MESSAGES_PAGE_SIZE, ge=1, le=MESSAGES_MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _member_group(services, group_id, current_user)
    return services.message_service.group_history(group_id, limit, offset)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    group = _member_group(services, group_id, current_user)
    if group.admin_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the group admin can delete the group")
    try:
        services.chat_service.delete_group(group_id)
    except GroupInCallError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
