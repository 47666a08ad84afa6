from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from callhub.api.deps import get_current_user, get_services
from callhub.config.constants import MESSAGES_MAX_PAGE_SIZE, MESSAGES_PAGE_SIZE
from callhub.container import Services
from callhub.models import DirectMessageConversation, User
from callhub.schemas.chat import (
    CreateDMRequest,
    DMConversationResponse,
    MessageResponse,
    PaginatedMessages,
    SendMessageRequest,
)

router = APIRouter(prefix="/dms", tags=["dms"])


def _participant_dm(services: Services, dm_id: str, user: User) -> DirectMessageConversation:
    dm = services.chat_service.get_dm(dm_id)
    if not dm:
        raise HTTPException(status_code=404, detail="DM not found")
    if not dm.involves(user.id):
        raise HTTPException(status_code=403, detail="Not a participant")
    return dm


@router.post("", response_model=DMConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_dm(
    req: CreateDMRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    if req.recipient_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot open a conversation with yourself")
    if not services.user_service.get_by_id(req.recipient_id):
        raise HTTPException(status_code=404, detail="User not found")
    dm = services.chat_service.create_or_get_dm(current_user.id, req.recipient_id)
    return services.chat_service.dm_response(dm, current_user.id)


@router.get("", response_model=List[DMConversationResponse])
async def list_dms(
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    responses = (
        services.chat_service.dm_response(dm, current_user.id)
        for dm in services.chat_service.dms_for_user(current_user.id)
    )
    return [r for r in responses if r is not None]


@router.get("/{dm_id}", response_model=DMConversationResponse)
async def get_dm(
    dm_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    dm = _participant_dm(services, dm_id, current_user)
    response = services.chat_service.dm_response(dm, current_user.id)
    if response is None:
        raise HTTPException(status_code=404, detail="Other participant no longer exists")
    return response


@router.post("/{dm_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_dm_message(
    dm_id: str,
    req: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _participant_dm(services, dm_id, current_user)
    message = await services.message_service.send_message(current_user.id, req.content, dm_id=dm_id)
    return services.message_service.to_response(message)


@router.get("/{dm_id}/messages", response_model=PaginatedMessages)
async def get_dm_messages(
    dm_id: str,
    limit: int = Query(MESSAGES_PAGE_SIZE, ge=1, le=MESSAGES_MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _participant_dm(services, dm_id, current_user)
    return services.message_service.dm_history(dm_id, limit, offset)
