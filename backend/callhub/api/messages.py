"""
Messages API - Edit and delete a posted message

Posting and paging live on the group and DM routers.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from callhub.api.deps import get_current_user, get_services
from callhub.container import Services
from callhub.models import User
from callhub.schemas.chat import MessageResponse, SendMessageRequest
from callhub.services.message_service import MessageNotFoundError, NotMessageSenderError

router = APIRouter(prefix="/messages", tags=["messages"])


@router.put("/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: str,
    req: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        message = services.message_service.edit_message(message_id, current_user.id, req.content)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail="Message not found")
    except NotMessageSenderError:
        raise HTTPException(status_code=403, detail="Only the sender can edit a message")
    return services.message_service.to_response(message)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        services.message_service.delete_message(message_id, current_user.id)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail="Message not found")
    except NotMessageSenderError:
        raise HTTPException(status_code=403, detail="Only the sender can delete a message")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
