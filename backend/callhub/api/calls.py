"""
Calls API - Endpoints for call management

Implements:
- Direct calls: initiate, accept, reject, end, lookup
- Group calls: start, join, leave, mute

Call service failures map to HTTP status codes:
    not found -> 404, busy / active call exists -> 409,
    wrong state / not a participant / invalid target -> 400
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from callhub.api.deps import get_current_user, get_services
from callhub.container import Services
from callhub.models import User
from callhub.schemas.call import CallResponse, InitiateCallRequest
from callhub.services.call import (
    ActiveCallExistsError,
    AlreadyInCallError,
    CallNotFoundError,
    CallServiceError,
    GroupNotFoundError,
    UserNotFoundError,
)

router = APIRouter(tags=["calls"])


def _to_http(e: CallServiceError) -> HTTPException:
    if isinstance(e, (CallNotFoundError, GroupNotFoundError, UserNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (AlreadyInCallError, ActiveCallExistsError)):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _require_group_member(services: Services, group_id: str, user: User) -> None:
    group = services.chat_service.get_group(group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    if not group.is_member(user.id):
        raise HTTPException(status_code=403, detail="Not a member")


def _require_call_in_group(services: Services, group_id: str, call_id: str) -> None:
    call = services.call_service.find_by_id(call_id)
    if not call or call.group_id != group_id:
        raise HTTPException(status_code=404, detail="Call not found in this group")


# === Direct calls ===

@router.post("/calls/initiate", response_model=CallResponse, status_code=status.HTTP_201_CREATED)
async def initiate_call(
    req: InitiateCallRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Ring another user.

    Creates a RINGING call with the caller as its only participant and sends
    `call_initiated` to the recipient.
    """
    try:
        call = await services.call_service.initiate_direct_call(current_user.id, req.recipient_id)
    except CallServiceError as e:
        raise _to_http(e)
    return services.call_service.to_response(call)


@router.post("/calls/{call_id}/accept", response_model=CallResponse)
async def accept_call(
    call_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        call = await services.call_service.accept_call(call_id, current_user.id)
    except CallServiceError as e:
        raise _to_http(e)
    return services.call_service.to_response(call)


@router.post("/calls/{call_id}/reject", response_model=CallResponse)
async def reject_call(
    call_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        call = await services.call_service.reject_call(call_id, current_user.id)
    except CallServiceError as e:
        raise _to_http(e)
    return services.call_service.to_response(call)


@router.post("/calls/{call_id}/end", response_model=CallResponse)
async def end_call(
    call_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    try:
        call = await services.call_service.end_call(call_id, current_user.id)
    except CallServiceError as e:
        raise _to_http(e)
    return services.call_service.to_response(call)


@router.get("/calls/{call_id}", response_model=CallResponse)
async def get_call(
    call_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    call = services.call_service.find_by_id(call_id)
    if not call:
        raise HTTPException(status_code=404, detail="Call not found")
    return services.call_service.to_response(call)


# === Group calls ===

@router.post("/groups/{group_id}/calls/start", response_model=CallResponse, status_code=status.HTTP_201_CREATED)
async def start_group_call(
    group_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _require_group_member(services, group_id, current_user)
    try:
        call = await services.call_service.start_group_call(group_id, current_user.id)
    except CallServiceError as e:
        raise _to_http(e)
    return services.call_service.to_response(call)


@router.post("/groups/{group_id}/calls/{call_id}/join", response_model=CallResponse)
async def join_group_call(
    group_id: str,
    call_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _require_group_member(services, group_id, current_user)
    _require_call_in_group(services, group_id, call_id)
    try:
        call = await services.call_service.join_group_call(call_id, current_user.id)
    except CallServiceError as e:
        raise _to_http(e)
    return services.call_service.to_response(call)


@router.post("/groups/{group_id}/calls/{call_id}/leave", response_model=CallResponse)
async def leave_group_call(
    group_id: str,
    call_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _require_call_in_group(services, group_id, call_id)
    try:
        call = await services.call_service.leave_group_call(call_id, current_user.id)
    except CallServiceError as e:
        raise _to_http(e)
    return services.call_service.to_response(call)


@router.post("/groups/{group_id}/calls/{call_id}/mute", status_code=status.HTTP_204_NO_CONTENT)
async def mute_in_group_call(
    group_id: str,
    call_id: str,
    muted: bool = Query(True),
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    _require_call_in_group(services, group_id, call_id)
    try:
        await services.call_service.toggle_mute(call_id, current_user.id, muted)
    except CallServiceError as e:
        raise _to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
