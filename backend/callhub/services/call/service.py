"""
Call Service - Call Orchestration

Owns the lifecycle of direct and group calls:
- Direct calls: initiate (RINGING), accept (ACTIVE), reject / end (ENDED)
- Group calls: start (ACTIVE), join, leave (last one out ends the call)
- Mute state per participant

Concurrency:
    Every mutation of a call runs under that call's lock, so accept, reject,
    end, join, leave and mute against the same call never interleave.
    Operations that create a call also hold the admission lock while they
    check the cross-call guards ("nobody already in a call", "group has no
    active call"), so two racing initiations cannot both pass.

    Inside a locked section the call mutation, the presence changes and the
    active-call pointer changes are applied together with no await between
    them, and every frame the operation owes is staged in an Outbox. The
    lock is released before anything is written to a socket; the outbox is
    flushed right after, so frames still reach each session in the order
    the mutations happened.

Failures raise CallServiceError subclasses; nothing is mutated or sent when
one is raised.
"""
import asyncio
import logging
from typing import Iterable, List, Optional

from callhub.config.constants import (
    ACTION_JOINED,
    ACTION_LEFT,
    ACTION_MUTED,
    ACTION_STARTED_CALL,
    ACTION_UNMUTED,
    UNKNOWN_USER_NAME,
)
from callhub.models import Call, CallStatus, CallType, User, UserStatus
from callhub.schemas.call import CallParticipantResponse, CallResponse
from callhub.schemas.websocket_events import (
    CallInitiatedNotification,
    CallStatusUpdate,
    ParticipantUpdate,
)
from callhub.services.connection import ConnectionManager, Outbox
from callhub.services.core.repositories import Repositories
from callhub.services.messaging.encoding import (
    encode_call_initiated,
    encode_call_status,
    encode_participant_update,
)
from callhub.services.metrics import call_transitions
from callhub.services.status_service import StatusService

from .exceptions import (
    ActiveCallExistsError,
    AlreadyInCallError,
    CallNotFoundError,
    GroupNotFoundError,
    InvalidCallStateError,
    InvalidCallTargetError,
    NotAParticipantError,
    UserNotFoundError,
)
from .locks import CallLocks

logger = logging.getLogger(__name__)


class CallService:
    """Service for managing calls and call participants."""

    def __init__(
        self,
        repositories: Repositories,
        connection_manager: ConnectionManager,
        status_service: StatusService,
    ):
        self.repos = repositories
        self.connection_manager = connection_manager
        self.status_service = status_service
        self._locks = CallLocks()
        self._admission_lock = asyncio.Lock()

    # === Direct calls ===

    async def initiate_direct_call(self, caller_id: str, recipient_id: str) -> Call:
        """
        Ring `recipient_id` on behalf of `caller_id`.

        Raises:
            InvalidCallTargetError: caller and recipient are the same user
            UserNotFoundError: either user is unknown
            AlreadyInCallError: either user already has a call that has not ended
        """
        if caller_id == recipient_id:
            raise InvalidCallTargetError("Cannot call yourself")

        call = Call(
            type=CallType.DIRECT,
            initiator_id=caller_id,
            recipient_id=recipient_id,
            status=CallStatus.RINGING,
        )
        call.add_participant(caller_id)
        outbox = Outbox()

        async with self._locks.lock_for(call.id):
            async with self._admission_lock:
                caller = self._require_user(caller_id)
                self._require_user(recipient_id)

                for user_id in (caller_id, recipient_id):
                    busy = self.repos.calls.find_active_by_user_id(user_id)
                    if busy is not None:
                        raise AlreadyInCallError(f"User {user_id} is already in call {busy.id}")

                self.repos.calls.save(call)
                self._enter_call(caller_id, call.id)
                dm = self.repos.dms.create_or_get(caller_id, recipient_id)
                self.repos.dms.set_active_call(dm.id, call.id)

            self._count_transition(call)
            logger.info(f"[Calls] {caller_id} is ringing {recipient_id} (call {call.id})")

            self.status_service.stage_announcement(caller_id, outbox)
            outbox.to_users([recipient_id], encode_call_initiated(CallInitiatedNotification(
                call=self.to_response(call),
                caller_name=caller.display_name,
            )))

        await self._deliver(outbox, [caller_id])
        return call

    async def accept_call(self, call_id: str, user_id: str) -> Call:
        """
        Accept a ringing call.

        Raises:
            CallNotFoundError: unknown call
            InvalidCallStateError: the call is not RINGING
        """
        outbox = Outbox()
        async with self._locks.lock_for(call_id):
            call = self._require_call(call_id)
            if call.status != CallStatus.RINGING:
                raise InvalidCallStateError(f"Call {call_id} is {call.status.value}, not RINGING")

            call.add_participant(user_id)
            call.status = CallStatus.ACTIVE
            self._enter_call(user_id, call.id)

            self._count_transition(call)
            logger.info(f"[Calls] {user_id} accepted call {call_id}")

            self.status_service.stage_announcement(user_id, outbox)
            self._stage_status(outbox, call.participant_ids, call)

        await self._deliver(outbox, [user_id])
        return call

    async def reject_call(self, call_id: str, user_id: str) -> Call:
        """
        Decline a ringing call. Only the initiator is told.

        Raises:
            CallNotFoundError: unknown call
            InvalidCallStateError: the call is not RINGING
        """
        outbox = Outbox()
        async with self._locks.lock_for(call_id):
            call = self._require_call(call_id)
            if call.status != CallStatus.RINGING:
                raise InvalidCallStateError(f"Call {call_id} is {call.status.value}, not RINGING")

            call.mark_ended()
            self._leave_call(call.initiator_id)
            self._clear_active_pointer(call)

            self._count_transition(call)
            logger.info(f"[Calls] {user_id} rejected call {call_id}")

            self.status_service.stage_announcement(call.initiator_id, outbox)
            self._stage_status(outbox, [call.initiator_id], call)

        await self._deliver(outbox, [call.initiator_id])
        return call

    async def end_call(self, call_id: str, user_id: str) -> Call:
        """
        Hang up a call in any state that has not ended yet.

        Every participant returns to ONLINE and is told the call ENDED. If the
        call was still ringing, the recipient is told as well so their client
        stops ringing.

        Raises:
            CallNotFoundError: unknown call
            InvalidCallStateError: the call already ENDED
        """
        outbox = Outbox()
        async with self._locks.lock_for(call_id):
            call = self._require_call(call_id)
            if call.is_ended:
                raise InvalidCallStateError(f"Call {call_id} already ended")

            was_ringing = call.status == CallStatus.RINGING
            call.mark_ended()
            participant_ids = call.participant_ids
            for participant_id in participant_ids:
                self._leave_call(participant_id)
            self._clear_active_pointer(call)

            self._count_transition(call)
            logger.info(f"[Calls] {user_id} ended call {call_id}")

            recipients = list(participant_ids)
            if was_ringing and call.recipient_id and call.recipient_id not in recipients:
                recipients.append(call.recipient_id)

            for participant_id in participant_ids:
                self.status_service.stage_announcement(participant_id, outbox)
            self._stage_status(outbox, recipients, call)

        await self._deliver(outbox, participant_ids)
        return call

    # === Group calls ===

    async def start_group_call(self, group_id: str, user_id: str) -> Call:
        """
        Start a group call with `user_id` as its first participant.

        Group calls skip RINGING and start ACTIVE.

        Raises:
            GroupNotFoundError: unknown group
            ActiveCallExistsError: the group already has an active call
        """
        call = Call(
            type=CallType.GROUP,
            initiator_id=user_id,
            group_id=group_id,
            status=CallStatus.ACTIVE,
        )
        call.add_participant(user_id)
        outbox = Outbox()

        async with self._locks.lock_for(call.id):
            async with self._admission_lock:
                group = self.repos.groups.find_by_id(group_id)
                if group is None:
                    raise GroupNotFoundError(f"Group {group_id} not found")
                if group.active_call_id is not None:
                    raise ActiveCallExistsError(
                        f"Group {group_id} already has active call {group.active_call_id}"
                    )

                self.repos.calls.save(call)
                self.repos.groups.set_active_call(group_id, call.id)
                self._enter_call(user_id, call.id)
                other_members = [m for m in group.member_ids if m != user_id]

            self._count_transition(call)
            logger.info(f"[Calls] {user_id} started group call {call.id} in group {group_id}")

            self.status_service.stage_announcement(user_id, outbox)
            self._stage_participant_update(outbox, other_members, call, user_id, ACTION_STARTED_CALL)

        await self._deliver(outbox, [user_id])
        return call

    async def join_group_call(self, call_id: str, user_id: str) -> Call:
        """
        Join an active group call. Joining twice is a no-op.

        Raises:
            CallNotFoundError: unknown call
            InvalidCallStateError: not a group call, or not ACTIVE
        """
        outbox = Outbox()
        async with self._locks.lock_for(call_id):
            call = self._require_call(call_id)
            if call.type != CallType.GROUP:
                raise InvalidCallStateError(f"Call {call_id} is not a group call")
            if call.status != CallStatus.ACTIVE:
                raise InvalidCallStateError(f"Call {call_id} is {call.status.value}, not ACTIVE")

            if call.has_participant(user_id):
                return call

            call.add_participant(user_id)
            self._enter_call(user_id, call.id)
            others = [p for p in call.participant_ids if p != user_id]

            logger.info(f"[Calls] {user_id} joined group call {call_id}")

            self.status_service.stage_announcement(user_id, outbox)
            self._stage_participant_update(outbox, others, call, user_id, ACTION_JOINED)

        await self._deliver(outbox, [user_id])
        return call

    async def leave_group_call(self, call_id: str, user_id: str) -> Call:
        """
        Leave a group call. The last participant out ends the call and clears
        the group's active-call pointer.

        Raises:
            CallNotFoundError: unknown call
            InvalidCallStateError: not a group call, or already ENDED
            NotAParticipantError: `user_id` is not in the call
        """
        outbox = Outbox()
        async with self._locks.lock_for(call_id):
            call = self._require_call(call_id)
            if call.type != CallType.GROUP:
                raise InvalidCallStateError(f"Call {call_id} is not a group call")
            if call.is_ended:
                raise InvalidCallStateError(f"Call {call_id} already ended")
            if not call.remove_participant(user_id):
                raise NotAParticipantError(f"User {user_id} is not in call {call_id}")

            self._leave_call(user_id)
            ended = False
            if not call.participants:
                ended = call.mark_ended()
                self._clear_active_pointer(call)
            remaining = call.participant_ids

            logger.info(f"[Calls] {user_id} left group call {call_id}")
            if ended:
                self._count_transition(call)
                logger.info(f"[Calls] Group call {call_id} ended (no participants left)")

            self.status_service.stage_announcement(user_id, outbox)
            self._stage_participant_update(outbox, remaining, call, user_id, ACTION_LEFT)

        await self._deliver(outbox, [user_id])
        return call

    # === Mute ===

    async def toggle_mute(self, call_id: str, user_id: str, is_muted: bool) -> Call:
        """
        Set a participant's mute flag and tell the other participants.

        Raises:
            CallNotFoundError: unknown call
            InvalidCallStateError: the call already ENDED
            NotAParticipantError: `user_id` is not in the call
        """
        outbox = Outbox()
        async with self._locks.lock_for(call_id):
            call = self._require_call(call_id)
            if call.is_ended:
                raise InvalidCallStateError(f"Call {call_id} already ended")
            participant = call.get_participant(user_id)
            if participant is None:
                raise NotAParticipantError(f"User {user_id} is not in call {call_id}")

            participant.is_muted = is_muted
            others = [p for p in call.participant_ids if p != user_id]

            logger.debug(f"[Calls] {user_id} {'muted' if is_muted else 'unmuted'} in call {call_id}")

            self._stage_participant_update(
                outbox, others, call, user_id,
                ACTION_MUTED if is_muted else ACTION_UNMUTED,
                is_muted=is_muted,
            )

        await self._deliver(outbox)
        return call

    # === Queries ===

    def find_by_id(self, call_id: str) -> Optional[Call]:
        return self.repos.calls.find_by_id(call_id)

    def find_active_for_user(self, user_id: str) -> Optional[Call]:
        return self.repos.calls.find_active_by_user_id(user_id)

    def to_response(self, call: Call) -> CallResponse:
        return CallResponse(
            id=call.id,
            type=call.type,
            initiator_id=call.initiator_id,
            group_id=call.group_id,
            recipient_id=call.recipient_id,
            participants=[
                CallParticipantResponse(
                    user_id=p.user_id,
                    display_name=self._display_name(p.user_id),
                    joined_at=p.joined_at,
                    is_muted=p.is_muted,
                )
                for p in call.participants
            ],
            status=call.status,
            started_at=call.started_at,
            ended_at=call.ended_at,
        )

    # === Internal helpers ===

    def _require_call(self, call_id: str) -> Call:
        call = self.repos.calls.find_by_id(call_id)
        if call is None:
            raise CallNotFoundError(f"Call {call_id} not found")
        return call

    def _require_user(self, user_id: str) -> User:
        user = self.repos.users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def _display_name(self, user_id: str) -> str:
        return self.repos.users.display_name(user_id, UNKNOWN_USER_NAME)

    def _enter_call(self, user_id: str, call_id: str) -> None:
        self.status_service.set_status(user_id, UserStatus.IN_CALL)
        self.status_service.set_current_call(user_id, call_id)

    def _leave_call(self, user_id: str) -> None:
        self.status_service.set_status(user_id, UserStatus.ONLINE)
        self.status_service.set_current_call(user_id, None)

    def _clear_active_pointer(self, call: Call) -> None:
        """Clear the owning group's or DM's pointer if it still names this call."""
        if call.type == CallType.GROUP and call.group_id:
            if self.repos.groups.get_active_call(call.group_id) == call.id:
                self.repos.groups.set_active_call(call.group_id, None)
        elif call.type == CallType.DIRECT and call.recipient_id:
            dm = self.repos.dms.find_by_participants(call.initiator_id, call.recipient_id)
            if dm is not None and dm.active_call_id == call.id:
                self.repos.dms.set_active_call(dm.id, None)

    @staticmethod
    def _count_transition(call: Call) -> None:
        call_transitions.labels(call_type=call.type.value, status=call.status.value).inc()

    def _stage_status(self, outbox: Outbox, user_ids: Iterable[str], call: Call) -> None:
        outbox.to_users(user_ids, encode_call_status(CallStatusUpdate(call_id=call.id, status=call.status)))

    def _stage_participant_update(
        self,
        outbox: Outbox,
        user_ids: List[str],
        call: Call,
        subject_id: str,
        action: str,
        is_muted: Optional[bool] = None,
    ) -> None:
        if not user_ids:
            return
        outbox.to_users(user_ids, encode_participant_update(ParticipantUpdate(
            call_id=call.id,
            user_id=subject_id,
            user_name=self._display_name(subject_id),
            action=action,
            is_muted=is_muted,
        )))

    async def _deliver(self, outbox: Outbox, presence_changed: Iterable[str] = ()) -> int:
        """Flush frames staged under the call lock, then refresh the presence mirror."""
        sent = await self.connection_manager.flush(outbox)
        for user_id in presence_changed:
            await self.status_service.sync_mirror(user_id)
        return sent
