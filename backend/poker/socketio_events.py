import threading
from typing import Dict, Optional

from flask import current_app, request
from flask_socketio import join_room, leave_room

from poker import socketio
from poker.errors import InvalidPayload, PokerError, RoomNotFound
from poker.models import Participant, Room
from poker.services.broadcast import Broadcaster
from poker.store import RoomStore


class Memberships:
    """Which room each live connection is in (at most one)."""

    def __init__(self) -> None:
        self._by_sid: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._by_sid.get(sid)

    def set(self, sid: str, room_id: str) -> None:
        with self._lock:
            self._by_sid[sid] = room_id

    def discard(self, sid: str, room_id: Optional[str] = None) -> Optional[str]:
        with self._lock:
            current = self._by_sid.get(sid)
            if room_id is None or current == room_id:
                return self._by_sid.pop(sid, None)
            return None


_memberships = Memberships()
_broadcaster = Broadcaster()


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _get_store() -> RoomStore:
    return current_app.extensions['poker_rooms']


def _payload(data) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayload()
    return data


def _user_name(data) -> str:
    name = _payload(data).get('userName')
    if not isinstance(name, str) or not name.strip():
        raise InvalidPayload('userName is required')
    return name.strip()


def _resolve_room(data) -> Room:
    return _get_store().get(_payload(data).get('roomId'))


def _report(sid: str, exc: PokerError) -> None:
    current_app.logger.info(f"[error] sid={sid} {type(exc).__name__}: {exc.message}")
    _broadcaster.error(sid, exc.message)


def _leave(sid: str, room_id, from_disconnect: bool = False) -> None:
    """Remove ``sid`` from a room; a no-op when it is not a participant there."""
    try:
        room = _get_store().get(room_id)
    except RoomNotFound:
        _memberships.discard(sid, room_id)
        return
    _memberships.discard(sid, room.id)
    with room.lock:
        participant = room.remove_participant(sid)
        if participant is None:
            return
        if room.is_empty:
            _get_store().room_emptied(room)
        else:
            _broadcaster.notify_room(room.id, 'participants-updated', room.participants_payload())
            if participant.is_moderator:
                current_app.logger.info(f"[moderator] room={room.id} name={room.moderator.name}")
        if not from_disconnect:
            leave_room(room.id, sid=sid)
    current_app.logger.info(f"[room-left] room={room.id} name={participant.name}")


def _enter(sid: str, room: Room, participant: Participant) -> None:
    join_room(room.id)
    _memberships.set(sid, room.id)
    _broadcaster.notify_one(sid, 'room-joined', {
        'roomId': room.id,
        'user': participant.to_dict(),
        'participants': room.participants_payload(),
    })


def _leave_current(sid: str) -> None:
    current = _memberships.get(sid)
    if current:
        _leave(sid, current)


def handle_connect():
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(*args):
    sid = _get_sid()
    room_id = _memberships.get(sid)
    if room_id:
        _leave(sid, room_id, from_disconnect=True)
    current_app.logger.info(f"[disconnect] sid={sid}")


def handle_create_room(data):
    sid = _get_sid()
    try:
        name = _user_name(data)
    except PokerError as exc:
        _report(sid, exc)
        return
    _leave_current(sid)
    participant = Participant(sid, name)
    room = _get_store().create(participant)
    with room.lock:
        _enter(sid, room, participant)
    current_app.logger.info(f"[room-created] room={room.id} by={name}")


def handle_join_room(data):
    sid = _get_sid()
    try:
        name = _user_name(data)
        room = _resolve_room(data)
    except RoomNotFound:
        _report(sid, RoomNotFound('Room not found or expired'))
        return
    except PokerError as exc:
        _report(sid, exc)
        return
    with room.lock:
        existing = room.find(sid)
        if existing is not None:
            # Already seated here: confirm again instead of leaving and rejoining
            _enter(sid, room, existing)
            return
    _leave_current(sid)
    participant = Participant(sid, name)
    try:
        with room.lock:
            room.add_participant(participant)
            _enter(sid, room, participant)
            _broadcaster.notify_room(
                room.id, 'participants-updated', room.participants_payload(), skip_sid=sid
            )
    except PokerError as exc:
        _report(sid, exc)
        return
    current_app.logger.info(f"[room-joined] room={room.id} name={name}")


def handle_vote(data):
    sid = _get_sid()
    try:
        value = _payload(data).get('vote')
        room = _resolve_room(data)
        if current_app.config.get('VALIDATE_VOTES') and value not in current_app.config.get('CARD_VALUES', []):
            raise InvalidPayload('Invalid vote')
    except PokerError as exc:
        _report(sid, exc)
        return
    with room.lock:
        participant = room.cast_vote(sid, value)
        if participant is None:
            return
        _broadcaster.notify_room(room.id, 'participants-updated', room.participants_payload())
    current_app.logger.info(f"[vote] room={room.id} name={participant.name}")


def handle_reveal_votes(data):
    sid = _get_sid()
    try:
        room = _resolve_room(data)
        with room.lock:
            room.reveal(sid)
            _broadcaster.notify_room(room.id, 'votes-revealed', room.participants_payload())
    except PokerError as exc:
        _report(sid, exc)
        return
    current_app.logger.info(f"[votes-revealed] room={room.id}")


def handle_reset_table(data):
    sid = _get_sid()
    try:
        room = _resolve_room(data)
        with room.lock:
            room.reset(sid)
            _broadcaster.notify_room(room.id, 'table-reset')
            _broadcaster.notify_room(room.id, 'participants-updated', room.participants_payload())
    except PokerError as exc:
        _report(sid, exc)
        return
    current_app.logger.info(f"[table-reset] room={room.id}")


def handle_leave_room(data):
    sid = _get_sid()
    try:
        room_id = _payload(data).get('roomId')
    except PokerError as exc:
        _report(sid, exc)
        return
    _leave(sid, room_id)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    _broadcaster.namespace = namespace
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create-room', handle_create_room, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('vote', handle_vote, namespace=namespace)
    socketio.on_event('reveal-votes', handle_reveal_votes, namespace=namespace)
    socketio.on_event('reset-table', handle_reset_table, namespace=namespace)
    socketio.on_event('leave-room', handle_leave_room, namespace=namespace)
