from typing import Optional

from poker import socketio


class Broadcaster:
    """Fans room events out over Socket.IO.

    Socket.IO rooms are named after the room code, so every connection that
    joined a room receives ``notify_room`` events. Callers emit while holding
    the room's lock, which keeps events of one room in trigger order.
    """

    def __init__(self, namespace: str = '/'):
        self.namespace = namespace

    def notify_room(self, room_id: str, event: str, payload=None, skip_sid: Optional[str] = None) -> None:
        args = () if payload is None else (payload,)
        socketio.emit(event, *args, to=room_id, skip_sid=skip_sid, namespace=self.namespace)

    def notify_one(self, sid: str, event: str, payload=None) -> None:
        args = () if payload is None else (payload,)
        socketio.emit(event, *args, to=sid, namespace=self.namespace)

    def error(self, sid: str, message: str) -> None:
        self.notify_one(sid, 'error', {'message': message})
