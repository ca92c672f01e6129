"""In-memory room store.

The store owns every live ``Room``. Lock order is always room lock first,
then the store lock, so callers holding a room's lock may drop that room.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from poker.errors import RoomNotFound
from poker.models import Participant, Room, generate_room_code


class RoomStore:
    def __init__(self, code_length: int = 6, grace_period: float = 3600, logger=None):
        self.code_length = code_length
        # 0 deletes a room as soon as its last participant leaves
        self.grace_period = grace_period
        self.logger = logger or logging.getLogger(__name__)
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        with self._lock:
            return self._normalize(room_id) in self._rooms

    @staticmethod
    def _normalize(room_id) -> Optional[str]:
        if not isinstance(room_id, str):
            return None
        return room_id.strip().upper()

    def create(self, moderator: Participant) -> Room:
        """Open a new room with ``moderator`` as its first participant."""
        with self._lock:
            code = generate_room_code(self.code_length)
            while code in self._rooms:
                code = generate_room_code(self.code_length)
            room = Room(code)
            # Nobody else can see the room yet, so taking its lock here is safe
            room.add_participant(moderator)
            self._rooms[code] = room
            return room

    def get(self, room_id) -> Room:
        with self._lock:
            room = self._rooms.get(self._normalize(room_id))
        if room is None:
            raise RoomNotFound()
        return room

    def delete(self, room_id) -> None:
        with self._lock:
            room = self._rooms.get(self._normalize(room_id))
        if room is not None:
            self._drop(room)

    def _drop(self, room: Room) -> None:
        with room.lock:
            room.closed = True
            with self._lock:
                if self._rooms.get(room.id) is room:
                    del self._rooms[room.id]

    def snapshot(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def for_each(self, fn: Callable[[Room], None]) -> None:
        for room in self.snapshot():
            fn(room)

    def room_emptied(self, room: Room) -> None:
        """Apply the empty-room policy to a room whose last participant just left."""
        with room.lock:
            if not room.is_empty:
                return
            if self.grace_period <= 0:
                self._drop(room)
                self.logger.info(f"[room-deleted] room={room.id} reason=empty")
            else:
                self.logger.info(
                    f"[room-empty] room={room.id} grace={self.grace_period}s"
                )

    def sweep(self, now: Optional[float] = None) -> List[str]:
        """Delete rooms that have been empty for longer than the grace period."""
        now = time.time() if now is None else now
        deleted = []

        def _expire(room: Room) -> None:
            with room.lock:
                # Re-read empty_since under the lock; a rejoin clears it
                if room.closed or not room.is_expired(now, self.grace_period):
                    return
                self._drop(room)
            deleted.append(room.id)
            self.logger.info(f"[room-deleted] room={room.id} reason=stale")

        self.for_each(_expire)
        return deleted
