import random
import string
import threading
import time
from typing import List, Optional

from poker.errors import Forbidden, RoomNotFound


class Participant:
    def __init__(self, id: str, name: str, is_moderator: bool = False):
        self.id = id
        self.name = name
        self.vote: Optional[str] = None
        self.has_voted = False
        self.is_moderator = is_moderator

    def clear_vote(self) -> None:
        self.vote = None
        self.has_voted = False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'vote': self.vote,
            'hasVoted': self.has_voted,
            'isModerator': self.is_moderator,
        }


def generate_room_code(length=6):
    """Generate a short upper-case room code."""
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


class Room:
    """One estimation session and its round state.

    Every method takes ``self.lock``; callers that need to broadcast the
    resulting state in order hold the same (re-entrant) lock around both.
    """

    def __init__(self, id: str):
        self.id = id
        self.participants: List[Participant] = []
        self.revealed = False
        self.empty_since: Optional[float] = None
        # Set once the store drops the room; late joins must not revive it
        self.closed = False
        self.lock = threading.RLock()

    @property
    def is_empty(self) -> bool:
        return not self.participants

    @property
    def moderator(self) -> Optional[Participant]:
        for p in self.participants:
            if p.is_moderator:
                return p
        return None

    def find(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def add_participant(self, participant: Participant) -> List[Participant]:
        with self.lock:
            if self.closed:
                raise RoomNotFound('Room not found or expired')
            participant.is_moderator = self.is_empty
            self.participants.append(participant)
            self.empty_since = None
            return self.participants

    def remove_participant(self, participant_id: str, now: Optional[float] = None) -> Optional[Participant]:
        """Remove a participant, handing moderation to the new first participant.

        Returns the removed participant, or None when the id is not in the room.
        """
        with self.lock:
            participant = self.find(participant_id)
            if participant is None:
                return None
            self.participants.remove(participant)
            if self.is_empty:
                self.empty_since = time.time() if now is None else now
            elif participant.is_moderator:
                self.participants[0].is_moderator = True
            return participant

    def cast_vote(self, participant_id: str, value) -> Optional[Participant]:
        with self.lock:
            participant = self.find(participant_id)
            if participant is None:
                return None
            participant.vote = value
            participant.has_voted = True
            return participant

    def _require_moderator(self, participant_id: str, message: str) -> Participant:
        moderator = self.moderator
        if moderator is None or moderator.id != participant_id:
            raise Forbidden(message)
        return moderator

    def reveal(self, participant_id: str) -> None:
        with self.lock:
            self._require_moderator(participant_id, 'Only moderators can reveal votes')
            self.revealed = True

    def reset(self, participant_id: str) -> None:
        with self.lock:
            self._require_moderator(participant_id, 'Only moderators can reset the table')
            for p in self.participants:
                p.clear_vote()
            self.revealed = False

    def is_expired(self, now: float, grace_period: float) -> bool:
        with self.lock:
            return (
                self.is_empty
                and self.empty_since is not None
                and now - self.empty_since > grace_period
            )

    def participants_payload(self):
        return [p.to_dict() for p in self.participants]
