class PokerError(Exception):
    """Base class for failures reported back to the acting connection."""

    default_message = 'Something went wrong'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RoomNotFound(PokerError):
    default_message = 'Room not found'


class Forbidden(PokerError):
    default_message = 'Only moderators can do that'


class InvalidPayload(PokerError):
    default_message = 'Invalid payload'
