import os


def _csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list, or '*' to allow any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # How long an empty room is kept so people can rejoin (seconds). 0 deletes immediately.
    EMPTY_ROOM_GRACE_SEC = int(os.environ.get('EMPTY_ROOM_GRACE_SEC', '3600'))
    # Period of the stale room sweep (seconds). 0 disables the janitor.
    JANITOR_INTERVAL_SEC = int(os.environ.get('JANITOR_INTERVAL_SEC', '600'))
    CARD_VALUES = _csv(os.environ.get('CARD_VALUES', '1,2,3,5'))
    # Optional: reject votes outside CARD_VALUES
    VALIDATE_VOTES = os.environ.get('VALIDATE_VOTES', 'false').lower() in ('1', 'true', 'yes')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


def cors_origins(config):
    origins = config.get('CORS_ORIGINS', '*')
    if isinstance(origins, str):
        return '*' if origins.strip() == '*' else _csv(origins)
    return list(origins)
