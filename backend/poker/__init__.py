import logging

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config, cors_origins

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    origins = cors_origins(flask_app.config)
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # Each app owns its rooms; handlers reach them through current_app
    from poker.store import RoomStore
    flask_app.extensions['poker_rooms'] = RoomStore(
        code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)),
        grace_period=int(flask_app.config.get('EMPTY_ROOM_GRACE_SEC', 3600)),
        logger=flask_app.logger,
    )

    from poker.main import main
    flask_app.register_blueprint(main)

    from poker.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    from poker.services.janitor import start_janitor
    start_janitor(flask_app)

    return flask_app
