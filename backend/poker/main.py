from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the planning poker server!'})


@main.route('/health')
def health():
    """Liveness probe for uptime monitors."""
    return jsonify({
        'status': 'ok',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'rooms': len(current_app.extensions['poker_rooms']),
    }), 200
