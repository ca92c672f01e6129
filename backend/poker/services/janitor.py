from typing import List

from poker import socketio


def get_store(app):
    return app.extensions['poker_rooms']


def run_sweep(app) -> List[str]:
    """Run one stale room sweep and return the deleted room codes."""
    with app.app_context():
        store = get_store(app)
        deleted = store.sweep()
        app.logger.info(f"[janitor-sweep] deleted={len(deleted)} live={len(store)}")
        return deleted


def start_janitor(app) -> None:
    """Start the periodic sweep for ``app``.

    - No-ops in TESTING mode or when JANITOR_INTERVAL_SEC is 0
    - Starts at most one loop per app
    """
    interval = int(app.config.get('JANITOR_INTERVAL_SEC', 0))
    if app.config.get('TESTING') or interval <= 0:
        return
    if app.extensions.get('poker_janitor'):
        return
    app.extensions['poker_janitor'] = True

    def _worker():
        while True:
            socketio.sleep(interval)
            try:
                run_sweep(app)
            except Exception:
                app.logger.exception("[janitor-error] sweep failed")

    app.logger.info(f"[janitor-start] interval={interval}s grace={get_store(app).grace_period}s")
    socketio.start_background_task(_worker)
