# ============================================
#     RoomRelay — Cleanup Sweeper
#     Stale public occupants + expired join markers
# ============================================

from relay.config import CLEANUP_INTERVAL_SECONDS
from relay.logger import log_info, log_exception

# Set this to True if you want logs *only when something is swept*
SILENT_CLEANUP = True


class Sweeper:

    def __init__(self, presence, debouncer):
        self.presence = presence
        self.debouncer = debouncer

    def run(self) -> int:
        """Reconcile presence with live connections. Returns occupants removed."""
        swept = self.presence.sweep_stale()
        expired = self.debouncer.expire()

        if swept or not SILENT_CLEANUP:
            log_info("cleanup", f"Sweep done (stale={swept}, expired_markers={expired}).")
        return swept


def start_cleanup_task(socketio, state, interval=CLEANUP_INTERVAL_SECONDS):
    """
    Start the recurring sweep as a Socket.IO background task.
    Also runs on every admitted connection (see sockets.py); this loop only
    catches transports that died without a clean disconnect.
    """
    if interval <= 0:
        log_info("cleanup", "Periodic cleanup disabled (interval <= 0).")
        return None

    log_info("cleanup", f"Starting cleanup background task (every {interval}s).")

    def _task():
        while True:
            try:
                socketio.sleep(interval)
                with state.lock:
                    state.sweeper.run()
            except Exception as e:
                log_exception("cleanup", f"Error during cleanup cycle: {e}")

    return socketio.start_background_task(_task)
