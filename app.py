# ============================================
#     RoomRelay — Main Application
# ============================================

# -------------------------------------------------
#   EVENTLET PATCH (must run before anything else)
# -------------------------------------------------
import eventlet
eventlet.monkey_patch()

# -----------------------------------------
#   ENV VARIABLES (.env)
# -----------------------------------------
from dotenv import load_dotenv
load_dotenv()

from relay.config import HOST, PORT, UPLOAD_DIR
from relay.server import create_app
from relay.cleanup import start_cleanup_task
from relay.logger import log_info, log_error

# =========================================
#   FLASK + SOCKET.IO
# =========================================
app, socketio, state = create_app()

log_info("app", f"Uploads directory ready at: {UPLOAD_DIR}")

# =========================================
#   START CLEANUP BACKGROUND TASK
# =========================================
try:
    start_cleanup_task(socketio, state)
except Exception as e:
    log_error("app", f"Error starting cleanup task: {e}")

# =========================================
#   RUN SERVER
# =========================================
if __name__ == "__main__":
    log_info("app", f"Server running on http://{HOST}:{PORT}")
    socketio.run(app, host=HOST, port=PORT)
