# ============================================
#     RoomRelay — Application factory
# ============================================

from flask import Flask
from flask_socketio import SocketIO

from relay.config import (
    STATIC_DIR,
    UPLOAD_DIR,
    MAX_UPLOAD_BYTES,
    CORS_ALLOWED_ORIGINS,
)
from relay.state import ChatState
from relay.transport import SocketIOTransport
from relay.sockets import register_chat_handlers
from relay.uploads import register_upload_routes
from relay.logger import log_info


def create_app(async_mode=None):
    """
    Build Flask + Socket.IO with a fresh in-memory ChatState.
    Returns (app, socketio, state).
    """
    app = Flask(__name__, static_folder=STATIC_DIR, static_url_path="")
    app.config["UPLOAD_DIR"] = UPLOAD_DIR
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES

    # Handshake is acked before the connect handler emits
    socketio = SocketIO(
        app,
        cors_allowed_origins=CORS_ALLOWED_ORIGINS,
        async_mode=async_mode,
        always_connect=True,
    )

    state = ChatState(SocketIOTransport(socketio))

    register_upload_routes(app)
    register_chat_handlers(socketio, state)

    log_info("server", f"App created (async_mode={socketio.async_mode}).")
    return app, socketio, state
