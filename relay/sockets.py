# ============================================
#   RoomRelay — Socket.IO Handlers
#   Connection lifecycle, presence, chat, rooms
# ============================================

from collections.abc import Mapping

from flask import request
from flask_socketio import emit

from relay.config import PUBLIC_ROOM
from relay.rooms import Access, AUTH_MESSAGES
from relay.session import ConnectionParams, Session, Scope
from relay.logger import log_info, log_warning, log_exception


def register_chat_handlers(socketio, state):
    """
    Events:
    - connect / disconnect  → admission, presence cleanup
    - requestUserList       → userList
    - requestHistory        → chatHistory
    - join                  → seat a display name
    - message               → broadcast + mentions
    - createRoom            → register a private room (ack)

    Connections refused at connect stay open but never get a session,
    so every later event from them is ignored except createRoom,
    which only touches the registry.
    """

    def _session():
        return state.sessions.get(request.sid)

    # -----------------------------------------
    # CONNECT
    # -----------------------------------------
    @socketio.on("connect")
    def on_connect(auth=None):
        params = ConnectionParams.from_query(request.args)
        sid = request.sid

        log_info(
            "sockets",
            f"Client connected: sid={sid} room={params.room_id} private={params.private} "
            f"creating={params.creating} has_password={bool(params.password)} "
            f"pass_need={params.pass_need!r}",
        )

        with state.lock:
            if params.scope is Scope.PRIVATE:
                access = state.rooms.resolve_access(
                    params.room_id, params.creating, params.password,
                )
                if access is not Access.GRANTED:
                    emit("error", {"type": "auth", "message": AUTH_MESSAGES[access]})
                    log_warning("sockets", f"Access to {params.room_id} refused for sid={sid}: {access.value}")
                    return
                state.presence.ensure_room(params.room_id)

            session = Session.open(sid, params)
            state.sessions[sid] = session
            state.transport.enter_room(sid, session.room_id)

            # Creator sees an empty list right away
            if session.is_private and session.creating:
                emit("userList", [])

            emit("requestUserList")
            emit("connectionConfirmed", session.confirmation())

            state.sweeper.run()

    # -----------------------------------------
    # DISCONNECT
    # -----------------------------------------
    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        with state.lock:
            session = state.sessions.pop(request.sid, None)
            if session is None:
                return

            name = state.presence.leave(session)

        log_info("sockets", f"Client disconnected: sid={request.sid} room={session.room_id} user={name!r}")

    # -----------------------------------------
    # USER LIST
    # -----------------------------------------
    @socketio.on("requestUserList")
    def on_request_user_list():
        with state.lock:
            session = _session()
            if session is None:
                return

            users = state.presence.payload_for(session.scope, session.room_id)

            # Private rooms refresh everyone inside; public answers the asker
            if session.is_private:
                emit("userList", users, to=session.room_id)
            else:
                emit("userList", users)

    # -----------------------------------------
    # HISTORY
    # -----------------------------------------
    @socketio.on("requestHistory")
    def on_request_history():
        with state.lock:
            session = _session()
            if session is None:
                return

            key = session.room_id if session.is_private else PUBLIC_ROOM
            emit("chatHistory", state.messages.history(key))

    # -----------------------------------------
    # JOIN (display name)
    # -----------------------------------------
    @socketio.on("join")
    def on_join(name):
        with state.lock:
            session = _session()
            if session is None:
                return

            if not isinstance(name, str) or not name:
                log_warning("sockets", f"Rejected join with invalid name {name!r} (sid={request.sid})")
                return

            state.presence.join(session, name)

    # -----------------------------------------
    # SEND MESSAGE
    # -----------------------------------------
    @socketio.on("message")
    def on_message(data):
        with state.lock:
            session = _session()
            if session is None:
                return

            try:
                state.broadcaster.publish(session, data)
            except Exception:
                log_exception("sockets", f"Error publishing message in {session.room_id} (sid={request.sid})")

    # -----------------------------------------
    # CREATE ROOM
    # -----------------------------------------
    @socketio.on("createRoom")
    def on_create_room(data):
        with state.lock:
            room_id = data.get("roomId") if isinstance(data, Mapping) else None
            if not room_id or not isinstance(room_id, str):
                log_warning("sockets", f"createRoom without a usable roomId: {data!r}")
                return {"ok": False, "error": "invalid_room"}

            state.create_room(
                room_id,
                password=data.get("password"),
                pass_need=data.get("passNeedId"),
            )

        # Ack right after registration
        return {"ok": True, "roomId": room_id}
