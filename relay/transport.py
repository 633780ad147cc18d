# ============================================
#     RoomRelay — Socket.IO transport adapter
# ============================================

class SocketIOTransport:
    """
    The three primitives the core needs from Flask-SocketIO:
    emit to a sid or room, put a sid into a room, and liveness.
    Usable outside a request context (background sweeper).
    """

    def __init__(self, socketio, namespace="/"):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, event, payload=None, to=None):
        if payload is None:
            self.socketio.emit(event, to=to, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=to, namespace=self.namespace)

    def enter_room(self, sid, room):
        self.socketio.server.enter_room(sid, room, namespace=self.namespace)

    def is_connected(self, sid) -> bool:
        return self.socketio.server.manager.is_connected(sid, self.namespace)
