# ============================================
#     RoomRelay — Runtime State
#     One owner for every shared table
# ============================================

import threading

from relay.config import HISTORY_LIMIT, JOIN_DEBOUNCE_SECONDS
from relay.rooms import RoomRegistry
from relay.presence import PresenceTracker, JoinDebouncer
from relay.storage import MessageStore
from relay.broadcast import Broadcaster
from relay.cleanup import Sweeper


class ChatState:
    """
    Room registry, presence, history and open sessions for one process.

    Every handler mutates through here while holding `lock`, so a join,
    leave or publish (and the emits that go with it) is atomic to every
    other connection. Under eventlet the lock is green.
    """

    def __init__(self, transport, history_limit=HISTORY_LIMIT, debounce_seconds=JOIN_DEBOUNCE_SECONDS):
        self.lock = threading.RLock()
        self.transport = transport

        self.rooms = RoomRegistry()
        self.debouncer = JoinDebouncer(window=debounce_seconds)
        self.presence = PresenceTracker(transport, self.debouncer)
        self.messages = MessageStore(limit=history_limit)
        self.broadcaster = Broadcaster(transport, self.presence, self.messages)
        self.sweeper = Sweeper(self.presence, self.debouncer)

        # sid -> Session, admitted connections only
        self.sessions = {}

    def create_room(self, room_id, password=None, pass_need=None):
        room = self.rooms.create_room(room_id, password=password, pass_need=pass_need)
        self.presence.ensure_room(room_id)
        return room
