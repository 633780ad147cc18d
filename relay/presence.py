# ============================================
#     RoomRelay — Presence Tracker
#     Who is online, per scope, and the join/leave
#     announcements that go with it
# ============================================

import time
import itertools
from dataclasses import dataclass
from typing import Optional

from relay.config import PUBLIC_ROOM, JOIN_DEBOUNCE_SECONDS
from relay.session import Scope
from relay.storage import system_message
from relay.logger import log_info, log_warning


JOIN_TEXT = {
    Scope.PUBLIC: "{name} joined the chat",
    Scope.PRIVATE: "{name} joined the private room",
}

LEAVE_TEXT = {
    Scope.PUBLIC: "{name} left the chat",
    Scope.PRIVATE: "{name} left the private room",
}


@dataclass
class Occupant:
    id: int
    user: str
    scope: Scope
    chat_id: str
    sid: str

    def to_payload(self) -> dict:
        # sid stays server-side
        return {
            "id": self.id,
            "user": self.user,
            "type": self.scope.value,
            "chat_id": self.chat_id,
        }


# =====================================================
#   JOIN DEBOUNCE MARKERS
# =====================================================

class JoinDebouncer:
    """
    Remembers recent join announcements per (name, room).
    A second announcement inside the window is suppressed.
    """

    def __init__(self, window: float = JOIN_DEBOUNCE_SECONDS, clock=time.monotonic):
        self.window = window
        self._clock = clock
        self._markers = {}

    def __len__(self):
        return len(self._markers)

    def recently_announced(self, name, room_id) -> bool:
        stamp = self._markers.get((name, room_id))
        return stamp is not None and self._clock() - stamp <= self.window

    def mark(self, name, room_id):
        self._markers[(name, room_id)] = self._clock()

    def expire(self) -> int:
        now = self._clock()
        expired = [k for k, stamp in self._markers.items() if now - stamp > self.window]
        for key in expired:
            del self._markers[key]
        return len(expired)


# =====================================================
#   PRESENCE TRACKER
# =====================================================

class PresenceTracker:

    def __init__(self, transport, debouncer: Optional[JoinDebouncer] = None):
        self.transport = transport
        self.debouncer = debouncer if debouncer is not None else JoinDebouncer()

        # sid -> Occupant, one table per scope (insertion ordered)
        self._tables = {Scope.PUBLIC: {}, Scope.PRIVATE: {}}

        # private room_id -> set of display names
        self._members = {}

        self._ids = itertools.count(1)

    def __len__(self):
        return sum(len(t) for t in self._tables.values())

    # -----------------------------------------
    # LOOKUPS
    # -----------------------------------------

    def ensure_room(self, room_id):
        self._members.setdefault(room_id, set())

    def lookup(self, sid, scope: Scope) -> Optional[Occupant]:
        return self._tables[scope].get(sid)

    def name_for(self, session) -> Optional[str]:
        occ = self.lookup(session.sid, session.scope)
        return occ.user if occ else None

    def find(self, name) -> list:
        """Every record holding `name`, in any scope."""
        return [
            occ
            for table in self._tables.values()
            for occ in table.values()
            if occ.user == name
        ]

    def is_member(self, room_id, name) -> bool:
        return name in self._members.get(room_id, ())

    def occupants(self, scope: Scope, room_id) -> list:
        """Raw records for one scope/room, no de-duplication."""
        if scope is Scope.PUBLIC:
            return list(self._tables[Scope.PUBLIC].values())
        return [o for o in self._tables[Scope.PRIVATE].values() if o.chat_id == room_id]

    def public_sids(self) -> list:
        return list(self._tables[Scope.PUBLIC].keys())

    # -----------------------------------------
    # SNAPSHOT
    # -----------------------------------------

    def snapshot_for(self, scope: Scope, room_id=PUBLIC_ROOM) -> list:
        if scope is Scope.PRIVATE:
            members = self._members.get(room_id, set())
            return [o for o in self.occupants(scope, room_id) if o.user in members]

        seen = set()
        snapshot = []
        for occ in self.occupants(Scope.PUBLIC, PUBLIC_ROOM):
            if occ.user in seen:
                continue
            seen.add(occ.user)
            snapshot.append(occ)
        return snapshot

    def payload_for(self, scope: Scope, room_id=PUBLIC_ROOM) -> list:
        return [o.to_payload() for o in self.snapshot_for(scope, room_id)]

    # -----------------------------------------
    # JOIN
    # -----------------------------------------

    def join(self, session, name) -> Optional[Occupant]:
        """
        Seat `name` in the session's room. Returns the new occupant, or None
        when the name is already seated there (no record, no announcement).
        """
        scope, room_id = session.scope, session.room_id

        already_here = any(
            o.user == name for o in self.occupants(scope, room_id)
        ) or (scope is Scope.PRIVATE and self.is_member(room_id, name))

        if already_here:
            log_info("presence", f'"{name}" already in {room_id}, join ignored.')
            return None

        # One name, one seat: drop the name everywhere, and whatever
        # this connection held before.
        evicted = self.find(name)
        previous = self.lookup(session.sid, scope)
        if previous is not None and previous not in evicted:
            evicted.append(previous)

        vacated = []
        for occ in evicted:
            self._discard(occ)
            where = (occ.scope, occ.chat_id)
            if where != (scope, room_id) and where not in vacated:
                vacated.append(where)
            log_info("presence", f'Evicted "{occ.user}" from {occ.chat_id} (sid={occ.sid}).')

        occ = Occupant(
            id=next(self._ids),
            user=name,
            scope=scope,
            chat_id=room_id,
            sid=session.sid,
        )
        self._tables[scope][session.sid] = occ
        if scope is Scope.PRIVATE:
            self._members.setdefault(room_id, set()).add(name)

        self._emit_user_list(scope, room_id)
        for other_scope, other_room in vacated:
            self._emit_user_list(other_scope, other_room)

        if self.debouncer.recently_announced(name, room_id):
            log_info("presence", f'Join announcement for "{name}" in {room_id} debounced.')
        else:
            self.debouncer.mark(name, room_id)
            self._announce(scope, room_id, system_message(
                JOIN_TEXT[scope].format(name=name), highlight=name, action="join",
            ))

        log_info("presence", f'"{name}" joined {room_id} (id={occ.id}, sid={session.sid}).')
        return occ

    # -----------------------------------------
    # LEAVE
    # -----------------------------------------

    def leave(self, session) -> Optional[str]:
        occ = self.lookup(session.sid, session.scope)
        if occ is None:
            return None
        self._vacate(occ)
        return occ.user

    def sweep_stale(self) -> int:
        """Drop public occupants whose connection is already gone."""
        stale = [
            occ for sid, occ in self._tables[Scope.PUBLIC].items()
            if not self.transport.is_connected(sid)
        ]
        for occ in stale:
            log_warning("presence", f'Sweeping stale occupant "{occ.user}" (sid={occ.sid}).')
            self._vacate(occ)
        return len(stale)

    # -----------------------------------------
    # INTERNALS
    # -----------------------------------------

    def _discard(self, occ: Occupant):
        table = self._tables[occ.scope]
        if table.get(occ.sid) is occ:
            del table[occ.sid]
        if occ.scope is Scope.PRIVATE:
            self._members.get(occ.chat_id, set()).discard(occ.user)

    def _held_elsewhere(self, name, sid) -> bool:
        return any(
            o.user == name and o.sid != sid
            for o in self._tables[Scope.PUBLIC].values()
        )

    def _vacate(self, occ: Occupant):
        self._discard(occ)
        self._emit_user_list(occ.scope, occ.chat_id)

        # Public: no "left" while another tab still holds the name
        if occ.scope is Scope.PUBLIC and self._held_elsewhere(occ.user, occ.sid):
            log_info("presence", f'"{occ.user}" still connected elsewhere, leave not announced.')
            return

        self._announce(occ.scope, occ.chat_id, system_message(
            LEAVE_TEXT[occ.scope].format(name=occ.user), highlight=occ.user, action="leave",
        ))
        log_info("presence", f'"{occ.user}" left {occ.chat_id}.')

    def _emit_user_list(self, scope: Scope, room_id):
        payload = self.payload_for(scope, room_id)
        if scope is Scope.PRIVATE:
            self.transport.send("userList", payload, to=room_id)
            return
        for sid in self.public_sids():
            self.transport.send("userList", payload, to=sid)

    def _announce(self, scope: Scope, room_id, message: dict):
        target = room_id if scope is Scope.PRIVATE else PUBLIC_ROOM
        self.transport.send("message", message, to=target)
