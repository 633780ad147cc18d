# ============================================
#     RoomRelay — Identity & Session
#     Per-connection scope, resolved once at connect
# ============================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from relay.config import PUBLIC_ROOM, FLAG_ON


class Scope(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


# =====================================================
#   CONNECTION PARAMETERS (transport boundary)
# =====================================================

@dataclass(frozen=True)
class ConnectionParams:
    """
    Handshake query, parsed into explicit fields.

    Query keys: chat_id, private, pass, pass_need, creating.
    `private` and `creating` are on only for the literal string "1".
    `pass_need` stays opaque here; the room registry interprets the value
    stored at creation time, not the one sent by a joining client.
    """
    room_id: str
    private: bool
    password: Optional[str]
    pass_need: Optional[str]
    creating: bool

    @classmethod
    def from_query(cls, args) -> "ConnectionParams":
        args = args or {}
        return cls(
            room_id=args.get("chat_id") or PUBLIC_ROOM,
            private=args.get("private") == FLAG_ON,
            password=args.get("pass") or None,
            pass_need=args.get("pass_need"),
            creating=args.get("creating") == FLAG_ON,
        )

    @property
    def scope(self) -> Scope:
        # Any room other than the global one is private, whatever `private` says
        if self.room_id != PUBLIC_ROOM:
            return Scope.PRIVATE
        return Scope.PUBLIC


# =====================================================
#   SESSION (lives as long as the connection)
# =====================================================

@dataclass
class Session:
    sid: str
    room_id: str
    scope: Scope
    creating: bool = False

    @classmethod
    def open(cls, sid: str, params: ConnectionParams) -> "Session":
        return cls(
            sid=sid,
            room_id=params.room_id,
            scope=params.scope,
            creating=params.creating,
        )

    @property
    def is_private(self) -> bool:
        return self.scope is Scope.PRIVATE

    def confirmation(self) -> dict:
        return {"room": self.room_id, "isPrivate": self.is_private}
