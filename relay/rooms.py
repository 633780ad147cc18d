# ============================================
#     RoomRelay — Room Registry
#     Room existence + shared password gate
# ============================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from relay.config import (
    PASS_NEED_OFF,
    AUTH_NEED_PASSWORD,
    AUTH_ROOM_NOT_FOUND,
    AUTH_WRONG_PASSWORD,
)
from relay.logger import log_info


class Access(Enum):
    GRANTED = "granted"
    NEED_PASSWORD = "need_password"
    WRONG_PASSWORD = "wrong_password"
    ROOM_NOT_FOUND = "room_not_found"


# Reason strings sent back in `error {type: "auth", message}`
AUTH_MESSAGES = {
    Access.NEED_PASSWORD: AUTH_NEED_PASSWORD,
    Access.ROOM_NOT_FOUND: AUTH_ROOM_NOT_FOUND,
    Access.WRONG_PASSWORD: AUTH_WRONG_PASSWORD,
}


def is_pass_required(marker) -> bool:
    """
    Interpret the opaque password-required marker.
    Empty / missing → not required. Literal "false" → not required.
    Anything else (including "0", True, "no") → required.
    """
    if not marker:
        return False
    return marker != PASS_NEED_OFF


@dataclass
class Room:
    room_id: str
    password: Optional[str] = None
    pass_required: bool = False


class RoomRegistry:
    """Authoritative store of private rooms. Rooms live for the process lifetime."""

    def __init__(self):
        self._rooms = {}

    def __len__(self):
        return len(self._rooms)

    def get(self, room_id) -> Optional[Room]:
        return self._rooms.get(room_id)

    # =====================================================
    #   CREATE (last writer wins)
    # =====================================================

    def create_room(self, room_id, password=None, pass_need=None) -> Room:
        if password:
            room = Room(room_id, password=password, pass_required=is_pass_required(pass_need))
        else:
            room = Room(room_id)

        replaced = room_id in self._rooms
        self._rooms[room_id] = room

        log_info(
            "rooms",
            f"Room {'re-registered' if replaced else 'created'}: {room_id} "
            f"(password={'yes' if room.password else 'no'}, required={room.pass_required})",
        )
        return room

    # =====================================================
    #   ACCESS CHECK
    # =====================================================

    def resolve_access(self, room_id, creating: bool, password=None) -> Access:
        if creating:
            return Access.GRANTED

        room = self._rooms.get(room_id)
        if room is None:
            return Access.ROOM_NOT_FOUND

        if room.pass_required:
            if not password:
                return Access.NEED_PASSWORD
            if password != room.password:
                return Access.WRONG_PASSWORD

        return Access.GRANTED
