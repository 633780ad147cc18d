# ============================================
#     RoomRelay — Broadcast & Mention Engine
# ============================================

import re
from collections.abc import Mapping

from relay.config import PUBLIC_ROOM
from relay.storage import now_millis
from relay.logger import log_info


MENTION_REGEX = re.compile(r"@(\S+)")


def coerce_payload(data):
    """
    Inbound `message` payload → (content, kind).
    A bare string is a user message; a mapping carries content/type;
    anything else is kept as opaque content.
    """
    if isinstance(data, str):
        return data, "user"
    if isinstance(data, Mapping):
        return data.get("content"), data.get("type") or "user"
    return data, "user"


def extract_mentions(content, author=None) -> list:
    """
    All `@token` mentions in order of appearance, minus the author.
    Repeats are kept. Non-string content mentions nobody.
    """
    if not isinstance(content, str):
        return []
    return [m for m in MENTION_REGEX.findall(content) if m != author]


class Broadcaster:

    def __init__(self, transport, presence, messages):
        self.transport = transport
        self.presence = presence
        self.messages = messages

    def publish(self, session, data) -> dict:
        content, kind = coerce_payload(data)
        author = self.presence.name_for(session)
        mentions = extract_mentions(content, author)

        message = self.messages.append(
            session.room_id if session.is_private else PUBLIC_ROOM,
            {
                "user": author,
                "type": kind,
                "content": content,
                "timestamp": now_millis(),
                "mentions": mentions,
            },
        )

        # Delivery never crosses scope
        if session.is_private:
            self.transport.send("message", message, to=session.room_id)
        else:
            for sid in self.presence.public_sids():
                self.transport.send("message", message, to=sid)

        notified = 0
        if mentions:
            for occ in self.presence.occupants(session.scope, session.room_id):
                if occ.user in mentions and occ.user != author:
                    self.transport.send(
                        "mentioned",
                        {"from": author, "message": content},
                        to=occ.sid,
                    )
                    notified += 1

        log_info(
            "broadcast",
            f"Message in {session.room_id} from {author!r} "
            f"(type={kind}, mentions={len(mentions)}, notified={notified}).",
        )
        return message
