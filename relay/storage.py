# ============================================
#   RoomRelay — Message Store
#   Bounded in-memory history, one log per room
#   (+ one for the public room)
# ============================================

import time
from collections import deque

from relay.config import HISTORY_LIMIT


def now_millis() -> int:
    return int(time.time() * 1000)


# =====================================================
#   MESSAGE NORMALIZATION (CONTRACT LOCK)
# =====================================================

def normalize_message(msg: dict) -> dict:
    """
    Normalize message structure before it is logged or broadcast.
    Guarantees a stable backend ↔ frontend contract.
    """
    m = dict(msg or {})

    m.setdefault("user", None)
    m.setdefault("type", "user")
    m.setdefault("content", "")
    m.setdefault("timestamp", now_millis())
    m.setdefault("mentions", [])

    return m


def system_message(content: str, highlight: str, action: str) -> dict:
    """Synthetic join/leave notice. No author; the subject goes in `highlight`."""
    return normalize_message({
        "type": "system",
        "content": content,
        "highlight": highlight,
        "action": action,
    })


# =====================================================
#   MESSAGE HISTORY
# =====================================================

class MessageStore:

    def __init__(self, limit: int = HISTORY_LIMIT):
        self.limit = limit
        self._logs = {}

    def append(self, scope_key, message: dict) -> dict:
        """
        Append a message to one log. Oldest entries fall off once the
        log holds `limit` messages.
        """
        log = self._logs.get(scope_key)
        if log is None:
            log = deque(maxlen=self.limit)
            self._logs[scope_key] = log

        message = normalize_message(message)
        log.append(message)
        return message

    def history(self, scope_key) -> list:
        return list(self._logs.get(scope_key, ()))

    def __len__(self):
        return sum(len(log) for log in self._logs.values())
