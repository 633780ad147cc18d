"""Shared pytest fixtures for relay tests."""

from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Iterator

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from relay.config import PUBLIC_ROOM
from relay.presence import JoinDebouncer, PresenceTracker
from relay.server import create_app
from relay.session import Scope, Session
from relay.state import ChatState


class FakeTransport:
    """Records every emit instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, Any, Any]] = []
        self.live: set[str] = set()

    def send(self, event: str, payload: Any = None, to: Any = None) -> None:
        self.sent.append((event, payload, to))

    def is_connected(self, sid: str) -> bool:
        return sid in self.live

    def payloads(self, event: str, to: Any = None) -> list[Any]:
        return [p for e, p, t in self.sent if e == event and (to is None or t == to)]

    def targets(self, event: str) -> list[Any]:
        return [t for e, _, t in self.sent if e == event]

    def clear(self) -> None:
        self.sent.clear()


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def presence(transport, clock) -> PresenceTracker:
    """Presence tracker with a controllable debounce clock."""

    return PresenceTracker(transport, JoinDebouncer(window=2.0, clock=clock))


@pytest.fixture()
def chat_state(transport) -> ChatState:
    return ChatState(transport)


@pytest.fixture()
def public_session():
    def _make(sid: str) -> Session:
        return Session(sid=sid, room_id=PUBLIC_ROOM, scope=Scope.PUBLIC)

    return _make


@pytest.fixture()
def private_session():
    def _make(sid: str, room_id: str) -> Session:
        return Session(sid=sid, room_id=room_id, scope=Scope.PRIVATE)

    return _make


@pytest.fixture()
def server(tmp_path) -> SimpleNamespace:
    """A fresh Flask + Socket.IO app with its own in-memory state."""

    app, socketio, state = create_app(async_mode="threading")
    app.config["TESTING"] = True
    app.config["UPLOAD_DIR"] = str(tmp_path / "uploads")
    return SimpleNamespace(app=app, socketio=socketio, state=state)


@pytest.fixture()
def connect(server) -> Iterator:
    """Open Socket.IO test clients; all are disconnected at teardown."""

    clients = []

    def _connect(query: str = ""):
        client = server.socketio.test_client(server.app, query_string=query)
        clients.append(client)
        return client

    yield _connect

    for client in clients:
        if client.is_connected():
            client.disconnect()


def _events(client) -> dict[str, list[Any]]:
    by_name: dict[str, list[Any]] = {}
    for packet in client.get_received():
        # "message"/"json" packets carry the bare payload, not an args list
        args = packet["args"]
        if isinstance(args, list):
            payload = args[0] if args else None
        else:
            payload = args
        by_name.setdefault(packet["name"], []).append(payload)
    return by_name


@pytest.fixture()
def drain():
    """Drain a test client's queue into {event name: [payloads]}."""

    return _events
