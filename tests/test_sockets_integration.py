"""End-to-end tests over the Socket.IO test client."""

from __future__ import annotations

from relay.presence import Occupant
from relay.session import Scope


def _contents(messages):
    return [m["content"] for m in messages or []]


def _actions(messages, action):
    return [m for m in messages or [] if m.get("action") == action]


def test_public_connection_is_confirmed_and_nudged(connect, drain):
    client = connect()

    events = drain(client)
    assert events["connectionConfirmed"] == [{"room": "public", "isPrivate": False}]
    assert events["requestUserList"] == [None]
    assert "error" not in events


def test_password_protected_room_scenario(server, connect, drain):
    host = connect()
    ack = host.emit(
        "createRoom",
        {"roomId": "r1", "password": "secret", "passNeedId": "true"},
        callback=True,
    )
    assert ack == {"ok": True, "roomId": "r1"}

    creator = connect("chat_id=r1&private=1&creating=1")
    events = drain(creator)
    assert events["userList"] == [[]]
    assert events["connectionConfirmed"] == [{"room": "r1", "isPrivate": True}]
    assert "error" not in events

    no_pass = connect("chat_id=r1&private=1")
    assert drain(no_pass)["error"] == [{"type": "auth", "message": "need_password"}]

    wrong = connect("chat_id=r1&private=1&pass=wrong")
    assert drain(wrong)["error"] == [{"type": "auth", "message": "密碼錯誤"}]

    member = connect("chat_id=r1&private=1&pass=secret")
    events = drain(member)
    assert "error" not in events
    assert events["connectionConfirmed"] == [{"room": "r1", "isPrivate": True}]

    creator.emit("join", "alice")
    member.emit("join", "dave")

    for client in (creator, member):
        lists = drain(client)["userList"]
        assert [u["user"] for u in lists[-1]] == ["alice", "dave"]
        assert {u["type"] for u in lists[-1]} == {"private"}

    # refused connections stay open but are never admitted
    assert no_pass.is_connected()
    assert drain(no_pass) == {}
    assert drain(wrong) == {}


def test_refused_connection_events_are_ignored(server, connect, drain):
    host = connect()
    host.emit("createRoom", {"roomId": "r1", "password": "pw", "passNeedId": "1"}, callback=True)

    outsider = connect("chat_id=r1&private=1")
    drain(outsider)

    outsider.emit("join", "mallory")
    outsider.emit("message", "let me in")
    outsider.emit("requestHistory")

    assert server.state.presence.find("mallory") == []
    assert server.state.messages.history("r1") == []
    assert drain(outsider) == {}


def test_unknown_room_is_refused(connect, drain):
    client = connect("chat_id=ghost&private=1")

    assert drain(client)["error"] == [{"type": "auth", "message": "房間不存在"}]


def test_mention_reaches_only_the_mentioned_user(connect, drain):
    alice = connect()
    bob = connect()
    alice.emit("join", "alice")
    bob.emit("join", "bob")
    drain(alice)
    drain(bob)

    bob.emit("message", "hello @alice")

    alice_events = drain(alice)
    bob_events = drain(bob)

    assert alice_events["mentioned"] == [{"from": "bob", "message": "hello @alice"}]
    assert "mentioned" not in bob_events
    assert _contents(alice_events["message"]) == ["hello @alice"]
    assert _contents(bob_events["message"]) == ["hello @alice"]

    message = alice_events["message"][0]
    assert message["user"] == "bob"
    assert message["mentions"] == ["alice"]
    assert isinstance(message["timestamp"], int)


def test_public_and_private_traffic_never_mix(connect, drain):
    host = connect()
    host.emit("createRoom", {"roomId": "r2"}, callback=True)

    pub = connect()
    priv = connect("chat_id=r2&private=1")
    pub.emit("join", "pat")
    priv.emit("join", "quinn")

    assert _contents(drain(pub).get("message")) == ["pat joined the chat"]
    assert _contents(drain(priv).get("message")) == ["quinn joined the private room"]
    drain(host)

    pub.emit("message", "public hello")
    priv.emit("message", {"content": "private hello", "type": "user"})

    assert _contents(drain(pub).get("message")) == ["public hello"]
    assert _contents(drain(priv).get("message")) == ["private hello"]
    # host never joined with a name, so it is not a public occupant
    assert "message" not in drain(host)

    pub.emit("requestHistory")
    priv.emit("requestHistory")
    assert [_contents(h) for h in drain(pub)["chatHistory"]] == [["public hello"]]
    assert [_contents(h) for h in drain(priv)["chatHistory"]] == [["private hello"]]


def test_user_list_request_per_scope(connect, drain):
    host = connect()
    host.emit("createRoom", {"roomId": "r3"}, callback=True)

    x = connect("chat_id=r3&private=1")
    y = connect("chat_id=r3&private=1")
    x.emit("join", "xena")
    drain(x)
    drain(y)

    # private: the whole room is refreshed
    y.emit("requestUserList")
    for client in (x, y):
        [users] = drain(client)["userList"]
        assert [u["user"] for u in users] == ["xena"]
        assert users[0]["chat_id"] == "r3"

    # public: only the asker gets it
    host.emit("join", "hank")
    drain(host)
    host.emit("requestUserList")
    [users] = drain(host)["userList"]
    assert users == [{"id": users[0]["id"], "user": "hank", "type": "public", "chat_id": "public"}]
    assert drain(x) == {}


def test_duplicate_join_produces_no_second_announcement(connect, drain):
    watcher = connect()
    watcher.emit("join", "walt")
    alice = connect()
    alice.emit("join", "alice")
    drain(watcher)

    alice.emit("join", "alice")

    assert drain(watcher) == {}


def test_leave_announced_only_when_last_connection_for_name_goes(connect, drain):
    watcher = connect()
    watcher.emit("join", "walt")
    tab1 = connect()
    tab1.emit("join", "alice")
    tab2 = connect()
    tab2.emit("join", "alice")
    drain(watcher)

    tab2.disconnect()
    assert _actions(drain(watcher).get("message"), "leave") == []

    tab1.disconnect()
    events = drain(watcher)
    [leave] = _actions(events.get("message"), "leave")
    assert leave["content"] == "alice left the chat"
    assert leave["highlight"] == "alice"
    assert [u["user"] for u in events["userList"][-1]] == ["walt"]


def test_private_leave_is_announced_to_the_room(connect, drain):
    host = connect()
    host.emit("createRoom", {"roomId": "r5"}, callback=True)

    stay = connect("chat_id=r5&private=1")
    go = connect("chat_id=r5&private=1")
    stay.emit("join", "sam")
    go.emit("join", "gus")
    drain(stay)
    drain(host)

    go.disconnect()

    events = drain(stay)
    [leave] = _actions(events.get("message"), "leave")
    assert leave["content"] == "gus left the private room"
    assert [u["user"] for u in events["userList"][-1]] == ["sam"]
    assert drain(host) == {}


def test_joining_another_room_evicts_the_old_seat(server, connect, drain):
    host = connect()
    host.emit("createRoom", {"roomId": "r6"}, callback=True)

    public_tab = connect()
    public_tab.emit("join", "alice")
    private_tab = connect("chat_id=r6&private=1")
    private_tab.emit("join", "alice")

    [seat] = server.state.presence.find("alice")
    assert seat.chat_id == "r6"


def test_invalid_join_names_are_ignored(server, connect):
    client = connect()
    client.emit("join", "")
    client.emit("join", {"name": "x"})

    assert len(server.state.presence) == 0


def test_create_room_without_room_id_is_rejected(connect):
    client = connect()

    assert client.emit("createRoom", "oops", callback=True) == {"ok": False, "error": "invalid_room"}
    assert client.emit("createRoom", {"password": "pw"}, callback=True) == {
        "ok": False,
        "error": "invalid_room",
    }


def test_admitted_connection_is_placed_in_its_socketio_room(server, connect):
    host = connect()
    host.emit("createRoom", {"roomId": "r7"}, callback=True)
    connect("chat_id=r7&private=1")

    [sid] = [s.sid for s in server.state.sessions.values() if s.room_id == "r7"]
    rooms = server.socketio.server.manager.rooms["/"]
    assert sid in rooms["r7"]
    assert sid not in rooms.get("public", {})


def test_connect_sweeps_occupants_whose_socket_is_gone(server, connect, drain):
    watcher = connect()
    watcher.emit("join", "walt")
    drain(watcher)

    presence = server.state.presence
    presence._tables[Scope.PUBLIC]["gone-sid"] = Occupant(99, "ghost", Scope.PUBLIC, "public", "gone-sid")

    connect()

    assert presence.find("ghost") == []
    events = drain(watcher)
    [leave] = _actions(events.get("message"), "leave")
    assert leave["content"] == "ghost left the chat"
    assert [u["user"] for u in events["userList"][-1]] == ["walt"]


def test_refused_connection_may_still_register_a_room(server, connect, drain):
    outsider = connect("chat_id=nowhere&private=1")
    assert drain(outsider)["error"] == [{"type": "auth", "message": "房間不存在"}]

    ack = outsider.emit("createRoom", {"roomId": "nowhere"}, callback=True)

    assert ack == {"ok": True, "roomId": "nowhere"}
    assert server.state.rooms.get("nowhere") is not None
    assert server.state.sessions == {}
