"""Tests for the live messaging WebSocket endpoint."""

from contextlib import ExitStack

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from starlette.websockets import WebSocketDisconnect

from numina_social.core.security import create_access_token
from numina_social.db.session import Base, get_session_factory
from numina_social.models import User

WS_PATH = "/api/v1/ws/messages"


def _connect(client, user):
    return client.websocket_connect(f"{WS_PATH}?token={create_access_token(user.id)}")


@pytest.mark.parametrize("query", ["", "?token=garbage"])
def test_rejects_missing_or_invalid_token(client, query) -> None:
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{WS_PATH}{query}") as ws:
            ws.receive_json()
    assert exc.value.code == 1008


def test_rejects_token_for_unknown_user(client) -> None:
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{WS_PATH}?token={create_access_token(987654)}") as ws:
            ws.receive_json()
    assert exc.value.code == 1008


def test_connect_acknowledges_and_registers(client, app, alice) -> None:
    with _connect(client, alice) as ws:
        assert ws.receive_json() == {"type": "connected", "user_id": alice.id}
        assert app.state.connection_registry.is_user_online(alice.id)

        health = client.get("/health").json()
        assert health["connections"] == 1


def test_presence_and_new_message_push(client, alice, bob, alice_headers) -> None:
    with _connect(client, bob) as bob_ws:
        assert bob_ws.receive_json()["type"] == "connected"

        with _connect(client, alice) as alice_ws:
            assert alice_ws.receive_json()["type"] == "connected"

            online = bob_ws.receive_json()
            assert online["type"] == "user_online_status"
            assert online["user_id"] == alice.id
            assert online["online"] is True

            sent = client.post(
                "/api/v1/messages/send",
                json={"recipient_id": bob.id, "content": "Tempo run at 6?"},
                headers=alice_headers,
            ).json()

            pushed = bob_ws.receive_json()
            assert pushed["type"] == "new_message"
            assert pushed["message"]["id"] == sent["message"]["id"]
            assert pushed["message"]["content"] == "Tempo run at 6?"


def test_read_and_delivered_frames_send_receipts(client, alice, bob, alice_headers) -> None:
    sent = client.post(
        "/api/v1/messages/send",
        json={"recipient_id": bob.id, "content": "Nice PR today"},
        headers=alice_headers,
    ).json()
    message_id = sent["message"]["id"]

    with _connect(client, alice) as alice_ws:
        alice_ws.receive_json()
        with _connect(client, bob) as bob_ws:
            bob_ws.receive_json()
            alice_ws.receive_json()  # bob came online

            bob_ws.send_json({"type": "delivered", "message_id": message_id})
            delivered = alice_ws.receive_json()
            assert delivered["type"] == "message_delivered"
            assert delivered["message_id"] == message_id

            bob_ws.send_json({"type": "read", "conversation_id": sent["conversation_id"]})
            read = alice_ws.receive_json()
            assert read["type"] == "message_read"
            assert read["message_id"] == message_id
            assert read["conversation_id"] == sent["conversation_id"]


def test_typing_indicator_reaches_other_participant(client, alice, bob, alice_headers) -> None:
    conversation_id = client.post(
        "/api/v1/messages/send",
        json={"recipient_id": bob.id, "content": "hey"},
        headers=alice_headers,
    ).json()["conversation_id"]

    with _connect(client, bob) as bob_ws:
        bob_ws.receive_json()
        with _connect(client, alice) as alice_ws:
            alice_ws.receive_json()
            bob_ws.receive_json()  # alice came online

            alice_ws.send_json({"type": "typing", "conversation_id": conversation_id, "typing": True})
            typing = bob_ws.receive_json()
            assert typing == {
                "type": "typing_indicator",
                "conversation_id": conversation_id,
                "user_id": alice.id,
                "typing": True,
            }


def test_bad_frames_get_error_events(client, alice, carol, bob, alice_headers) -> None:
    conversation_id = client.post(
        "/api/v1/messages/send",
        json={"recipient_id": bob.id, "content": "private"},
        headers=alice_headers,
    ).json()["conversation_id"]

    with _connect(client, carol) as ws:
        ws.receive_json()

        ws.send_text("definitely not json")
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["code"] == "INVALID_EVENT"

        ws.send_json({"type": "typing", "conversation_id": conversation_id})
        error = ws.receive_json()
        assert error == {
            "type": "error",
            "message": "You do not have access to this conversation",
            "code": "CONVERSATION_FORBIDDEN",
        }

        ws.send_json({"type": "delivered", "message_id": "missing"})
        assert ws.receive_json()["code"] == "MESSAGE_NOT_FOUND"


def test_replacement_session_survives_old_session_closing(client, app, alice) -> None:
    registry = app.state.connection_registry
    first_session = _connect(client, alice)
    first = first_session.__enter__()
    first.receive_json()

    with _connect(client, alice) as second:
        second.receive_json()
        first_session.__exit__(None, None, None)

        assert registry.is_user_online(alice.id)
        assert registry.connection_count() == 1
        second.send_text("ping")
        assert second.receive_json()["code"] == "INVALID_EVENT"


def test_binary_frames_are_rejected_without_closing(client, alice) -> None:
    with _connect(client, alice) as ws:
        ws.receive_json()

        ws.send_bytes(b"\x00\x01")
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["code"] == "INVALID_EVENT"

        ws.send_text("still here")
        assert ws.receive_json()["code"] == "INVALID_EVENT"


def test_idle_sockets_hold_no_database_connections(client, app, tmp_path) -> None:
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'sockets.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)
    with factory() as db:
        users = [User(email=f"idle{n}@example.com") for n in range(3)]
        db.add_all(users)
        db.commit()
        user_ids = [user.id for user in users]
    app.dependency_overrides[get_session_factory] = lambda: factory

    try:
        with ExitStack() as stack:
            sockets = []
            for user_id in user_ids:
                ws = stack.enter_context(
                    client.websocket_connect(f"{WS_PATH}?token={create_access_token(user_id)}")
                )
                assert ws.receive_json() == {"type": "connected", "user_id": user_id}
                for earlier in sockets:
                    assert earlier.receive_json()["type"] == "user_online_status"
                sockets.append(ws)

            assert file_engine.pool.checkedout() == 0

            sockets[0].send_json({"type": "typing", "conversation_id": "missing"})
            assert sockets[0].receive_json()["code"] == "CONVERSATION_NOT_FOUND"
            assert file_engine.pool.checkedout() == 0
    finally:
        file_engine.dispose()
