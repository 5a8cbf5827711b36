"""
API tests through FastAPI's TestClient.

The lifespan runs for each client, so every test gets its own container and
in-memory store.
"""

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from chatroom.app.factory import create_app
from chatroom.config.models import AppConfig


@pytest.fixture
def client(app_config: AppConfig) -> Iterator[TestClient]:
    app = create_app(app_config, exit_on_fatal_error=False)
    with TestClient(app) as test_client:
        yield test_client


def join(ws, name: str) -> list[str]:
    """Complete the name handshake and return the frames it produced."""
    assert ws.receive_text() == "Please enter your name:"
    assert ws.receive_text().startswith("Current visitors: ")
    ws.send_text(name)
    frames = [ws.receive_text(), ws.receive_text(), ws.receive_text()]
    assert frames[0] == f"Welcome, {name}!"
    return frames


class TestStaticAndHealth:
    """GET / and GET /health."""

    def test_index_serves_browser_client(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "WebSocket" in response.text

    def test_missing_index_is_404_with_reason(self, app_config: AppConfig, tmp_path: Path):
        app_config.server.static_dir = str(tmp_path)
        app = create_app(app_config, exit_on_fatal_error=False)

        with TestClient(app) as client:
            response = client.get("/")

        assert response.status_code == 404
        assert response.json() == {"error": "Chat client page is not available."}

    def test_health_reports_counts(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "connections": 0, "authenticated": 0}


class TestChatWebSocket:
    """WS / and WS /ws."""

    def test_handshake_and_chat(self, client: TestClient):
        with client.websocket_connect("/") as ws:
            frames = join(ws, "Alice")
            assert frames[1:] == ["Alice has joined the chat.", "System: Currently connected: Alice"]

            ws.send_text("hi")
            line = ws.receive_text()
            assert line.startswith("Alice [")
            assert line.endswith("]: hi")

    def test_ws_alias_route(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_text() == "Please enter your name:"

    def test_duplicate_name_gets_retry_prompt(self, client: TestClient):
        with client.websocket_connect("/") as alice:
            join(alice, "Alice")
            with client.websocket_connect("/") as bob:
                assert bob.receive_text() == "Please enter your name:"
                assert bob.receive_text() == "Current visitors: 2"

                bob.send_text("Alice")
                assert bob.receive_text() == "Username already in use, please enter a different name:"

                health = client.get("/health").json()
                assert health["connections"] == 2
                assert health["authenticated"] == 1


class TestChangeName:
    """PUT /change-name."""

    def test_missing_fields_are_400_not_422(self, client: TestClient):
        response = client.put("/change-name", json={"oldName": "alice"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing oldName or newName."}

    def test_malformed_body_is_400(self, client: TestClient):
        response = client.put("/change-name", content=b"not json", headers={"content-type": "application/json"})

        assert response.status_code == 400

    def test_non_string_fields_are_400(self, client: TestClient):
        response = client.put("/change-name", json={"oldName": 1, "newName": ["x"]})

        assert response.status_code == 400

    def test_unknown_old_name_is_404(self, client: TestClient):
        response = client.put("/change-name", json={"oldName": "ghost", "newName": "bob"})

        assert response.status_code == 404
        assert response.json() == {"error": "Active client with the old username not found."}

    def test_rename_broadcasts_notice(self, client: TestClient):
        with client.websocket_connect("/") as ws:
            join(ws, "Alice")

            response = client.put("/change-name", json={"oldName": "Alice", "newName": "Alicia"})

            assert response.status_code == 200
            assert response.json() == {"message": "Username updated successfully."}
            assert ws.receive_text() == "System: Alice has changed their name to Alicia."

            ws.send_text("renamed")
            assert ws.receive_text().startswith("Alicia [")

    def test_rename_to_taken_name_is_409(self, client: TestClient):
        with client.websocket_connect("/") as alice:
            join(alice, "Alice")
            with client.websocket_connect("/") as bob:
                join(bob, "Bob")

                response = client.put("/change-name", json={"oldName": "Alice", "newName": "Bob"})

                assert response.status_code == 409
                assert response.json() == {"error": "Username already in use, please choose a different name."}
