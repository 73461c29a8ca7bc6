"""Tests for the player tracking FastAPI endpoints."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from playertrack.domain import (
    Credential,
    NameConflict,
    NotFound,
    Player,
    Position,
    Registration,
    Unauthorized,
)
from playertrack.players.registry import PlayerRegistry
from playertrack.server.api import create_app
from playertrack.server.config import ServerConfig

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_CONFIG = ServerConfig(static_dir=None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(config=_CONFIG))


@pytest.fixture
def mock_store() -> MagicMock:
    store = MagicMock(spec=["register", "list_players", "get_player", "update_position"])
    return store


@pytest.fixture
def mock_client(mock_store: MagicMock) -> TestClient:
    return TestClient(create_app(store=mock_store, config=_CONFIG))


def _register(client: TestClient, name: str) -> dict:
    resp = client.post("/players", json={"name": name})
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


def test_health(client: TestClient) -> None:
    """Health check responds ok."""
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_returns_player_and_secret(client: TestClient) -> None:
    """Registration returns the player and a decimal secret."""
    body = _register(client, "alice")
    assert body["player"] == {"name": "alice", "position": {"x": 0.0, "y": 0.0}}
    assert isinstance(body["secret"], str)
    assert body["secret"].isdigit()


def test_register_duplicate_name(client: TestClient) -> None:
    """A taken name yields 403 and no second player."""
    _register(client, "alice")
    resp = client.post("/players", json={"name": "alice"})
    assert resp.status_code == 403
    assert "in use" in resp.json()["error"]
    assert len(client.get("/players").json()) == 1


@pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": 5}])
def test_register_invalid_body(client: TestClient, payload: dict) -> None:
    """Malformed registration bodies yield 422 with an error field."""
    resp = client.post("/players", json=payload)
    assert resp.status_code == 422
    assert list(resp.json()) == ["error"]


def test_register_without_credentials() -> None:
    """Without credentials registration returns the bare player."""
    app = create_app(config=ServerConfig(static_dir=None, issue_credentials=False))
    client = TestClient(app)
    body = _register(client, "alice")
    assert body == {"name": "alice", "position": {"x": 0.0, "y": 0.0}}
    resp = client.patch("/players/alice", json={"position": {"x": 1, "y": 2}})
    assert resp.status_code == 200
    assert resp.json()["position"] == {"x": 1.0, "y": 2.0}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def test_list_and_get_hide_secret(client: TestClient) -> None:
    """List and get never include the secret."""
    _register(client, "alice")
    _register(client, "bob")
    players = client.get("/players").json()
    assert {player["name"] for player in players} == {"alice", "bob"}
    assert all("secret" not in player for player in players)
    resp = client.get("/players/bob")
    assert resp.status_code == 200
    assert resp.json() == {"name": "bob", "position": {"x": 0.0, "y": 0.0}}


def test_get_unknown_player(client: TestClient) -> None:
    """Unknown players yield 404 with an error message."""
    resp = client.get("/players/nobody")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Unknown player: nobody"}


def test_unknown_route_uses_error_body(client: TestClient) -> None:
    """Framework 404s use the error body too."""
    resp = client.get("/nothing-here")
    assert resp.status_code == 404
    assert "error" in resp.json()


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


def test_update_flow(client: TestClient) -> None:
    """Register, move with the right secret, then fail with a wrong one."""
    secret = _register(client, "alice")["secret"]
    resp = client.patch(
        "/players/alice", json={"position": {"x": 3, "y": 4}, "secret": secret}
    )
    assert resp.status_code == 200
    assert resp.json() == {"name": "alice", "position": {"x": 3.0, "y": 4.0}}

    wrong = str((int(secret) + 1) % (1 << 64))
    resp = client.patch(
        "/players/alice", json={"position": {"x": 9, "y": 9}, "secret": wrong}
    )
    assert resp.status_code == 401
    assert "error" in resp.json()
    assert client.get("/players/alice").json()["position"] == {"x": 3.0, "y": 4.0}


def test_update_accepts_numeric_secret(client: TestClient) -> None:
    """The secret may be sent as a JSON number."""
    secret = _register(client, "alice")["secret"]
    resp = client.patch(
        "/players/alice", json={"position": {"x": 1, "y": 1}, "secret": int(secret)}
    )
    assert resp.status_code == 200


def test_update_missing_secret(client: TestClient) -> None:
    """Omitting the secret yields 401."""
    _register(client, "alice")
    resp = client.patch("/players/alice", json={"position": {"x": 1, "y": 1}})
    assert resp.status_code == 401


def test_update_other_players_secret(client: TestClient) -> None:
    """Another player's secret yields 401."""
    alice_secret = _register(client, "alice")["secret"]
    _register(client, "bob")
    resp = client.patch(
        "/players/bob", json={"position": {"x": 1, "y": 1}, "secret": alice_secret}
    )
    assert resp.status_code == 401
    assert client.get("/players/bob").json()["position"] == {"x": 0.0, "y": 0.0}


def test_update_unknown_player(client: TestClient) -> None:
    """Updating an unknown player yields 404."""
    resp = client.patch(
        "/players/nobody", json={"position": {"x": 1, "y": 1}, "secret": "1"}
    )
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "payload",
    [
        {"position": {"x": 1}},
        {"position": {"x": "left", "y": 1}},
        {"position": {"x": 1, "y": 1}, "secret": "not-a-number"},
        {"position": {"x": 1, "y": 1}, "secret": -3},
    ],
)
def test_update_invalid_body(client: TestClient, payload: dict) -> None:
    """Malformed update bodies yield 422."""
    _register(client, "alice")
    resp = client.patch("/players/alice", json=payload)
    assert resp.status_code == 422
    assert "error" in resp.json()


# ---------------------------------------------------------------------------
# Id identity mode
# ---------------------------------------------------------------------------


def test_id_mode_routes() -> None:
    """Id mode routes address players by id."""
    registry = PlayerRegistry(identity_mode="id", id_factory=lambda: 77)
    client = TestClient(create_app(store=registry, config=_CONFIG))
    body = _register(client, "alice")
    assert body["player"]["id"] == 77
    assert client.get("/players/77").json()["name"] == "alice"
    assert client.get("/players/alice").status_code == 404
    resp = client.patch(
        "/players/77", json={"position": {"x": 2, "y": 3}, "secret": body["secret"]}
    )
    assert resp.status_code == 200
    assert resp.json() == {"name": "alice", "position": {"x": 2.0, "y": 3.0}, "id": 77}


# ---------------------------------------------------------------------------
# Store wiring
# ---------------------------------------------------------------------------


def test_store_errors_map_to_status_codes(
    mock_client: TestClient, mock_store: MagicMock
) -> None:
    """Store errors map to 403, 404 and 401."""
    mock_store.register.side_effect = NameConflict("taken")
    mock_store.get_player.side_effect = NotFound("missing")
    mock_store.update_position.side_effect = Unauthorized("nope")
    assert mock_client.post("/players", json={"name": "a"}).status_code == 403
    assert mock_client.get("/players/a").json() == {"error": "missing"}
    resp = mock_client.patch("/players/a", json={"position": {"x": 0, "y": 0}})
    assert resp.status_code == 401
    assert resp.json() == {"error": "nope"}


def test_update_passes_parsed_values_to_store(
    mock_client: TestClient, mock_store: MagicMock
) -> None:
    """Update passes domain values to the store."""
    mock_store.update_position.return_value = Player(name="a", position=Position(1.5, -2))
    resp = mock_client.patch(
        "/players/a", json={"position": {"x": 1.5, "y": -2}, "secret": "99"}
    )
    assert resp.status_code == 200
    mock_store.update_position.assert_called_once_with(
        "a", Position(1.5, -2.0), Credential(99)
    )


def test_register_uses_store(mock_client: TestClient, mock_store: MagicMock) -> None:
    """Registration delegates to the store."""
    mock_store.register.return_value = Registration(
        player=Player(name="zed"), credential=Credential(5)
    )
    resp = mock_client.post("/players", json={"name": "zed"})
    assert resp.status_code == 201
    assert resp.json() == {
        "player": {"name": "zed", "position": {"x": 0.0, "y": 0.0}},
        "secret": "5",
    }
    mock_store.register.assert_called_once_with("zed")


# ---------------------------------------------------------------------------
# Static files
# ---------------------------------------------------------------------------


def test_static_directory_is_mounted(tmp_path: Path) -> None:
    """An existing static directory is served at the root."""
    (tmp_path / "index.html").write_text("<h1>game</h1>", encoding="utf-8")
    client = TestClient(create_app(config=ServerConfig(static_dir=tmp_path)))
    resp = client.get("/")
    assert resp.status_code == 200
    assert "game" in resp.text
    assert client.get("/players").status_code == 200


def test_missing_static_directory_is_skipped(tmp_path: Path) -> None:
    """A missing static directory is not mounted."""
    client = TestClient(create_app(config=ServerConfig(static_dir=tmp_path / "absent")))
    assert client.get("/health").status_code == 200
    assert client.get("/").status_code == 404


# ---------------------------------------------------------------------------
# Names containing slashes
# ---------------------------------------------------------------------------


def test_name_with_slash_is_reachable(client: TestClient) -> None:
    """A registered name containing '/' can still be fetched and moved."""
    secret = _register(client, "a/b")["secret"]
    resp = client.get("/players/a%2Fb")
    assert resp.status_code == 200
    assert resp.json()["name"] == "a/b"
    resp = client.patch(
        "/players/a%2Fb", json={"position": {"x": 5, "y": 6}, "secret": secret}
    )
    assert resp.status_code == 200
    assert resp.json() == {"name": "a/b", "position": {"x": 5.0, "y": 6.0}}
    assert client.get("/players/a/b").json()["position"] == {"x": 5.0, "y": 6.0}
