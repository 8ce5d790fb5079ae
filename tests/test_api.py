"""API route tests."""

import uuid
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.game_store import create as store_create, get as store_get
from pueblo.errors import GameCorrupted
from pueblo.rules import ACTION_REJECTED_MESSAGE, Role
from tests.helpers import make_game

V = Role.VILLAGER

client = TestClient(app)


@pytest.fixture(autouse=True)
def no_narrator():
    """Keep background narration away from real models."""
    with patch("api.main.dispatch_event_chat") as dispatch:
        yield dispatch


def _stored_game(roles, **kwargs) -> str:
    """Put a game at night 1 in the store. Its deadlines are long past, so advance works at once."""
    game_id = str(uuid.uuid4())
    store_create(make_game(roles, game_id=game_id, **kwargs))
    return game_id


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_join_start():
    r = client.post("/games", json={"creator_id": "u1", "creator_name": "Ana", "ai_players": ["Bot A"]})
    assert r.status_code == 200
    gid = r.json()["game_id"]
    r = client.post(f"/games/{gid}/join", json={"player_id": "u2", "name": "Bruno"})
    assert r.status_code == 200
    assert [p["name"] for p in r.json()["players"]] == ["Ana", "Bot A", "Bruno"]
    r = client.post(f"/games/{gid}/start", json={"player_id": "u2"})
    assert r.status_code == 403
    r = client.post(f"/games/{gid}/start", json={"player_id": "u1"})
    assert r.status_code == 200
    state = r.json()
    assert state["phase"] == "role_reveal"
    assert state["my_role"] in ("werewolf", "villager")
    assert gid in client.get("/games").json()


def test_create_game_validation():
    r = client.post("/games", json={"creator_id": "u1", "creator_name": ""})
    assert r.status_code == 422
    r = client.post("/games", json={"creator_id": "u1", "creator_name": "Ana", "settings": {"roles": {"dragon": True}}})
    assert r.status_code == 422
    r = client.post(
        "/games",
        json={"creator_id": "u1", "creator_name": "Ana", "settings": {"max_players": 3}, "ai_players": ["a", "b", "c"]},
    )
    assert r.status_code == 422


def test_get_game_404():
    r = client.get("/games/nonexistent-id")
    assert r.status_code == 404
    r = client.post("/games/nonexistent-id/vote", json={"player_id": "p1", "target_id": "p2"})
    assert r.status_code == 404


def test_get_game_filters_roles_by_viewer():
    gid = _stored_game([Role.WEREWOLF, V, V, V])
    roles = [p["role"] for p in client.get(f"/games/{gid}", params={"viewer_id": "p1"}).json()["players"]]
    assert roles == [None, "villager", None, None]
    roles = [p["role"] for p in client.get(f"/games/{gid}").json()["players"]]
    assert roles == [None, None, None, None]


def test_rejected_action_returns_generic_message():
    gid = _stored_game([Role.WEREWOLF, V, V, V])
    r = client.post(f"/games/{gid}/night-action", json={"player_id": "p1", "action_type": "seer_check", "target_ids": ["p0"]})
    assert r.status_code == 400
    assert r.json() == {"detail": ACTION_REJECTED_MESSAGE}


def test_night_action_then_advance():
    gid = _stored_game([Role.WEREWOLF, V, V, V, V])
    r = client.post(f"/games/{gid}/night-action", json={"player_id": "p0", "action_type": "werewolf_kill", "target_ids": ["p3"]})
    assert r.status_code == 200
    r = client.post(f"/games/{gid}/advance", json={"expected_phase": "night"})
    assert r.status_code == 200
    state = r.json()
    assert state["phase"] == "day"
    assert [p["is_alive"] for p in state["players"]] == [True, True, True, False, True]
    assert not store_get(gid).get_player("p3").is_alive


def test_stale_advance_changes_nothing():
    gid = _stored_game([Role.WEREWOLF, V, V, V])
    before = store_get(gid)
    r = client.post(f"/games/{gid}/advance", json={"expected_phase": "day"})
    assert r.status_code == 200
    assert r.json()["phase"] == "night"
    assert store_get(gid) is before


def test_advance_schedules_narration_for_public_events(no_narrator):
    gid = _stored_game([Role.WEREWOLF, V, V, V, V])
    client.post(f"/games/{gid}/advance", json={})
    night_result = [e for e in store_get(gid).events if e.type.value == "night_result"][-1]
    scheduled = [c.args for c in no_narrator.call_args_list]
    assert (gid, night_result.id) in scheduled


def test_corrupted_game_returns_500():
    gid = _stored_game([Role.WEREWOLF, V, V, V])
    before = store_get(gid)
    with patch("api.main.advance_phase", side_effect=GameCorrupted("broken")):
        r = client.post(f"/games/{gid}/advance", json={})
    assert r.status_code == 500
    assert store_get(gid) is before


def test_vote_and_chat():
    gid = _stored_game([Role.WEREWOLF, V, V, V, V])
    client.post(f"/games/{gid}/advance", json={})
    r = client.post(f"/games/{gid}/vote", json={"player_id": "p1", "target_id": "p0"})
    assert r.status_code == 200
    assert r.json()["players"][1]["voted_for"] == "p0"
    r = client.post(f"/games/{gid}/chat", json={"player_id": "p1", "text": "It was Ana"})
    assert r.status_code == 200
    assert r.json()["chat"][-1]["text"] == "It was Ana"
    r = client.post(f"/games/{gid}/chat", json={"player_id": "p1", "text": "hi", "channel": "wolves"})
    assert r.status_code == 400


def test_master_action_creator_only():
    gid = _stored_game([Role.WEREWOLF, V, V, V])
    r = client.post(f"/games/{gid}/master", json={"player_id": "p1", "action_id": "master_kill", "target_id": "p0"})
    assert r.status_code == 403
    r = client.post(f"/games/{gid}/master", json={"player_id": "p0", "action_id": "reveal_role", "target_id": "p2"})
    assert r.status_code == 200
    assert r.json()["events"][-1]["data"] == {"revealed_player_id": "p2", "revealed_role": "villager"}


def test_objectives_hidden_until_game_over():
    gid = _stored_game([Role.WEREWOLF, V, V, V])
    r = client.get(f"/games/{gid}/objectives", params={"viewer_id": "p1"})
    assert r.status_code == 200
    assert set(r.json()) <= {"p1"}


def test_settings_roles_catalogue():
    r = client.get("/settings/roles")
    assert r.status_code == 200
    data = r.json()
    assert data["werewolf"]["team"] == "wolves"
    assert data["vampire"]["team"] == "neutral"
    assert len(data) == len(Role)


def test_env_keys_returns_booleans_no_values():
    """GET /settings/env-keys returns only booleans and never key values."""
    with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-secret"}):
        r = client.get("/settings/env-keys")
    assert r.status_code == 200
    data = r.json()
    assert data["openai"] is True
    for k, v in data.items():
        assert isinstance(v, bool), f"{k} should be bool, got {type(v)}"
    assert "sk-" not in r.text


def test_settings_prompts_returns_defaults():
    r = client.get("/settings/prompts")
    assert r.status_code == 200
    data = r.json()
    assert "rules_summary" in data
    assert "chat_instructions_template" in data


def test_store_update_writes_only_new_games():
    from api.game_store import delete as store_delete, update as store_update

    gid = _stored_game([Role.WEREWOLF, V, V, V])
    before = store_get(gid)
    assert store_update(gid, lambda g: g) is before
    with pytest.raises(KeyError):
        store_create(before)
    store_delete(gid)
    assert store_get(gid) is None
    with pytest.raises(KeyError):
        store_update(gid, lambda g: g)
