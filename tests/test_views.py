"""What each viewer may see."""

from pueblo.rules import ActionType, Role
from pueblo.views import can_see_role, perspective, public_players, public_view, visible_events
from tests.helpers import day, make_game, night

V = Role.VILLAGER


def _roles_seen_by(game, viewer_id):
    return {p.id: p.role for p in public_players(game, viewer_id)}


def test_villager_sees_only_own_role():
    game = make_game([Role.WEREWOLF, Role.WEREWOLF, V, V, V, V, V, V])
    seen = _roles_seen_by(game, "p2")
    assert seen["p2"] == V
    assert all(role is None for pid, role in seen.items() if pid != "p2")


def test_wolves_see_each_other():
    game = make_game([Role.WEREWOLF, Role.WEREWOLF, V, V, V, V, V, V])
    seen = _roles_seen_by(game, "p0")
    assert seen["p1"] == Role.WEREWOLF
    assert seen["p2"] is None


def test_twins_see_each_other():
    game = make_game([Role.WEREWOLF, Role.TWIN, Role.TWIN, V, V])
    assert can_see_role(game, game.get_player("p2"), "p1")
    assert not can_see_role(game, game.get_player("p0"), "p1")


def test_dead_and_finished_roles_are_public():
    game = night(make_game([Role.WEREWOLF, V, V, V, V]), ("p0", ActionType.WEREWOLF_KILL, ["p4"]))
    assert _roles_seen_by(game, None)["p4"] == V
    assert _roles_seen_by(game, None)["p0"] is None
    game = day(game, {"p1": "p0", "p2": "p0", "p3": "p0"})
    assert _roles_seen_by(game, None)["p0"] == Role.WEREWOLF


def test_private_events_filtered_until_game_over():
    game = make_game([Role.WEREWOLF, V, V, V])
    mine = [e for e in visible_events(game, "p1") if e.recipient_ids]
    assert [e.recipient_ids for e in mine] == [("p1",)]
    assert all(e.recipient_ids is None for e in visible_events(game, None))
    game = day(night(game), {"p1": "p0", "p2": "p0", "p3": "p0"})
    assert visible_events(game, None) == game.events


def test_public_view_shape():
    game = make_game([Role.WEREWOLF, V, V, V])
    view = public_view(game, "p1")
    assert view["phase"] == "night"
    assert view["round"] == 1
    assert view["my_role"] == "villager"
    assert [p["role"] for p in view["players"]] == [None, "villager", None, None]
    assert view["winner_code"] is None


def test_perspective_hides_other_roles():
    game = make_game([Role.WEREWOLF, V, V, V])
    snapshot = perspective(game, "p1")
    assert snapshot["me"]["role"] == "villager"
    assert all(p["role"] is None for p in snapshot["players"] if p["id"] != "p1")
    assert not any("werewolf" in line for line in snapshot["events"])
