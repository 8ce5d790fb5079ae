"""Game master overrides."""

import pytest

from pueblo.engine import create_game, submit_hunter_shot, submit_night_action
from pueblo.errors import ActionRejected
from pueblo.master import execute_master_action
from pueblo.rules import EventType, Phase, Role
from tests.helpers import alive_ids, end_phase, events_of, make_game, night

V = Role.VILLAGER


def test_master_kill_is_unstoppable_and_checks_win():
    game = night(make_game([Role.WEREWOLF, Role.PRINCE, V, V]))
    game = execute_master_action(game, "master_kill", "p2", "p0", now=0)
    assert "p0" not in alive_ids(game)
    assert game.phase == Phase.FINISHED
    assert game.outcome.winner_code == "village"
    assert events_of(game, EventType.PLAYER_DEATH)[-1].data["cause"] == "master_kill"


def test_master_kill_does_not_mutate_input():
    game = night(make_game([Role.WEREWOLF, V, V, V, V]))
    execute_master_action(game, "master_kill", "p0", "p3")
    assert "p3" in alive_ids(game)


def test_master_kill_hunter_hands_off_shot():
    game = night(make_game([Role.WEREWOLF, Role.HUNTER, V, V, V]))
    game = execute_master_action(game, "master_kill", "p0", "p1", now=0)
    assert game.phase == Phase.HUNTER_SHOT
    assert game.hunter_return_phase == Phase.DAY


def test_reveal_role_is_private_to_source():
    game = make_game([Role.WEREWOLF, Role.SEER, V, V])
    game = execute_master_action(game, "reveal_role", "p2", "p0")
    event = game.events[-1]
    assert event.recipient_ids == ("p2",)
    assert event.data == {"revealed_player_id": "p0", "revealed_role": "werewolf"}
    assert game.phase == Phase.NIGHT


def test_master_actions_rejected_outside_running_game():
    lobby = create_game("g1", "p0", "Ana")
    with pytest.raises(ActionRejected):
        execute_master_action(lobby, "master_kill", "p0", "p0")


@pytest.mark.parametrize("action_id,target", [("smite", "p1"), ("master_kill", "nobody")])
def test_bad_master_actions_rejected(action_id, target):
    game = make_game([Role.WEREWOLF, V, V, V])
    with pytest.raises(ActionRejected):
        execute_master_action(game, action_id, "p0", target)


def test_master_kill_dead_player_rejected():
    game = night(make_game([Role.WEREWOLF, V, V, V, V]), ("p0", "werewolf_kill", ["p1"]))
    with pytest.raises(ActionRejected):
        execute_master_action(game, "master_kill", "p0", "p1")


def test_master_kill_hunter_at_night_keeps_the_night():
    game = make_game([Role.WEREWOLF, Role.HUNTER, V, V, V, V])
    game = submit_night_action(game, "p0", "werewolf_kill", ["p2"])
    game = execute_master_action(game, "master_kill", "p3", "p1", now=0)
    assert game.phase == Phase.HUNTER_SHOT
    game = submit_hunter_shot(game, "p1", "p4")
    assert (game.phase, game.round) == (Phase.NIGHT, 1)
    assert game.events[-1].data["resumed"] is True
    game = end_phase(game)
    assert "p2" not in alive_ids(game)
    assert (game.phase, game.round) == (Phase.DAY, 1)
