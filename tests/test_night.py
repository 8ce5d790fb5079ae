"""Night resolution: ordering, protections, kill marks and role powers."""

import pytest

from pueblo.engine import submit_night_action
from pueblo.errors import ActionRejected
from pueblo.night import order_actions
from pueblo.rules import ActionType, EventType, Phase, Role, Team
from pueblo.views import visible_events
from tests.helpers import alive_ids, day, events_of, make_game, night

V = Role.VILLAGER
KILL = ActionType.WEREWOLF_KILL


def _night_result(game):
    return events_of(game, EventType.NIGHT_RESULT)[-1]


def test_wolf_kill():
    game = night(make_game([Role.WEREWOLF, Role.SEER, Role.DOCTOR, V, V]), ("p0", KILL, ["p3"]))
    assert alive_ids(game) == {"p0", "p1", "p2", "p4"}
    assert _night_result(game).data["killed_player_ids"] == ["p3"]
    assert "Diego (who was villager)" in _night_result(game).message
    assert game.phase == Phase.DAY


def test_doctor_saves_regardless_of_submission_order():
    roles = [Role.WEREWOLF, Role.SEER, Role.DOCTOR, V, V]
    game = night(make_game(roles), ("p0", KILL, ["p3"]), ("p2", ActionType.DOCTOR_HEAL, ["p3"]))
    assert len(alive_ids(game)) == 5
    result = _night_result(game)
    assert result.data["saved_player_ids"] == ["p3"]
    assert result.data["saved_by"] == ["p2"]
    assert "saved" in result.message


def test_order_by_priority_then_join_order():
    game = make_game([Role.WEREWOLF, Role.SEER, Role.DOCTOR, V, V])
    game = submit_night_action(game, "p0", KILL, ["p3"])
    game = submit_night_action(game, "p1", ActionType.SEER_CHECK, ["p0"])
    game = submit_night_action(game, "p2", ActionType.DOCTOR_HEAL, ["p4"])
    assert [a.player_id for a in order_actions(game)] == ["p2", "p1", "p0"]


def test_duplicate_night_action_is_noop():
    game = make_game([Role.WEREWOLF, V, V, V, V])
    game = submit_night_action(game, "p0", KILL, ["p1"])
    assert submit_night_action(game, "p0", KILL, ["p2"]) is game
    game = night(game)
    assert "p1" not in alive_ids(game)
    assert "p2" in alive_ids(game)


def test_every_wolf_target_dies():
    roles = [Role.WEREWOLF, Role.WEREWOLF, V, V, V, V, V, V]
    game = night(make_game(roles), ("p0", KILL, ["p2"]), ("p1", KILL, ["p3"]))
    assert not {"p2", "p3"} & alive_ids(game)


@pytest.mark.parametrize(
    "actor,action_type,targets",
    [
        ("p0", KILL, ["p1"]),  # own pack
        ("p0", KILL, ["p2", "p3"]),  # no revenge night
        ("p2", ActionType.SEER_CHECK, ["p0"]),  # not a seer
        ("p3", ActionType.CUPID_LOVE, ["p2"]),  # cupid needs two
        ("p0", KILL, ["nobody"]),
    ],
)
def test_invalid_night_actions_rejected(actor, action_type, targets):
    game = make_game([Role.WEREWOLF, Role.WOLF_CUB, V, Role.CUPID, V, V, V, V])
    with pytest.raises(ActionRejected):
        submit_night_action(game, actor, action_type, targets)


def test_dead_player_cannot_act():
    game = night(make_game([Role.WEREWOLF, Role.SEER, V, V, V]), ("p0", KILL, ["p1"]))
    game = day(game, {})
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p1", ActionType.SEER_CHECK, ["p0"])


def test_first_night_only_actions():
    game = make_game([Role.WEREWOLF, Role.CUPID, V, V, V, V])
    game = day(night(game), {})
    assert game.round == 2
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p1", ActionType.CUPID_LOVE, ["p2", "p3"])


def test_seer_vision_is_private():
    game = night(make_game([Role.WEREWOLF, Role.SEER, Role.LYCANTHROPE, V, V]), ("p1", ActionType.SEER_CHECK, ["p2"]))
    vision = [e for e in visible_events(game, "p1") if e.data.get("is_wolf") is not None]
    assert len(vision) == 1
    assert vision[0].data["is_wolf"] is True
    assert all(e.data.get("is_wolf") is None for e in visible_events(game, "p3"))


def test_seer_apprentice_inherits_after_seer_dies():
    game = make_game([Role.WEREWOLF, Role.SEER, Role.SEER_APPRENTICE, V, V, V])
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p2", ActionType.SEER_CHECK, ["p0"])
    game = night(game, ("p0", KILL, ["p1"]))
    assert game.effects.seer_died
    game = night(day(game, {}), ("p2", ActionType.SEER_CHECK, ["p0"]))
    assert events_of(game, EventType.SPECIAL)[-1].data == {"target_id": "p0", "is_wolf": True}


def test_guardian_and_doctor_cannot_repeat_target():
    game = make_game([Role.WEREWOLF, Role.DOCTOR, Role.GUARDIAN, V, V, V])
    game = night(game, ("p1", ActionType.DOCTOR_HEAL, ["p3"]), ("p2", ActionType.GUARDIAN_PROTECT, ["p4"]))
    game = day(game, {})
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p1", ActionType.DOCTOR_HEAL, ["p3"])
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p2", ActionType.GUARDIAN_PROTECT, ["p4"])


def test_guardian_self_protect_only_once():
    game = make_game([Role.WEREWOLF, Role.GUARDIAN, V, V, V, V])
    game = night(game, ("p1", ActionType.GUARDIAN_PROTECT, ["p1"]), ("p0", KILL, ["p1"]))
    assert "p1" in alive_ids(game)
    game = night(day(game, {}), ("p1", ActionType.GUARDIAN_PROTECT, ["p2"]))
    game = day(game, {})
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p1", ActionType.GUARDIAN_PROTECT, ["p1"])


def test_bless_blocks_poison_guard_does_not():
    game = make_game([Role.WEREWOLF, Role.SORCERESS, Role.PRIEST, V, V, V])
    game = night(game, ("p2", ActionType.PRIEST_BLESS, ["p3"]), ("p1", ActionType.SORCERESS_POISON, ["p3"]))
    assert "p3" in alive_ids(game)
    assert _night_result(game).data["saved_by"] == ["p2"]

    game = make_game([Role.WEREWOLF, Role.SORCERESS, Role.DOCTOR, V, V, V])
    game = night(game, ("p2", ActionType.DOCTOR_HEAL, ["p3"]), ("p1", ActionType.SORCERESS_POISON, ["p3"]))
    assert "p3" not in alive_ids(game)


def test_sorceress_save_and_single_use():
    game = make_game([Role.WEREWOLF, Role.SORCERESS, V, V, V, V])
    game = night(game, ("p0", KILL, ["p3"]), ("p1", ActionType.SORCERESS_SAVE, ["p3"]))
    assert "p3" in alive_ids(game)
    assert _night_result(game).data["saved_by"] == ["p1"]
    game = day(game, {})
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p1", ActionType.SORCERESS_SAVE, ["p2"])
    game = submit_night_action(game, "p1", ActionType.SORCERESS_POISON, ["p2"])


def test_cursed_turns_into_werewolf():
    game = night(make_game([Role.WEREWOLF, Role.CURSED, V, V, V, V]), ("p0", KILL, ["p1"]))
    cursed = game.get_player("p1")
    assert cursed.is_alive
    assert cursed.role == Role.WEREWOLF
    assert cursed.team == Team.WOLVES
    transformed = events_of(game, EventType.PLAYER_TRANSFORMED)
    assert len(transformed) == 1
    assert set(transformed[0].recipient_ids) == {"p0", "p1"}
    assert _night_result(game).data["killed_player_ids"] == []


def test_leper_blocks_next_wolf_attack():
    game = night(make_game([Role.WEREWOLF, Role.LEPER, V, V, V, V]), ("p0", KILL, ["p1"]))
    assert game.effects.leper_blocked_round == 2
    game = night(day(game, {}), ("p0", KILL, ["p2"]))
    assert "p2" in alive_ids(game)
    assert "leper" in _night_result(game).message


def test_wolf_cub_death_allows_two_kills_next_night():
    roles = [Role.WEREWOLF, Role.WOLF_CUB, V, V, V, V, V, V]
    game = night(make_game(roles))
    game = day(game, {pid: "p1" for pid in ("p0", "p2", "p3", "p4", "p5", "p6", "p7")})
    assert "p1" not in alive_ids(game)
    assert game.effects.wolf_cub_revenge_round == 2
    game = night(game, ("p0", KILL, ["p2", "p3"]))
    assert not {"p2", "p3"} & alive_ids(game)


def test_elder_exile_voids_action():
    game = night(
        make_game([Role.WEREWOLF, Role.ELDER_LEADER, V, V, V]),
        ("p0", KILL, ["p2"]),
        ("p1", ActionType.ELDER_LEADER_EXILE, ["p0"]),
    )
    assert len(alive_ids(game)) == 5
    assert "silence" in _night_result(game).message


def test_lookout_sees_visitors():
    game = night(
        make_game([Role.WEREWOLF, Role.LOOKOUT, V, V, V]),
        ("p1", ActionType.LOOKOUT_SPY, ["p2"]),
        ("p0", KILL, ["p2"]),
    )
    report = [e for e in events_of(game, EventType.SPECIAL) if e.recipient_ids == ("p1",)][-1]
    assert report.data["visitor_ids"] == ["p0"]
    assert "Ana" in report.message
    game = day(game, {})
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p1", ActionType.LOOKOUT_SPY, ["p3"])


def test_vampire_third_bite_is_unstoppable():
    game = make_game([Role.WEREWOLF, Role.VAMPIRE, Role.DOCTOR, V, V, V, V])
    game = day(night(game, ("p1", ActionType.VAMPIRE_BITE, ["p3"])), {})
    game = day(night(game, ("p1", ActionType.VAMPIRE_BITE, ["p3"])), {})
    assert game.get_player("p3").bite_count == 2
    assert "p3" in alive_ids(game)
    game = night(game, ("p1", ActionType.VAMPIRE_BITE, ["p3"]), ("p2", ActionType.DOCTOR_HEAL, ["p3"]))
    assert "p3" not in alive_ids(game)
    assert game.effects.vampire_kills == 1


def test_fairies_find_then_kill_and_win():
    roles = [Role.WEREWOLF, Role.SEEKER_FAIRY, Role.SLEEPING_FAIRY, V, V, V, V]
    game = night(make_game(roles), ("p1", ActionType.FAIRY_FIND, ["p2"]))
    assert game.effects.fairies_found
    assert game.get_player("p2").team == Team.WOLVES
    game = night(day(game, {}), ("p1", ActionType.FAIRY_KILL, ["p3"]))
    assert "p3" not in alive_ids(game)
    assert game.outcome.winner_code == "fairies"
    assert set(game.outcome.winner_ids) == {"p1", "p2"}


def test_fisherman_drowns_catching_a_wolf():
    game = night(make_game([Role.WEREWOLF, Role.FISHERMAN, V, V, V]), ("p1", ActionType.FISHERMAN_CATCH, ["p0"]))
    assert "p1" not in alive_ids(game)


def test_cult_recruits():
    game = night(make_game([Role.WEREWOLF, Role.CULT_LEADER, V, V, V]), ("p1", ActionType.CULT_RECRUIT, ["p2"]))
    assert game.get_player("p2").is_cult_member
    game = day(game, {})
    with pytest.raises(ActionRejected):
        submit_night_action(game, "p1", ActionType.CULT_RECRUIT, ["p2"])


def test_resurrector_brings_back_the_dead():
    game = night(make_game([Role.WEREWOLF, Role.RESURRECTOR_ANGEL, V, V, V, V]), ("p0", KILL, ["p2"]))
    game = night(day(game, {}), ("p1", ActionType.RESURRECT, ["p2"]))
    assert "p2" in alive_ids(game)
    assert game.get_player("p1").resurrection_used
