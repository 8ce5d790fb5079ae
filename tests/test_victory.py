"""Win condition evaluator."""

from pueblo.roles import default_team
from pueblo.rules import Role
from pueblo.state import Game, GameOutcome, Player
from pueblo.victory import check_game_over

V = Role.VILLAGER
W = Role.WEREWOLF


def _game(*roles: Role, dead: tuple[int, ...] = ()) -> Game:
    players = [
        Player(id=f"p{i}", name=f"P{i}", role=role, team=default_team(role), is_alive=i not in dead)
        for i, role in enumerate(roles)
    ]
    return Game(id="g1", players=players, round=1)


def test_no_winner_yet():
    assert check_game_over(_game(W, V, V, V)) is None


def test_wolves_win_at_parity():
    outcome = check_game_over(_game(W, V, V, V, dead=(2, 3)))
    assert outcome.winner_code == "wolves"
    assert outcome.winner_ids == ("p0",)


def test_village_wins_when_no_wolves_left():
    outcome = check_game_over(_game(W, V, V, dead=(0, 2)))
    assert outcome.winner_code == "village"
    assert outcome.winner_ids == ("p1", "p2")


def test_draw_when_nobody_alive():
    outcome = check_game_over(_game(W, V, dead=(0, 1)))
    assert outcome.winner_code == "draw"
    assert outcome.winner_ids == ()


def test_lovers_alone_beat_team_win():
    game = _game(W, V, V, dead=(2,))
    game.lovers = ["p0", "p1"]
    assert check_game_over(game).winner_code == "lovers"


def test_lynch_win_takes_precedence():
    game = _game(W, Role.DRUNK_MAN, V, dead=(1,))
    assert check_game_over(game).winner_code == "wolves"
    outcome = check_game_over(game, lynched_id="p1")
    assert outcome.winner_code == "drunk_man"
    assert outcome.winner_ids == ("p1",)


def test_cult_wins_when_every_survivor_is_a_member():
    game = _game(W, Role.CULT_LEADER, V, V, dead=(0,))
    for pid in ("p1", "p2", "p3"):
        game.get_player(pid).is_cult_member = True
    outcome = check_game_over(game)
    assert outcome.winner_code == "cult"
    assert set(outcome.winner_ids) == {"p1", "p2", "p3"}


def test_vampire_wins_after_three_kills():
    game = _game(W, Role.VAMPIRE, V, V, V)
    game.effects.vampire_kills = 3
    assert check_game_over(game).winner_code == "vampire"


def test_fisherman_wins_with_village_aboard():
    game = _game(Role.FISHERMAN, V, V, W)
    game.effects.boat = ["p1", "p2"]
    outcome = check_game_over(game)
    assert outcome.winner_code == "fisherman"
    assert outcome.winner_ids == ("p0",)


def test_banshee_wins_with_two_points():
    game = _game(W, Role.BANSHEE, V, V, V)
    game.get_player("p1").banshee_points = 2
    assert check_game_over(game).winner_code == "banshee"


def test_evaluation_is_idempotent_and_pure():
    game = _game(W, V, V, V, dead=(2, 3))
    first = check_game_over(game)
    assert check_game_over(game) == first
    assert game.outcome is None


def test_stored_outcome_is_returned():
    game = _game(W, V, V, V)
    game.outcome = GameOutcome("village", "done", ("p1",))
    assert check_game_over(game) is game.outcome
