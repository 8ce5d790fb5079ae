"""Builders shared by the test modules."""

from typing import Iterable

from pueblo.engine import advance_phase, create_game, join_game, start_game, submit_night_action, submit_vote
from pueblo.rules import EventType, Role
from pueblo.state import Game, GameEvent, GameSettings

NAMES = ["Ana", "Bruno", "Carla", "Diego", "Elena", "Fede", "Gala", "Hugo", "Ines", "Jaime"]


def make_game(
    roles: list[Role],
    seed: int = 7,
    game_id: str = "g1",
    ai_ids: Iterable[str] = (),
    **settings,
) -> Game:
    """Started game at night 1. Player i is f"p{i}", named NAMES[i], with roles[i]."""
    ai = set(ai_ids)
    game = create_game(game_id, "p0", NAMES[0], settings=GameSettings(**settings), seed=seed)
    for i in range(1, len(roles)):
        game = join_game(game, f"p{i}", NAMES[i], is_ai=f"p{i}" in ai)
    game = start_game(game, now=0, roles=roles)
    return end_phase(game)


def end_phase(game: Game) -> Game:
    """Advance exactly at the current deadline."""
    return advance_phase(game, now=game.phase_ends_at)


def night(game: Game, *actions) -> Game:
    """Submit (player_id, action_type, target_ids) tuples, then resolve the night."""
    for player_id, action_type, targets in actions:
        game = submit_night_action(game, player_id, action_type, targets)
    return end_phase(game)


def day(game: Game, votes: dict[str, str]) -> Game:
    """Cast {voter: target} votes, then resolve the vote."""
    for voter, target in votes.items():
        game = submit_vote(game, voter, target)
    return end_phase(game)


def alive_ids(game: Game) -> set[str]:
    return {p.id for p in game.get_alive_players()}


def events_of(game: Game, event_type: EventType) -> list[GameEvent]:
    return [e for e in game.events if e.type == event_type]
