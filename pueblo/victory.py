"""Win condition evaluator. One ordered evaluator shared by every call site."""

from typing import Optional

from pueblo.roles import behavior_for
from pueblo.rules import Role, Team
from pueblo.state import Game, GameOutcome

WOLVES_WIN_MESSAGE = "The werewolves have won! They now outnumber the village."
VILLAGE_WIN_MESSAGE = "The village has won! Every werewolf has been eliminated."
LOVERS_WIN_MESSAGE = "The lovers have won! Alone against the world, their love survived."
FAIRIES_WIN_MESSAGE = "The fairies have won! Their curse is cast and both still live."
DRAW_MESSAGE = "Nobody survived. The game ends in a draw."


def _lynch_win(game: Game, lynched_id: Optional[str]) -> Optional[GameOutcome]:
    lynched = game.get_player(lynched_id)
    if lynched is None:
        return None
    for player in game.players:
        behavior = behavior_for(player.role)
        if behavior.lynch_win and behavior.lynch_win(game, player, lynched):
            return GameOutcome(behavior.win_code or player.role.value, behavior.win_message, (player.id,))
    return None


def _pair_win(game: Game) -> Optional[GameOutcome]:
    alive_ids = {p.id for p in game.get_alive_players()}
    if len(game.lovers) == 2 and alive_ids == set(game.lovers):
        return GameOutcome("lovers", LOVERS_WIN_MESSAGE, tuple(game.lovers))
    fx = game.effects
    if fx.fairies_found and fx.fairy_kill_used:
        seekers = [p for p in game.players if p.role == Role.SEEKER_FAIRY and p.is_alive]
        sleepers = [p for p in game.players if p.role == Role.SLEEPING_FAIRY and p.is_alive]
        if seekers and sleepers:
            return GameOutcome("fairies", FAIRIES_WIN_MESSAGE, (seekers[0].id, sleepers[0].id))
    return None


def _role_win(game: Game) -> Optional[GameOutcome]:
    for player in game.players:
        behavior = behavior_for(player.role)
        if not behavior.check_win or not behavior.check_win(game, player):
            continue
        if player.role == Role.CULT_LEADER:
            winners = tuple(p.id for p in game.players if p.is_cult_member)
        else:
            winners = (player.id,)
        return GameOutcome(behavior.win_code or player.role.value, behavior.win_message, winners)
    return None


def _team_win(game: Game) -> Optional[GameOutcome]:
    alive = game.get_alive_players()
    if not alive:
        return None
    threat = [p for p in alive if p.team == Team.WOLVES]
    if threat and len(threat) >= len(alive) - len(threat):
        winners = tuple(p.id for p in game.players if p.team == Team.WOLVES)
        return GameOutcome(Team.WOLVES.value, WOLVES_WIN_MESSAGE, winners)
    if not threat:
        winners = tuple(p.id for p in game.players if p.team == Team.VILLAGE)
        return GameOutcome(Team.VILLAGE.value, VILLAGE_WIN_MESSAGE, winners)
    return None


def check_game_over(game: Game, lynched_id: Optional[str] = None) -> Optional[GameOutcome]:
    """Return the outcome if the game is over, else None. Does not mutate game.

    Precedence, first match wins: lynch wins, pair wins, role-declared wins,
    team wins, draw. A finished game returns its stored outcome.
    """
    if game.outcome is not None:
        return game.outcome
    if lynched_id is not None:
        outcome = _lynch_win(game, lynched_id)
        if outcome:
            return outcome
    for check in (_pair_win, _role_win, _team_win):
        outcome = check(game)
        if outcome:
            return outcome
    if not game.get_alive_players():
        return GameOutcome("draw", DRAW_MESSAGE, ())
    return None
