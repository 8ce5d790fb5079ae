"""Secret objectives: per-player bonus goals, read-only over the final game."""

import random
from dataclasses import dataclass
from typing import Callable, Optional

from pueblo.rules import ActionType, EventType, Phase, Role, WOLF_ROLES
from pueblo.state import Game, Player
from pueblo.victory import check_game_over


@dataclass(frozen=True)
class SecretObjective:
    """Bonus goal. Completion is evaluated lazily against the game."""

    id: str
    description: str
    applies_to: frozenset[Role]
    check: Callable[[Player, Game], bool]


def _winner_code(game: Game) -> Optional[str]:
    outcome = check_game_over(game)
    return outcome.winner_code if outcome else None


def _survive_to_end(player: Player, game: Game) -> bool:
    outcome = check_game_over(game)
    return player.is_alive and outcome is not None and player.id in outcome.winner_ids


def _lynched_wolves(game: Game) -> list[tuple[int, str]]:
    lynches = []
    for event in game.events:
        lynched_id = event.data.get("lynched_player_id") if event.type == EventType.VOTE_RESULT else None
        lynched = game.get_player(lynched_id)
        if lynched is not None and lynched.role in WOLF_ROLES:
            lynches.append((event.round, lynched.id))
    return lynches


def _lynch_a_wolf(player: Player, game: Game) -> bool:
    day_phases = (Phase.DAY, Phase.TIEBREAK, Phase.JURY_VOTING)
    for round_, wolf_id in _lynched_wolves(game):
        if any(
            v.voter_id == player.id and v.target_id == wolf_id and v.round == round_ and v.phase in day_phases
            for v in game.vote_history
        ):
            return True
    return False


def _save_someone(player: Player, game: Game) -> bool:
    return any(
        e.type == EventType.NIGHT_RESULT and e.data.get("saved_player_ids") and player.id in e.data.get("saved_by", [])
        for e in game.events
    )


def _survive_as_wolf(player: Player, game: Game) -> bool:
    return player.is_alive and _winner_code(game) == "wolves"


def _kill_seer(player: Player, game: Game) -> bool:
    """The player's own wolf kill hit the seer on the night the seer died."""
    seers = {p.id for p in game.players if p.role == Role.SEER and not p.is_alive}
    seer_nights = {
        (e.round, seer_id)
        for e in game.events
        if e.type == EventType.NIGHT_RESULT
        for seer_id in seers & set(e.data.get("killed_player_ids", []))
    }
    return any(
        a.player_id == player.id
        and a.action_type == ActionType.WEREWOLF_KILL
        and (a.round, a.target_id) in seer_nights
        for a in game.night_actions
    )


def _drunk_lynched(player: Player, game: Game) -> bool:
    return _winner_code(game) == "drunk_man"


def _betray_wolf(player: Player, game: Game) -> bool:
    if not player.is_alive or _winner_code(game) != "wolves":
        return False
    return any(wolf_id != player.id for _, wolf_id in _lynched_wolves(game))


def _lovers_win(player: Player, game: Game) -> bool:
    return player.is_lover and _winner_code(game) == "lovers"


def _executioner_win(player: Player, game: Game) -> bool:
    return _winner_code(game) == "executioner"


_VILLAGE_BASICS = frozenset({Role.VILLAGER, Role.SEER, Role.DOCTOR, Role.HUNTER, Role.GUARDIAN, Role.PRIEST})
_WOLVES = frozenset({Role.WEREWOLF, Role.WOLF_CUB})

SECRET_OBJECTIVES: tuple[SecretObjective, ...] = (
    SecretObjective("survive_to_end", "Survive until the end of the game.", _VILLAGE_BASICS, _survive_to_end),
    SecretObjective(
        "lynch_a_wolf",
        "Vote successfully to lynch a werewolf.",
        frozenset({Role.VILLAGER, Role.SEER, Role.DOCTOR, Role.HUNTER}),
        _lynch_a_wolf,
    ),
    SecretObjective(
        "save_someone",
        "As a protector, save a player from a night attack.",
        frozenset({Role.DOCTOR, Role.GUARDIAN, Role.PRIEST}),
        _save_someone,
    ),
    SecretObjective("survive_as_wolf", "Win the game and survive as a werewolf.", _WOLVES, _survive_as_wolf),
    SecretObjective("kill_seer", "As a werewolf, take part in the death of the seer.", _WOLVES, _kill_seer),
    SecretObjective(
        "betray_wolf",
        "Get the village to lynch another wolf, and survive to win.",
        frozenset({Role.WEREWOLF}),
        _betray_wolf,
    ),
    SecretObjective(
        "lovers_win",
        "As a lover, survive with your partner until the end.",
        frozenset({
            Role.VILLAGER, Role.WEREWOLF, Role.SEER, Role.DOCTOR, Role.HUNTER,
            Role.GUARDIAN, Role.PRIEST, Role.CUPID,
        }),
        _lovers_win,
    ),
    SecretObjective(
        "executioner_win",
        "As the executioner, get your target lynched.",
        frozenset({Role.EXECUTIONER}),
        _executioner_win,
    ),
    SecretObjective(
        "get_lynched_as_drunk",
        "As the drunk man, get yourself lynched by the village.",
        frozenset({Role.DRUNK_MAN}),
        _drunk_lynched,
    ),
)

OBJECTIVES_BY_ID = {o.id: o for o in SECRET_OBJECTIVES}


def eligible_objectives(role: Optional[Role]) -> list[SecretObjective]:
    return [o for o in SECRET_OBJECTIVES if role in o.applies_to]


def assign_objectives(game: Game, rng: random.Random) -> None:
    """Give each player one eligible objective, once, at game start (mutates game)."""
    for player in game.players:
        if player.secret_objective_id is not None:
            continue
        options = eligible_objectives(player.role)
        if options:
            player.secret_objective_id = rng.choice(options).id


def evaluate_objectives(game: Game) -> dict[str, bool]:
    """player id -> whether their secret objective is complete."""
    results: dict[str, bool] = {}
    for player in game.players:
        objective = OBJECTIVES_BY_ID.get(player.secret_objective_id or "")
        if objective is not None:
            results[player.id] = objective.check(player, game)
    return results
