"""Death and chain-death resolver: commits death marks through a kill queue."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from pueblo.effects import DeathMark, Effects, apply_effects, emit
from pueblo.errors import GameCorrupted
from pueblo.roles import reveals_instead_of_death, run_on_death, run_on_other_death
from pueblo.rules import DeathCause, EventType
from pueblo.state import Game, Player

logger = logging.getLogger(__name__)


@dataclass
class DeathReport:
    """Who actually died and who revealed instead, in processing order."""

    killed_ids: list[str] = field(default_factory=list)
    revealed_ids: list[str] = field(default_factory=list)


def _role_name(player: Player) -> str:
    return player.role.value if player.role else "unknown"


def death_message(player: Player) -> str:
    return f"{player.name} has died. Their role was: {_role_name(player)}."


def _bond_marks(game: Game, victim: Player) -> list[DeathMark]:
    """Partners that die with the victim: lovers, twins, and a fatal link held by the victim."""
    marks: list[DeathMark] = []
    if victim.id in game.lovers:
        for other_id in game.lovers:
            other = game.get_player(other_id)
            if other is None or other.id == victim.id:
                continue
            marks.append(DeathMark(
                target_id=other.id,
                cause=DeathCause.LOVER_DEATH,
                unstoppable=True,
                source_id=victim.id,
                message=(
                    f"{other.name} died of grief. For eternal love, they take their life "
                    f"after the death of {victim.name}. Their role was: {_role_name(other)}."
                ),
            ))
    if victim.id in game.twins:
        for other_id in game.twins:
            other = game.get_player(other_id)
            if other is None or other.id == victim.id:
                continue
            marks.append(DeathMark(
                target_id=other.id,
                cause=DeathCause.TWIN_DEATH,
                unstoppable=True,
                source_id=victim.id,
                message=(
                    f"{other.name} could not bear the loss of their twin {victim.name} and died of grief. "
                    f"Their role was: {_role_name(other)}."
                ),
            ))
    if victim.linked_target_id:
        other = game.get_player(victim.linked_target_id)
        if other is not None:
            marks.append(DeathMark(
                target_id=other.id,
                cause=DeathCause.LINKED_DEATH,
                unstoppable=True,
                source_id=victim.id,
                message=(
                    f"Dragged by a fatal bond, {other.name} dies alongside {victim.name}. "
                    f"Their role was: {_role_name(other)}."
                ),
            ))
    return marks


def _commit(game: Game, effects: Effects | None, queue: deque) -> None:
    if effects is None:
        return
    apply_effects(game, effects)
    queue.extend(effects.death_marks)


def resolve_deaths(game: Game, marks: Iterable[DeathMark]) -> DeathReport:
    """Kill every marked player, cascading through hooks and bonds. Mutates game.

    Each player id is processed at most once per call, so cyclic bonds terminate.
    Unstoppable marks skip the reveal-instead-of-death exception.
    """
    queue: deque[DeathMark] = deque(marks)
    processed: set[str] = set()
    report = DeathReport()

    while queue:
        mark = queue.popleft()
        if mark.target_id in processed:
            continue
        player = game.get_player(mark.target_id)
        if player is None:
            raise GameCorrupted(f"death mark for unknown player {mark.target_id}")
        processed.add(player.id)
        if not player.is_alive:
            continue

        if not mark.unstoppable and reveals_instead_of_death(game, player, mark.cause):
            player.prince_revealed = True
            emit(
                game,
                EventType.ROLE_REVEALED,
                f"{player.name} reveals they are the {_role_name(player)} and survives!",
                {"target_id": player.id, "revealed_role": _role_name(player), "cause": mark.cause.value},
            )
            report.revealed_ids.append(player.id)
            continue

        player.is_alive = False
        event_type = EventType.LOVER_DEATH if mark.cause == DeathCause.LOVER_DEATH else EventType.PLAYER_DEATH
        emit(
            game,
            event_type,
            mark.message or death_message(player),
            {
                "killed_player_ids": [player.id],
                "revealed_role": _role_name(player),
                "cause": mark.cause.value,
                "source_id": mark.source_id,
            },
        )
        report.killed_ids.append(player.id)
        logger.debug("game %s: %s died (%s)", game.id, player.id, mark.cause.value)

        _commit(game, run_on_death(game, player, mark.cause), queue)
        for watcher in game.players:
            if watcher.is_alive and watcher.id != player.id:
                _commit(game, run_on_other_death(game, watcher, player, mark.cause), queue)
        queue.extend(m for m in _bond_marks(game, player) if m.target_id not in processed)

    return report


def kill_player(game: Game, player_id: str, cause: DeathCause, message: str | None = None) -> DeathReport:
    """Stoppable kill: subject to the reveal exception."""
    return resolve_deaths(game, [DeathMark(target_id=player_id, cause=cause, message=message)])


def kill_player_unstoppable(game: Game, player_id: str, cause: DeathCause, message: str | None = None) -> DeathReport:
    """Unstoppable kill: bypasses protections and the reveal exception."""
    return resolve_deaths(game, [DeathMark(target_id=player_id, cause=cause, message=message, unstoppable=True)])
