"""Game master overrides. Same resolver and win evaluator as regular play."""

import copy
import logging
import time
from typing import Optional

from pueblo.deaths import resolve_deaths
from pueblo.effects import DeathMark, emit
from pueblo.engine import settle
from pueblo.errors import ActionRejected
from pueblo.rules import DeathCause, EventType, Phase
from pueblo.state import Game

logger = logging.getLogger(__name__)

MASTER_KILL = "master_kill"
REVEAL_ROLE = "reveal_role"
MASTER_ACTIONS = (MASTER_KILL, REVEAL_ROLE)


def execute_master_action(
    game: Game,
    action_id: str,
    source_id: str,
    target_id: str,
    now: Optional[float] = None,
) -> Game:
    """Apply one master action and return the new game.

    master_kill: unstoppable death, then the same win check and hunter hand-off as any death.
    reveal_role: the target's role is sent privately to source_id.
    """
    if action_id not in MASTER_ACTIONS:
        raise ActionRejected(f"unknown master action {action_id}")
    if game.phase in (Phase.WAITING, Phase.FINISHED):
        raise ActionRejected("master actions need a running game")
    target = game.get_player(target_id)
    if target is None:
        raise ActionRejected(f"unknown player {target_id}")

    game = copy.deepcopy(game)
    target = game.get_player(target_id)
    role_name = target.role.value if target.role else "unknown"
    if action_id == REVEAL_ROLE:
        emit(
            game,
            EventType.SPECIAL,
            f"The master reveals that {target.name} is the {role_name}.",
            {"revealed_player_id": target.id, "revealed_role": role_name},
            recipient_ids=(source_id,),
        )
        return game

    if not target.is_alive:
        raise ActionRejected(f"{target_id} is already dead")
    resolve_deaths(game, [DeathMark(
        target_id=target.id,
        cause=DeathCause.MASTER_KILL,
        unstoppable=True,
        source_id=source_id,
        message=f"A bolt from the heavens strikes {target.name}. Their role was: {role_name}.",
    )])
    logger.info("game %s: master killed %s", game.id, target.id)
    settle(game, game.phase, time.time() if now is None else now)
    return game
