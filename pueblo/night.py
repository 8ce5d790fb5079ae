"""Night resolution pipeline: order the round's actions, fold their effects, commit."""

import logging
from dataclasses import dataclass, field
from typing import Any

from pueblo.deaths import resolve_deaths
from pueblo.effects import (
    DeathMark,
    EventDraft,
    Effects,
    apply_flag_updates,
    apply_player_updates,
    emit,
)
from pueblo.errors import GameCorrupted
from pueblo.roles import perform_night_action
from pueblo.rules import ACTION_PRIORITY, ActionType, DeathCause, EventType, Protection
from pueblo.state import Game, NightAction

logger = logging.getLogger(__name__)

_ATTACK_TYPES = frozenset({
    ActionType.WEREWOLF_KILL,
    ActionType.SORCERESS_POISON,
    ActionType.VAMPIRE_BITE,
    ActionType.FAIRY_KILL,
})


@dataclass
class NightContext:
    """Mutable resolution state for one night. Role hooks only read it."""

    game: Game
    protections: dict[str, dict[Protection, list[str]]] = field(default_factory=dict)
    marks: dict[str, DeathMark] = field(default_factory=dict)
    player_updates: dict[str, dict[str, Any]] = field(default_factory=dict)
    flag_updates: dict[str, Any] = field(default_factory=dict)
    saved: dict[str, list[str]] = field(default_factory=dict)  # target -> savers
    visits: dict[str, list[str]] = field(default_factory=dict)  # target -> visitors
    watches: list[tuple[str, str]] = field(default_factory=list)
    lovers: tuple[str, str] | None = None
    events: list[EventDraft] = field(default_factory=list)

    def is_protected(self, target_id: str, *kinds: Protection) -> bool:
        by_kind = self.protections.get(target_id, {})
        return any(by_kind.get(k) for k in kinds)

    def protectors(self, target_id: str) -> list[str]:
        return [src for sources in self.protections.get(target_id, {}).values() for src in sources]

    def pending(self, player_id: str, name: str, default: Any) -> Any:
        """Value of a player field as it will be after this night's updates so far."""
        return self.player_updates.get(player_id, {}).get(name, default)

    def flag(self, name: str) -> Any:
        if name in self.flag_updates:
            return self.flag_updates[name]
        return getattr(self.game.effects, name)

    def is_exiled(self, player_id: str) -> bool:
        return self.flag("exiled_player_id") == player_id and self.flag("exiled_round") == self.game.round

    def fold(self, actor_id: str, effects: Effects) -> None:
        for player_id, changes in effects.player_updates.items():
            self.player_updates.setdefault(player_id, {}).update(changes)
        self.flag_updates.update(effects.flag_updates)
        for target_id, kind, source_id in effects.protections:
            self.protections.setdefault(target_id, {}).setdefault(kind, []).append(source_id)
        for mark in effects.death_marks:
            existing = self.marks.get(mark.target_id)
            if existing is None or (mark.unstoppable and not existing.unstoppable):
                self.marks[mark.target_id] = mark
        for target_id in effects.unmarks:
            existing = self.marks.get(target_id)
            if existing is not None and not existing.unstoppable:
                del self.marks[target_id]
                self.saved.setdefault(target_id, []).append(actor_id)
        for target_id in effects.blocked:
            self.saved.setdefault(target_id, []).extend(self.protectors(target_id))
        self.watches.extend(effects.watches)
        if effects.lovers:
            self.lovers = effects.lovers
        self.events.extend(effects.events)


@dataclass
class NightReport:
    killed_ids: list[str] = field(default_factory=list)
    saved_ids: list[str] = field(default_factory=list)
    revealed_ids: list[str] = field(default_factory=list)


def order_actions(game: Game) -> list[NightAction]:
    """Current-round actions by priority band, then join order. Submission time never matters."""
    return sorted(
        game.current_night_actions(),
        key=lambda a: (ACTION_PRIORITY[a.action_type], game.join_index(a.player_id)),
    )


def _lookout_reports(ctx: NightContext) -> list[EventDraft]:
    game = ctx.game
    drafts = []
    for watcher_id, target_id in ctx.watches:
        mark = ctx.marks.get(watcher_id)
        if mark is not None and mark.cause == DeathCause.WEREWOLF_KILL:
            continue
        target = game.get_player(target_id)
        visitors = [v for v in ctx.visits.get(target_id, []) if v != watcher_id]
        names = [game.get_player(v).name for v in dict.fromkeys(visitors)]
        if names:
            message = f"From the shadows you saw {', '.join(names)} visit {target.name}."
        else:
            message = f"Nobody visited {target.name} tonight."
        drafts.append(EventDraft(
            EventType.SPECIAL,
            message,
            {"target_id": target_id, "visitor_ids": list(dict.fromkeys(visitors))},
            recipient_ids=(watcher_id,),
        ))
    return drafts


def _night_result_message(game: Game, report: NightReport, had_attack: bool) -> str:
    if report.killed_ids:
        lost = " and ".join(
            f"{p.name} (who was {p.role.value if p.role else 'unknown'})"
            for p in (game.get_player(pid) for pid in report.killed_ids)
        )
        return f"Last night the village lost {lost}."
    if game.effects.leper_blocked_round == game.round:
        return "Thanks to the leper, the wolves could not attack tonight. Nobody died."
    if report.saved_ids or had_attack:
        return "A scream pierced the night, but someone was saved at the last moment!"
    return "The night passes in an eerie silence. Nobody died."


def resolve_night(game: Game) -> NightReport:
    """Resolve the current round's night actions. Mutates game; callers pass a copy.

    Commit order: field updates, then the kill queue, then events.
    """
    ctx = NightContext(game=game)
    actions = order_actions(game)
    performed: list[NightAction] = []
    for action in actions:
        actor = game.get_player(action.player_id)
        if actor is None:
            raise GameCorrupted(f"night action from unknown player {action.player_id}")
        if not actor.is_alive:
            continue
        if actor.role is None:
            raise GameCorrupted(f"living player {actor.id} has no role at night")
        if ctx.is_exiled(actor.id):
            logger.debug("game %s: %s is exiled, %s skipped", game.id, actor.id, action.action_type.value)
            continue
        performed.append(action)
        effects = perform_night_action(ctx, actor, action)
        for target_id in action.target_ids:
            ctx.visits.setdefault(target_id, []).append(actor.id)
        if effects is not None:
            ctx.fold(actor.id, effects)

    ctx.events.extend(_lookout_reports(ctx))

    apply_player_updates(game, ctx.player_updates)
    apply_flag_updates(game, ctx.flag_updates)
    if ctx.lovers:
        game.lovers = list(ctx.lovers)

    deaths = resolve_deaths(game, list(ctx.marks.values()))
    report = NightReport(
        killed_ids=deaths.killed_ids,
        saved_ids=[pid for pid in ctx.saved if pid not in deaths.killed_ids],
        revealed_ids=deaths.revealed_ids,
    )

    for draft in ctx.events:
        emit(game, draft.type, draft.message, draft.data, draft.recipient_ids)
    had_attack = any(a.action_type in _ATTACK_TYPES for a in performed)
    saved_by = sorted({src for pid in report.saved_ids for src in ctx.saved[pid]})
    emit(
        game,
        EventType.NIGHT_RESULT,
        _night_result_message(game, report, had_attack),
        {
            "killed_player_ids": report.killed_ids,
            "saved_player_ids": report.saved_ids,
            "saved_by": saved_by,
        },
    )
    logger.info("game %s: night %d resolved, %d died", game.id, game.round, len(report.killed_ids))
    return report
