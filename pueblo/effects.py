"""Effect values returned by role hooks and applied by the night pipeline and death resolver.

Hooks never mutate the game; they describe what should change and the caller folds it.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional

from pueblo.errors import GameCorrupted
from pueblo.rules import DeathCause, EventType, Protection
from pueblo.state import Game, GameEvent, Player, RoundEffects


_PLAYER_FIELDS = frozenset(f.name for f in dataclasses.fields(Player)) - {"id"}
_FLAG_FIELDS = frozenset(f.name for f in dataclasses.fields(RoundEffects))


@dataclass(frozen=True)
class DeathMark:
    """A pending decision that a player will die."""

    target_id: str
    cause: DeathCause
    message: Optional[str] = None
    unstoppable: bool = False
    source_id: Optional[str] = None


@dataclass(frozen=True)
class EventDraft:
    """An event waiting for an id; ids are assigned when the event is committed."""

    type: EventType
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    recipient_ids: Optional[tuple[str, ...]] = None


@dataclass
class Effects:
    """Changes a role hook wants applied."""

    player_updates: dict[str, dict[str, Any]] = field(default_factory=dict)
    flag_updates: dict[str, Any] = field(default_factory=dict)
    protections: list[tuple[str, Protection, str]] = field(default_factory=list)  # (target, kind, source)
    death_marks: list[DeathMark] = field(default_factory=list)
    unmarks: list[str] = field(default_factory=list)
    blocked: list[str] = field(default_factory=list)  # lethal targets stopped by a protection
    watches: list[tuple[str, str]] = field(default_factory=list)  # (watcher, target)
    lovers: Optional[tuple[str, str]] = None
    hunter_pending: Optional[str] = None
    events: list[EventDraft] = field(default_factory=list)

    def update_player(self, player_id: str, **changes: Any) -> "Effects":
        self.player_updates.setdefault(player_id, {}).update(changes)
        return self

    def set_flags(self, **changes: Any) -> "Effects":
        self.flag_updates.update(changes)
        return self

    def mark(self, target_id: str, cause: DeathCause, **kwargs: Any) -> "Effects":
        self.death_marks.append(DeathMark(target_id=target_id, cause=cause, **kwargs))
        return self

    def event(
        self,
        event_type: EventType,
        message: str,
        data: Optional[dict[str, Any]] = None,
        recipient_ids: Optional[tuple[str, ...]] = None,
    ) -> "Effects":
        self.events.append(EventDraft(event_type, message, data or {}, recipient_ids))
        return self


def emit(
    game: Game,
    event_type: EventType,
    message: str,
    data: Optional[dict[str, Any]] = None,
    recipient_ids: Optional[tuple[str, ...]] = None,
) -> GameEvent:
    """Append an event with the next deterministic id (mutates game)."""
    game.event_seq += 1
    event = GameEvent(
        id=f"evt_{game.round}_{game.event_seq}",
        round=game.round,
        type=event_type,
        message=message,
        data=dict(data or {}),
        recipient_ids=recipient_ids,
    )
    game.events.append(event)
    return event


def apply_player_updates(game: Game, updates: dict[str, dict[str, Any]]) -> None:
    for player_id, changes in updates.items():
        player = game.get_player(player_id)
        if player is None:
            raise GameCorrupted(f"update for unknown player {player_id}")
        for name, value in changes.items():
            if name not in _PLAYER_FIELDS:
                raise GameCorrupted(f"unknown player field {name}")
            setattr(player, name, value)


def apply_flag_updates(game: Game, updates: dict[str, Any]) -> None:
    for name, value in updates.items():
        if name not in _FLAG_FIELDS:
            raise GameCorrupted(f"unknown round effect {name}")
        setattr(game.effects, name, value)


def apply_effects(game: Game, effects: Effects) -> None:
    """Commit everything except marks, protections and watches, which callers own."""
    apply_player_updates(game, effects.player_updates)
    apply_flag_updates(game, effects.flag_updates)
    if effects.lovers:
        game.lovers = list(effects.lovers)
    # One shot per pass: the first hunter to die keeps it
    if effects.hunter_pending and not game.pending_hunter_id:
        game.pending_hunter_id = effects.hunter_pending
    for draft in effects.events:
        emit(game, draft.type, draft.message, draft.data, draft.recipient_ids)
