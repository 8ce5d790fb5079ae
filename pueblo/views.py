"""Viewer-filtered projections of a game: what one player is allowed to see."""

from dataclasses import dataclass
from typing import Any, Optional

from pueblo.rules import CHAT_WINDOW_SIZE, ChatChannel, Phase, Role, Team
from pueblo.state import ChatMessage, Game, GameEvent, Player


@dataclass(frozen=True)
class PublicPlayer:
    """Player as shown to a viewer; role only when the viewer may know it."""

    id: str
    name: str
    is_ai: bool
    is_alive: bool
    voted_for: Optional[str]
    role: Optional[Role] = None


def can_see_role(game: Game, player: Player, viewer_id: Optional[str]) -> bool:
    if game.finished or not player.is_alive or player.prince_revealed:
        return True
    if viewer_id is None:
        return False
    if player.id == viewer_id:
        return True
    viewer = game.get_player(viewer_id)
    if viewer is None:
        return False
    if viewer.team == Team.WOLVES and player.team == Team.WOLVES and viewer.is_alive:
        return True
    return viewer_id in game.twins and player.id in game.twins


def public_players(game: Game, viewer_id: Optional[str] = None) -> list[PublicPlayer]:
    return [
        PublicPlayer(
            id=p.id,
            name=p.name,
            is_ai=p.is_ai,
            is_alive=p.is_alive,
            voted_for=p.voted_for,
            role=p.role if can_see_role(game, p, viewer_id) else None,
        )
        for p in game.players
    ]


def visible_events(game: Game, viewer_id: Optional[str] = None) -> list[GameEvent]:
    """Global events plus those addressed to the viewer."""
    if game.finished:
        return list(game.events)
    return [e for e in game.events if e.visible_to(viewer_id)]


def channel_members(game: Game, channel: ChatChannel) -> set[str]:
    """Player ids allowed to post to and read a chat channel."""
    alive = game.get_alive_players()
    if channel == ChatChannel.PUBLIC:
        if game.phase == Phase.WAITING:
            return {p.id for p in game.players}
        return {p.id for p in alive}
    if channel == ChatChannel.GHOST:
        return {p.id for p in game.get_dead_players()}
    if channel == ChatChannel.WOLVES:
        return {p.id for p in alive if p.team == Team.WOLVES}
    if channel == ChatChannel.LOVERS:
        return {p.id for p in alive if p.id in game.lovers}
    if channel == ChatChannel.TWINS:
        return {p.id for p in alive if p.id in game.twins}
    return set()


def visible_chat(game: Game, viewer_id: Optional[str] = None) -> list[ChatMessage]:
    if game.finished:
        return list(game.chat_messages)
    viewer = game.get_player(viewer_id)
    readable = {ChatChannel.PUBLIC}
    if viewer is not None:
        readable |= {c for c in ChatChannel if viewer.id in channel_members(game, c)}
        if not viewer.is_alive:
            # the dead watch every channel
            readable = set(ChatChannel)
    return [m for m in game.chat_messages if m.channel in readable]


def perspective(game: Game, viewer_id: str) -> dict[str, Any]:
    """Sanitized snapshot for one player, safe to hand to the narrator."""
    viewer = game.get_player(viewer_id)
    return {
        "game_id": game.id,
        "round": game.round,
        "phase": game.phase.value,
        "me": {
            "id": viewer.id,
            "name": viewer.name,
            "role": viewer.role.value if viewer.role else None,
            "team": viewer.team.value,
            "is_alive": viewer.is_alive,
        } if viewer else None,
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "is_alive": p.is_alive,
                "role": p.role.value if p.role else None,
            }
            for p in public_players(game, viewer_id)
        ],
        "events": [e.message for e in visible_events(game, viewer_id)[-15:]],
        "chat": [
            f"[{m.channel.value}] {m.sender_name}: {m.text}"
            for m in visible_chat(game, viewer_id)[-CHAT_WINDOW_SIZE:]
        ],
    }


def public_view(game: Game, viewer_id: Optional[str] = None) -> dict[str, Any]:
    """Everything one viewer may see of a game, as plain data."""
    viewer = game.get_player(viewer_id)
    outcome = game.outcome
    return {
        "game_id": game.id,
        "phase": game.phase.value,
        "round": game.round,
        "phase_ends_at": game.phase_ends_at,
        "creator_id": game.creator_id,
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "is_ai": p.is_ai,
                "is_alive": p.is_alive,
                "voted_for": p.voted_for,
                "role": p.role.value if p.role else None,
            }
            for p in public_players(game, viewer_id)
        ],
        "tied_player_ids": list(game.tied_player_ids),
        "pending_hunter_id": game.pending_hunter_id,
        "my_role": viewer.role.value if viewer and viewer.role else None,
        "my_objective_id": viewer.secret_objective_id if viewer else None,
        "events": [
            {
                "id": e.id,
                "round": e.round,
                "type": e.type.value,
                "message": e.message,
                "data": e.data,
                "private": e.recipient_ids is not None,
            }
            for e in visible_events(game, viewer_id)
        ],
        "chat": [
            {
                "round": m.round,
                "sender_id": m.sender_id,
                "sender_name": m.sender_name,
                "channel": m.channel.value,
                "text": m.text,
            }
            for m in visible_chat(game, viewer_id)
        ],
        "winner_code": outcome.winner_code if outcome else None,
        "winner_ids": list(outcome.winner_ids) if outcome else [],
    }
