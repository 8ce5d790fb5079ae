"""Rules engine for El Pueblo."""

from pueblo.engine import (
    create_game,
    join_game,
    generate_roles,
    start_game,
    reset_game,
    submit_night_action,
    submit_vote,
    submit_jury_vote,
    submit_hunter_shot,
    provoke_fight,
    send_ghost_message,
    post_chat_message,
    advance_phase,
    everyone_has_acted,
    tally_votes,
    is_game_over,
    get_winner,
)
from pueblo.errors import ActionRejected, GameCorrupted
from pueblo.master import execute_master_action
from pueblo.rules import ActionType, ChatChannel, DeathCause, EventType, Phase, Role, Team
from pueblo.state import Game, GameEvent, GameSettings, NightAction, Player
from pueblo.victory import check_game_over

__all__ = [
    "create_game",
    "join_game",
    "generate_roles",
    "start_game",
    "reset_game",
    "submit_night_action",
    "submit_vote",
    "submit_jury_vote",
    "submit_hunter_shot",
    "provoke_fight",
    "send_ghost_message",
    "post_chat_message",
    "advance_phase",
    "everyone_has_acted",
    "tally_votes",
    "is_game_over",
    "get_winner",
    "execute_master_action",
    "check_game_over",
    "ActionRejected",
    "GameCorrupted",
    "ActionType",
    "ChatChannel",
    "DeathCause",
    "EventType",
    "Phase",
    "Role",
    "Team",
    "Game",
    "GameEvent",
    "GameSettings",
    "NightAction",
    "Player",
]
