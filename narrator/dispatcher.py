"""Fire-and-forget chat for AI players, run after a game transition is committed.

Nothing here can change rules state: proposals go through post_chat_message like any
other chat line, and every failure is logged and dropped.
"""

import functools
import logging
import random
from typing import Any

from api import game_store
from narrator.chat_agent import get_chat_agent
from narrator.llm_config import get_default_model, narrator_enabled
from narrator.models import ChatProposal
from narrator.prompts import build_perspective_context, chat_instructions
from pueblo.engine import post_chat_message
from pueblo.errors import ActionRejected
from pueblo.rules import ChatChannel
from pueblo.state import Game
from pueblo.views import channel_members, perspective

logger = logging.getLogger(__name__)

# Chance an AI player reacts to an event; much higher when the event names them
REACT_CHANCE = 0.35
ACCUSED_REACT_CHANCE = 0.95


def propose_chat(
    game: Game,
    player_id: str,
    trigger: str,
    channel: ChatChannel = ChatChannel.PUBLIC,
    model: Any = None,
) -> ChatProposal:
    """Ask the agent for one chat line from player_id's point of view. Never raises."""
    player = game.get_player(player_id)
    if player is None:
        return ChatProposal()
    ctx = build_perspective_context(perspective(game, player_id))
    inst = chat_instructions(
        player.name,
        player.role.value if player.role else "villager",
        trigger,
        channel,
    )
    try:
        result = get_chat_agent().run_sync(
            f"{ctx}\n\n{inst}",
            model=model or get_default_model(),
        )
        return result.output or ChatProposal()
    except Exception as e:
        logger.warning("Chat proposal failed for %s: %s", player_id, e)
        return ChatProposal()


def _channels_for(game: Game) -> list[ChatChannel]:
    channels = [ChatChannel.PUBLIC]
    for channel in (ChatChannel.WOLVES, ChatChannel.TWINS, ChatChannel.LOVERS):
        if len(channel_members(game, channel)) > 1:
            channels.append(channel)
    if game.get_dead_players():
        channels.append(ChatChannel.GHOST)
    return channels


def dispatch_event_chat(game_id: str, event_id: str, model: Any = None) -> list[tuple[str, ChatChannel]]:
    """Let AI players react to a public event. Returns the (player_id, channel) lines posted."""
    if not narrator_enabled():
        logger.debug("narrator disabled, skipping %s/%s", game_id, event_id)
        return []
    game = game_store.get(game_id)
    if game is None or game.finished:
        return []
    event = next((e for e in game.events if e.id == event_id), None)
    if event is None or event.recipient_ids is not None:
        return []

    rng = random.Random(f"{game_id}:{event_id}")
    posted: list[tuple[str, ChatChannel]] = []
    for channel in _channels_for(game):
        members = channel_members(game, channel)
        for player in game.players:
            if not player.is_ai or player.id not in members:
                continue
            chance = ACCUSED_REACT_CHANCE if player.name in event.message else REACT_CHANCE
            if rng.random() >= chance:
                continue
            proposal = propose_chat(game, player.id, event.message, channel, model=model)
            if not proposal.should_send or not proposal.message.strip():
                continue
            try:
                game_store.update(
                    game_id,
                    functools.partial(post_chat_message, sender_id=player.id, text=proposal.message, channel=channel),
                )
            except (ActionRejected, KeyError) as e:
                logger.debug("chat from %s dropped: %s", player.id, e)
                continue
            posted.append((player.id, channel))
    return posted
