"""Narrator: Pydantic AI chat for AI players in El Pueblo."""

from narrator.dispatcher import dispatch_event_chat, propose_chat
from narrator.models import ChatProposal

__all__ = [
    "dispatch_event_chat",
    "propose_chat",
    "ChatProposal",
]
