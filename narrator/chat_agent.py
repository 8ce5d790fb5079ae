"""Pydantic AI agent proposing chat lines for AI players."""

from pydantic_ai import Agent

from narrator.models import ChatProposal
from narrator.prompts import RULES_SUMMARY


# Model is passed at run_sync() so we use defer_model_check.
_chat_agent = Agent(
    model=None,
    defer_model_check=True,
    output_type=ChatProposal,
    system_prompt=[
        RULES_SUMMARY,
        "You are a player in the game. Stay in character. "
        "Only set should_send to true if you have a compelling reason to speak.",
    ],
)


def get_chat_agent() -> Agent[None, ChatProposal]:
    return _chat_agent
