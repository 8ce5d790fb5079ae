"""Pydantic models for structured narrator outputs."""

from pydantic import BaseModel, Field


class ChatProposal(BaseModel):
    """One proposed chat line for an AI player."""

    message: str = Field(
        default="",
        description="Short in-character chat message (1-2 sentences). Never state your secret role outright.",
    )
    should_send: bool = Field(
        default=False,
        description="True only if you have a compelling in-character reason to speak. Do not answer every event.",
    )
