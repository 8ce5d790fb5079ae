"""Pydantic request/response models for the API."""

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from pueblo.rules import MAX_PLAYERS, ROLE_SETTING_KEYS, ActionType, ChatChannel, Phase

# Validation constants (no magic numbers in validation)
MAX_PLAYER_NAME_LENGTH = 50
MAX_CHAT_LENGTH = 500
MIN_PHASE_SECONDS = 10
MAX_PHASE_SECONDS = 600
_ROLE_KEYS = frozenset(ROLE_SETTING_KEYS.values())


class SettingsBody(BaseModel):
    """Per-game settings at creation."""

    roles: dict[str, bool] = Field(default_factory=dict, description="Special role toggles, keyed by role id")
    werewolves: int | None = Field(default=None, ge=1, description="Werewolf count; default one per five players")
    jury_voting: bool = Field(default=True, description="Break a second tie with a jury of the dead")
    phase_duration_seconds: int = Field(default=60, ge=MIN_PHASE_SECONDS, le=MAX_PHASE_SECONDS)
    max_players: int = Field(default=MAX_PLAYERS, ge=3, le=MAX_PLAYERS)

    @field_validator("roles")
    @classmethod
    def known_roles(cls, v: dict[str, bool]) -> dict[str, bool]:
        unknown = set(v) - _ROLE_KEYS
        if unknown:
            raise ValueError(f"unknown role toggles: {sorted(unknown)}")
        return v


class GameCreateRequest(BaseModel):
    """Body for POST /games."""

    creator_id: str = Field(..., min_length=1)
    creator_name: str = Field(..., min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)
    settings: SettingsBody = Field(default_factory=SettingsBody)
    ai_players: list[str] = Field(default_factory=list, description="Names of AI players to seat right away")
    seed: int | None = None

    @model_validator(mode="after")
    def seats_fit(self) -> "GameCreateRequest":
        if 1 + len(self.ai_players) > self.settings.max_players:
            raise ValueError(f"{1 + len(self.ai_players)} players exceed max_players ({self.settings.max_players})")
        return self


class JoinRequest(BaseModel):
    player_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)
    is_ai: bool = False


class CreatorRequest(BaseModel):
    """Body for creator-only endpoints (start, reset)."""

    player_id: str


class NightActionRequest(BaseModel):
    player_id: str
    action_type: ActionType
    target_ids: list[str] = Field(..., min_length=1, max_length=2)


class VoteRequest(BaseModel):
    player_id: str
    target_id: str


class FightRequest(BaseModel):
    player_id: str
    target_ids: list[str] = Field(..., min_length=2, max_length=2)


class GhostMessageRequest(BaseModel):
    player_id: str
    target_id: str
    message: str = Field(..., min_length=1, max_length=MAX_CHAT_LENGTH)


class ChatRequest(BaseModel):
    player_id: str
    text: str = Field(..., min_length=1, max_length=MAX_CHAT_LENGTH)
    channel: ChatChannel = ChatChannel.PUBLIC


class AdvanceRequest(BaseModel):
    """Body for POST /games/{id}/advance. expected_phase guards against stale timers."""

    expected_phase: Phase | None = None


class MasterActionRequest(BaseModel):
    player_id: str = Field(..., description="Must be the game creator")
    action_id: str = Field(..., pattern="^(master_kill|reveal_role)$")
    target_id: str


class PlayerPublic(BaseModel):
    """Player as shown to a viewer: role only when that viewer may know it."""

    id: str
    name: str
    is_ai: bool
    is_alive: bool
    voted_for: str | None = None
    role: str | None = Field(default=None, description="Only set when visible to the viewer")


class EventPublic(BaseModel):
    id: str
    round: int
    type: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    private: bool = False


class ChatMessagePublic(BaseModel):
    round: int
    sender_id: str
    sender_name: str
    channel: str
    text: str


class GameStateResponse(BaseModel):
    """Public game state for GET /games/{id}."""

    game_id: str
    phase: str
    round: int
    phase_ends_at: float | None = None
    creator_id: str | None = None
    players: list[PlayerPublic]
    tied_player_ids: list[str] = Field(default_factory=list)
    pending_hunter_id: str | None = None
    my_role: str | None = None
    my_objective_id: str | None = None
    events: list[EventPublic] = Field(default_factory=list)
    chat: list[ChatMessagePublic] = Field(default_factory=list)
    winner_code: str | None = None
    winner_ids: list[str] = Field(default_factory=list)
