"""Game state types for El Pueblo."""

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pueblo.rules import (
    ActionType,
    ChatChannel,
    EventType,
    MAX_PLAYERS,
    PHASE_DURATION_SECONDS,
    Phase,
    Role,
    ROLE_SETTING_KEYS,
    Team,
)


@dataclass
class Player:
    """A player in the game. Private record; clients only see views.PublicPlayer."""

    id: str
    name: str
    is_ai: bool = False
    role: Optional[Role] = None
    team: Team = Team.VILLAGE
    is_alive: bool = True
    voted_for: Optional[str] = None
    secret_objective_id: Optional[str] = None
    # Per-role counters and flags
    last_healed_round: Optional[int] = None
    last_healed_target_id: Optional[str] = None
    last_guarded_round: Optional[int] = None
    last_guarded_target_id: Optional[str] = None
    poison_used_round: Optional[int] = None
    save_used_round: Optional[int] = None
    priest_self_bless_used: bool = False
    guardian_self_protects: int = 0
    prince_revealed: bool = False
    bite_count: int = 0
    is_cult_member: bool = False
    is_lover: bool = False
    linked_target_id: Optional[str] = None  # virginia woolf fatal link
    siren_target_id: Optional[str] = None
    shapeshifter_target_id: Optional[str] = None
    executioner_target_id: Optional[str] = None
    banshee_screams: dict[int, str] = field(default_factory=dict)  # round -> predicted id
    banshee_points: int = 0
    lookout_used: bool = False
    resurrection_used: bool = False
    troublemaker_used: bool = False
    ghost_message_sent: bool = False


@dataclass(frozen=True)
class NightAction:
    """One accepted night submission. Targets are a typed tuple, never a delimited string."""

    round: int
    player_id: str
    action_type: ActionType
    target_ids: tuple[str, ...]
    submitted_at: float = 0.0

    @property
    def target_id(self) -> Optional[str]:
        """First target, for single-target actions."""
        return self.target_ids[0] if self.target_ids else None


@dataclass(frozen=True)
class GameEvent:
    """Immutable log entry. recipient_ids None means everyone can see it."""

    id: str
    round: int
    type: EventType
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    recipient_ids: Optional[tuple[str, ...]] = None
    created_at: float = field(default_factory=time.time)

    def visible_to(self, player_id: Optional[str]) -> bool:
        if self.recipient_ids is None:
            return True
        return player_id is not None and player_id in self.recipient_ids


@dataclass(frozen=True)
class VoteRecord:
    """One vote cast during day, tiebreak or jury voting."""

    round: int
    phase: Phase
    voter_id: str
    target_id: str


@dataclass(frozen=True)
class ChatMessage:
    """One chat line."""

    round: int
    sender_id: str
    sender_name: str
    text: str
    channel: ChatChannel = ChatChannel.PUBLIC
    created_at: float = field(default_factory=time.time)


@dataclass
class RoundEffects:
    """Game-level flags set by role behaviors and read by later resolution steps.

    Producer -> consumer for each field:

    - seer_died: seer on_death -> seer apprentice night action.
    - fairies_found: seeker fairy find -> fairy kill, fairy pair win.
    - fairy_kill_used: seeker fairy kill -> fairy kill (once), fairy pair win.
    - witch_found_seer: witch hunt -> wolves chat context, public view.
    - wolf_cub_revenge_round: wolf cub on_death (round + 1) -> werewolf kill arity.
    - leper_blocked_round: leper killed by wolves (round + 1) -> werewolf kill voided.
    - silenced_player_id / silenced_round: silencer -> public chat of that day.
    - exiled_player_id / exiled_round: elder leader -> night pipeline skips the actor.
    - vampire_kills: vampire bite threshold deaths -> vampire win.
    - boat: fisherman catch -> fisherman win.
    """

    seer_died: bool = False
    fairies_found: bool = False
    fairy_kill_used: bool = False
    witch_found_seer: bool = False
    wolf_cub_revenge_round: Optional[int] = None
    leper_blocked_round: Optional[int] = None
    silenced_player_id: Optional[str] = None
    silenced_round: Optional[int] = None
    exiled_player_id: Optional[str] = None
    exiled_round: Optional[int] = None
    vampire_kills: int = 0
    boat: list[str] = field(default_factory=list)


@dataclass
class GameSettings:
    """Per-game settings: role toggles plus numeric limits."""

    roles: dict[str, bool] = field(default_factory=dict)
    werewolves: Optional[int] = None  # None -> one per five players
    jury_voting: bool = True
    phase_duration_seconds: int = PHASE_DURATION_SECONDS
    max_players: int = MAX_PLAYERS

    def is_enabled(self, role: Role) -> bool:
        key = ROLE_SETTING_KEYS.get(role)
        if key is None:
            return True
        return bool(self.roles.get(key, False))


@dataclass(frozen=True)
class GameOutcome:
    """Result of a finished game."""

    winner_code: str
    message: str
    winner_ids: tuple[str, ...] = ()


@dataclass
class Game:
    """Full game state."""

    id: str
    phase: Phase = Phase.WAITING
    round: int = 0
    players: list[Player] = field(default_factory=list)
    settings: GameSettings = field(default_factory=GameSettings)
    events: list[GameEvent] = field(default_factory=list)
    night_actions: list[NightAction] = field(default_factory=list)
    chat_messages: list[ChatMessage] = field(default_factory=list)
    effects: RoundEffects = field(default_factory=RoundEffects)
    lovers: list[str] = field(default_factory=list)
    twins: list[str] = field(default_factory=list)
    phase_ends_at: Optional[float] = None
    tied_player_ids: list[str] = field(default_factory=list)
    jury_votes: dict[str, str] = field(default_factory=dict)  # dead voter -> target
    vote_history: list[VoteRecord] = field(default_factory=list)
    pending_hunter_id: Optional[str] = None
    hunter_return_phase: Optional[Phase] = None
    hunter_resumes: bool = False  # shot interrupted hunter_return_phase itself
    outcome: Optional[GameOutcome] = None
    creator_id: Optional[str] = None
    seed: Optional[int] = None
    event_seq: int = 0

    @property
    def finished(self) -> bool:
        return self.phase == Phase.FINISHED

    def get_alive_players(self) -> list[Player]:
        """Return list of alive players."""
        return [p for p in self.players if p.is_alive]

    def get_dead_players(self) -> list[Player]:
        return [p for p in self.players if not p.is_alive]

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        """Return player by id or None."""
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def get_players_by_role(self, role: Role) -> list[Player]:
        """Return alive players with the given role."""
        return [p for p in self.players if p.is_alive and p.role == role]

    def join_index(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        return len(self.players)

    def current_night_actions(self) -> list[NightAction]:
        return [a for a in self.night_actions if a.round == self.round]

    def has_acted(self, player_id: str, round_: Optional[int] = None) -> bool:
        r = self.round if round_ is None else round_
        return any(a.player_id == player_id and a.round == r for a in self.night_actions)
