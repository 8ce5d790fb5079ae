"""Game engine: pure state transitions, no I/O.

Every public function takes a Game and returns a new Game; the input is never
mutated. Player submissions that break the rules raise ActionRejected. Phase
advances that arrive early or for a stale phase return the game unchanged.
"""

import copy
import logging
import random
import time
from collections import Counter
from typing import Iterable, Optional

from pueblo.deaths import DeathReport, resolve_deaths
from pueblo.effects import DeathMark, emit
from pueblo.errors import ActionRejected
from pueblo.night import resolve_night
from pueblo.objectives import assign_objectives
from pueblo.roles import available_actions, default_team, validate_night_action
from pueblo.rules import (
    ActionType,
    ChatChannel,
    DeathCause,
    EventType,
    MIN_PLAYERS,
    PAIRED_ROLES,
    PLAYERS_PER_WOLF,
    Phase,
    Role,
    Team,
)
from pueblo.state import ChatMessage, Game, GameOutcome, GameSettings, NightAction, Player, VoteRecord
from pueblo.victory import check_game_over
from pueblo.views import channel_members

logger = logging.getLogger(__name__)

MAX_CHAT_LENGTH = 500
MAX_NAME_LENGTH = 50

_VOTING_PHASES = (Phase.DAY, Phase.TIEBREAK)

_PHASE_MESSAGES = {
    Phase.ROLE_REVEAL: "Roles have been dealt. Look at your card.",
    Phase.NIGHT: "Night {round} falls. The village sleeps.",
    Phase.DAY: "Day {round} begins. The village wakes up.",
    Phase.TIEBREAK: "The vote is tied. Vote again between the tied players.",
    Phase.JURY_VOTING: "The dead will decide. The jury is voting.",
    Phase.HUNTER_SHOT: "The hunter takes aim one last time.",
}


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def _rng(game: Game, salt: int = 0) -> random.Random:
    return random.Random((game.seed or 0) + game.round * 1000 + salt)


def _role_name(player: Player) -> str:
    return player.role.value if player.role else "unknown"


# --- lobby -----------------------------------------------------------------------


def create_game(
    game_id: str,
    creator_id: str,
    creator_name: str,
    settings: Optional[GameSettings] = None,
    seed: Optional[int] = None,
) -> Game:
    """Create a game in the lobby with its creator as the first player."""
    name = creator_name.strip()[:MAX_NAME_LENGTH]
    if not name:
        raise ActionRejected("creator name is required")
    return Game(
        id=game_id,
        settings=settings or GameSettings(),
        players=[Player(id=creator_id, name=name)],
        creator_id=creator_id,
        seed=seed,
    )


def join_game(game: Game, player_id: str, name: str, is_ai: bool = False) -> Game:
    """Add a player to the lobby. Joining twice is a no-op."""
    if game.phase != Phase.WAITING:
        raise ActionRejected("game already started")
    if game.get_player(player_id) is not None:
        return game
    name = name.strip()[:MAX_NAME_LENGTH]
    if not name:
        raise ActionRejected("name is required")
    if len(game.players) >= game.settings.max_players:
        raise ActionRejected("game is full")
    if any(p.name.lower() == name.lower() for p in game.players):
        raise ActionRejected(f"name {name} is taken")
    game = copy.deepcopy(game)
    game.players.append(Player(id=player_id, name=name, is_ai=is_ai))
    return game


def generate_roles(player_count: int, settings: GameSettings, rng: random.Random) -> list[Role]:
    """Deal roles: wolves first, then enabled specials in random order, villagers fill the rest."""
    wolves = settings.werewolves or max(1, player_count // PLAYERS_PER_WOLF)
    wolves = max(1, min(wolves, player_count - 1))
    roles: list[Role] = [Role.WEREWOLF] * wolves
    specials = [r for r in Role if r not in (Role.VILLAGER, Role.WEREWOLF) and settings.is_enabled(r)]
    rng.shuffle(specials)
    for role in specials:
        size = 2 if role in PAIRED_ROLES else 1
        if len(roles) + size <= player_count:
            roles.extend([role] * size)
    roles.extend([Role.VILLAGER] * (player_count - len(roles)))
    rng.shuffle(roles)
    return roles


def start_game(game: Game, now: Optional[float] = None, roles: Optional[list[Role]] = None) -> Game:
    """Deal roles exactly once and move to role reveal.

    roles overrides the random deal (join order); used by tests and fixed scenarios.
    """
    if game.phase != Phase.WAITING:
        raise ActionRejected("game already started")
    if len(game.players) < MIN_PLAYERS:
        raise ActionRejected(f"at least {MIN_PLAYERS} players required")
    if roles is not None and len(roles) != len(game.players):
        raise ValueError("roles and players must have same length")

    game = copy.deepcopy(game)
    rng = random.Random(game.seed)
    dealt = roles if roles is not None else generate_roles(len(game.players), game.settings, rng)
    for player, role in zip(game.players, dealt):
        player.role = Role(role)
        player.team = default_team(player.role)
        player.is_cult_member = player.role == Role.CULT_LEADER
    game.twins = [p.id for p in game.players if p.role == Role.TWIN][:2]

    for executioner in (p for p in game.players if p.role == Role.EXECUTIONER):
        candidates = [p.id for p in game.players if p.team == Team.VILLAGE and p.id != executioner.id]
        if candidates:
            executioner.executioner_target_id = rng.choice(candidates)
    assign_objectives(game, rng)

    emit(game, EventType.GAME_START, f"The game has begun with {len(game.players)} players.")
    for player in game.players:
        emit(
            game,
            EventType.SPECIAL,
            f"Your role is: {_role_name(player)}.",
            {"role": _role_name(player), "objective_id": player.secret_objective_id},
            recipient_ids=(player.id,),
        )
    if len(game.twins) == 2:
        a, b = (game.get_player(pid) for pid in game.twins)
        emit(game, EventType.SPECIAL, f"{a.name} and {b.name} are twins.", {}, recipient_ids=tuple(game.twins))
    for executioner in (p for p in game.players if p.executioner_target_id):
        target = game.get_player(executioner.executioner_target_id)
        emit(
            game,
            EventType.SPECIAL,
            f"Your target is {target.name}. Get the village to lynch them.",
            {"target_id": target.id},
            recipient_ids=(executioner.id,),
        )
    _enter_phase(game, Phase.ROLE_REVEAL, _now(now))
    logger.info("game %s started with %d players", game.id, len(game.players))
    return game


def reset_game(game: Game) -> Game:
    """Back to the lobby with the same settings, keeping only human players."""
    if game.phase not in (Phase.WAITING, Phase.FINISHED):
        raise ActionRejected("only a finished game can be reset")
    humans = [Player(id=p.id, name=p.name) for p in game.players if not p.is_ai]
    return Game(
        id=game.id,
        settings=copy.deepcopy(game.settings),
        players=humans,
        creator_id=game.creator_id,
        seed=game.seed,
    )


# --- phase transitions -------------------------------------------------------------


def _enter_phase(game: Game, phase: Phase, now: float) -> None:
    if phase == Phase.NIGHT:
        game.round += 1
    if phase in (Phase.NIGHT, Phase.DAY, Phase.TIEBREAK):
        for p in game.players:
            p.voted_for = None
    if phase in (Phase.NIGHT, Phase.DAY):
        game.tied_player_ids = []
    if phase == Phase.JURY_VOTING:
        game.jury_votes = {}
    game.phase = phase
    game.phase_ends_at = now + game.settings.phase_duration_seconds
    emit(
        game,
        EventType.PHASE_CHANGE,
        _PHASE_MESSAGES[phase].format(round=game.round),
        {"phase": phase.value, "phase_ends_at": game.phase_ends_at},
    )
    logger.info("game %s: round %d phase %s", game.id, game.round, phase.value)


def _finish(game: Game, outcome: GameOutcome) -> None:
    game.outcome = outcome
    game.phase = Phase.FINISHED
    game.phase_ends_at = None
    game.pending_hunter_id = None
    game.hunter_resumes = False
    emit(
        game,
        EventType.GAME_OVER,
        outcome.message,
        {"winner_code": outcome.winner_code, "winner_ids": list(outcome.winner_ids)},
    )
    logger.info("game %s finished: %s", game.id, outcome.winner_code)


def settle(game: Game, next_phase: Phase, now: float, lynched_id: Optional[str] = None) -> None:
    """After any deaths: win check, then a pending hunter shot, then the next phase. Mutates game."""
    outcome = check_game_over(game, lynched_id)
    if outcome is not None:
        _finish(game, outcome)
        return
    if game.pending_hunter_id:
        if game.phase != Phase.HUNTER_SHOT:
            game.hunter_return_phase = next_phase
            game.hunter_resumes = next_phase == game.phase
        _enter_phase(game, Phase.HUNTER_SHOT, now)
        return
    resume = game.phase == Phase.HUNTER_SHOT and game.hunter_resumes
    game.hunter_return_phase = None
    game.hunter_resumes = False
    if resume:
        _resume_phase(game, next_phase, now)
    elif next_phase != game.phase:
        _enter_phase(game, next_phase, now)


def _resume_phase(game: Game, phase: Phase, now: float) -> None:
    """Go back to a phase the hunter interrupted: same round, votes and actions kept."""
    game.phase = phase
    game.phase_ends_at = now + game.settings.phase_duration_seconds
    emit(
        game,
        EventType.PHASE_CHANGE,
        f"The hunter's shot rings out. The {phase.value.replace('_', ' ')} goes on.",
        {"phase": phase.value, "phase_ends_at": game.phase_ends_at, "resumed": True},
    )
    logger.info("game %s: round %d phase %s resumed", game.id, game.round, phase.value)


def everyone_has_acted(game: Game) -> bool:
    """True when nobody is left to act in the current phase (early advance trigger)."""
    if game.phase == Phase.NIGHT:
        return all(
            game.has_acted(p.id) for p in game.get_alive_players() if available_actions(game, p)
        )
    if game.phase in _VOTING_PHASES:
        return all(p.voted_for for p in game.get_alive_players())
    if game.phase == Phase.JURY_VOTING:
        return all(p.id in game.jury_votes for p in game.get_dead_players())
    return False


def advance_phase(game: Game, now: Optional[float] = None, expected_phase: Optional[Phase] = None) -> Game:
    """Advance past the current phase once its deadline has elapsed.

    Calls for a phase that has already moved on, calls before the deadline
    (unless everyone has acted) and calls on a finished game are silent no-ops.
    """
    now = _now(now)
    if game.finished or game.phase == Phase.WAITING:
        logger.debug("game %s: advance ignored in phase %s", game.id, game.phase.value)
        return game
    if expected_phase is not None and Phase(expected_phase) != game.phase:
        logger.debug("game %s: stale advance for %s, now %s", game.id, expected_phase, game.phase.value)
        return game
    if game.phase_ends_at is not None and now < game.phase_ends_at and not everyone_has_acted(game):
        logger.debug("game %s: advance before deadline ignored", game.id)
        return game

    game = copy.deepcopy(game)
    phase = game.phase
    if phase == Phase.ROLE_REVEAL:
        _enter_phase(game, Phase.NIGHT, now)
    elif phase == Phase.NIGHT:
        resolve_night(game)
        settle(game, Phase.DAY, now)
    elif phase == Phase.DAY:
        _resolve_day_vote(game, now)
    elif phase == Phase.TIEBREAK:
        _resolve_tiebreak(game, now)
    elif phase == Phase.JURY_VOTING:
        _resolve_jury(game, now)
    elif phase == Phase.HUNTER_SHOT:
        hunter = game.get_player(game.pending_hunter_id)
        logger.warning("game %s: hunter %s did not shoot in time", game.id, game.pending_hunter_id)
        game.pending_hunter_id = None
        emit(
            game,
            EventType.HUNTER_SHOT,
            f"{hunter.name if hunter else 'The hunter'} lowered their weapon without firing.",
            {"hunter_id": hunter.id if hunter else None, "target_id": None},
        )
        settle(game, game.hunter_return_phase or Phase.DAY, now)
    return game


# --- votes -----------------------------------------------------------------------


def tally_votes(game: Game, candidates: Optional[Iterable[str]] = None) -> Counter:
    """Count living players' votes. A charmed player's vote follows the river siren's."""
    allowed = set(candidates) if candidates is not None else None
    votes = {p.id: p.voted_for for p in game.get_alive_players() if p.voted_for}
    for siren in game.get_players_by_role(Role.RIVER_SIREN):
        charmed = game.get_player(siren.siren_target_id)
        if charmed is not None and charmed.is_alive and siren.voted_for:
            votes[charmed.id] = siren.voted_for
    counts: Counter = Counter()
    for target_id in votes.values():
        target = game.get_player(target_id)
        if target is None or not target.is_alive:
            continue
        if allowed is not None and target_id not in allowed:
            continue
        counts[target_id] += 1
    return counts


def _leaders(game: Game, counts: Counter) -> list[str]:
    if not counts:
        return []
    top = max(counts.values())
    return sorted((pid for pid, n in counts.items() if n == top), key=game.join_index)


def _names(game: Game, ids: Iterable[str]) -> str:
    return " and ".join(game.get_player(pid).name for pid in ids)


def _lynch(game: Game, target_id: str, counts: Counter, now: float) -> DeathReport:
    target = game.get_player(target_id)
    report = resolve_deaths(game, [DeathMark(
        target_id=target_id,
        cause=DeathCause.VOTE_RESULT,
        message=f"The village has lynched {target.name}. Their role was: {_role_name(target)}.",
    )])
    if target_id in report.revealed_ids:
        emit(
            game,
            EventType.VOTE_RESULT,
            f"{target.name} was about to be lynched but revealed themselves as the {_role_name(target)}. "
            "Nobody dies today.",
            {"lynched_player_id": None, "revealed_player_id": target_id, "votes": dict(counts)},
        )
        settle(game, Phase.NIGHT, now)
        return report
    emit(
        game,
        EventType.VOTE_RESULT,
        f"The village has decided. {target.name} is lynched.",
        {"lynched_player_id": target_id, "killed_player_ids": report.killed_ids, "votes": dict(counts)},
    )
    settle(game, Phase.NIGHT, now, lynched_id=target_id)
    return report


def _nobody_lynched(game: Game, message: str, counts: Counter, now: float) -> None:
    emit(game, EventType.VOTE_RESULT, message, {"lynched_player_id": None, "votes": dict(counts)})
    settle(game, Phase.NIGHT, now)


def _resolve_day_vote(game: Game, now: float) -> None:
    counts = tally_votes(game)
    leaders = _leaders(game, counts)
    if not leaders:
        _nobody_lynched(game, "The village could not decide. Nobody was lynched.", counts, now)
    elif len(leaders) == 1:
        _lynch(game, leaders[0], counts, now)
    else:
        game.tied_player_ids = leaders
        emit(
            game,
            EventType.VOTE_RESULT,
            f"The vote is tied between {_names(game, leaders)}. The village must vote again.",
            {"lynched_player_id": None, "tied_player_ids": leaders, "votes": dict(counts)},
        )
        settle(game, Phase.TIEBREAK, now)


def _resolve_tiebreak(game: Game, now: float) -> None:
    counts = tally_votes(game, game.tied_player_ids)
    leaders = _leaders(game, counts)
    if len(leaders) == 1:
        _lynch(game, leaders[0], counts, now)
        return
    # no votes at all keeps the whole surviving tie
    leaders = leaders or [pid for pid in game.tied_player_ids if game.get_player(pid).is_alive]
    game.tied_player_ids = leaders
    if len(leaders) > 1 and game.settings.jury_voting and game.get_dead_players():
        emit(
            game,
            EventType.VOTE_RESULT,
            f"Another tie between {_names(game, leaders)}. The jury of the dead will decide.",
            {"lynched_player_id": None, "tied_player_ids": leaders, "votes": dict(counts)},
        )
        settle(game, Phase.JURY_VOTING, now)
        return
    _nobody_lynched(game, "Another tie. The village forgives everyone today.", counts, now)


def _resolve_jury(game: Game, now: float) -> None:
    tied = {pid for pid in game.tied_player_ids if game.get_player(pid).is_alive}
    counts = Counter(t for t in game.jury_votes.values() if t in tied)
    leaders = _leaders(game, counts)
    if not leaders:
        _nobody_lynched(game, "The jury stayed silent. Nobody was lynched.", counts, now)
        return
    chosen = leaders[0] if len(leaders) == 1 else _rng(game, salt=7).choice(leaders)
    _lynch(game, chosen, counts, now)


# --- submissions -----------------------------------------------------------------


def _require_player(game: Game, player_id: str) -> Player:
    player = game.get_player(player_id)
    if player is None:
        raise ActionRejected(f"unknown player {player_id}")
    return player


def _require_running(game: Game) -> None:
    if game.phase in (Phase.WAITING, Phase.FINISHED):
        raise ActionRejected(f"game is not running (phase {game.phase.value})")


def submit_night_action(
    game: Game,
    player_id: str,
    action_type: ActionType | str,
    target_ids: Iterable[str],
    now: Optional[float] = None,
) -> Game:
    """Record one night action. A second submission in the same round is a no-op."""
    if game.phase != Phase.NIGHT:
        raise ActionRejected("night actions are only accepted at night")
    player = _require_player(game, player_id)
    if not player.is_alive:
        raise ActionRejected("dead players cannot act")
    if game.has_acted(player_id):
        logger.debug("game %s: duplicate night action from %s ignored", game.id, player_id)
        return game
    try:
        kind = ActionType(action_type)
    except ValueError as e:
        raise ActionRejected(f"unknown action type {action_type}") from e
    action = NightAction(
        round=game.round,
        player_id=player_id,
        action_type=kind,
        target_ids=tuple(target_ids),
        submitted_at=_now(now),
    )
    validate_night_action(game, player, action)
    game = copy.deepcopy(game)
    game.night_actions.append(action)
    return game


def submit_vote(game: Game, voter_id: str, target_id: str) -> Game:
    """Record a day or tiebreak vote. First vote wins; repeats are no-ops."""
    if game.phase not in _VOTING_PHASES:
        raise ActionRejected("votes are only accepted by day")
    voter = _require_player(game, voter_id)
    target = _require_player(game, target_id)
    if not voter.is_alive:
        raise ActionRejected("dead players cannot vote")
    if not target.is_alive or target.id == voter.id:
        raise ActionRejected("vote for another living player")
    if game.phase == Phase.TIEBREAK and target_id not in game.tied_player_ids:
        raise ActionRejected("tiebreak votes must go to a tied player")
    if voter.voted_for:
        logger.debug("game %s: duplicate vote from %s ignored", game.id, voter_id)
        return game
    game = copy.deepcopy(game)
    game.get_player(voter_id).voted_for = target_id
    game.vote_history.append(VoteRecord(round=game.round, phase=game.phase, voter_id=voter_id, target_id=target_id))
    return game


def submit_jury_vote(game: Game, voter_id: str, target_id: str) -> Game:
    """Record a dead player's jury vote among the tied players."""
    if game.phase != Phase.JURY_VOTING:
        raise ActionRejected("jury votes are only accepted during jury voting")
    voter = _require_player(game, voter_id)
    if voter.is_alive:
        raise ActionRejected("only the dead sit on the jury")
    if target_id not in game.tied_player_ids:
        raise ActionRejected("jury votes must go to a tied player")
    if voter_id in game.jury_votes:
        return game
    game = copy.deepcopy(game)
    game.jury_votes[voter_id] = target_id
    game.vote_history.append(
        VoteRecord(round=game.round, phase=Phase.JURY_VOTING, voter_id=voter_id, target_id=target_id)
    )
    return game


def submit_hunter_shot(game: Game, hunter_id: str, target_id: str, now: Optional[float] = None) -> Game:
    """The pending hunter's last shot. Unstoppable; then the interrupted flow resumes."""
    if game.phase != Phase.HUNTER_SHOT or game.pending_hunter_id != hunter_id:
        raise ActionRejected("no hunter shot pending for this player")
    hunter = _require_player(game, hunter_id)
    target = _require_player(game, target_id)
    if not target.is_alive or target.id == hunter.id:
        raise ActionRejected("the hunter must shoot another living player")
    game = copy.deepcopy(game)
    game.pending_hunter_id = None
    emit(
        game,
        EventType.HUNTER_SHOT,
        f"With their last breath, {hunter.name} fires at {target.name}.",
        {"hunter_id": hunter_id, "target_id": target_id},
    )
    target = game.get_player(target_id)
    resolve_deaths(game, [DeathMark(
        target_id=target_id,
        cause=DeathCause.HUNTER_SHOT,
        unstoppable=True,
        source_id=hunter_id,
        message=f"{target.name} was shot by the hunter. Their role was: {_role_name(target)}.",
    )])
    settle(game, game.hunter_return_phase or Phase.DAY, _now(now))
    return game


def provoke_fight(game: Game, player_id: str, target_ids: Iterable[str], now: Optional[float] = None) -> Game:
    """Troublemaker, once per game, by day: two players fight and both die."""
    if game.phase not in _VOTING_PHASES:
        raise ActionRejected("fights only break out by day")
    player = _require_player(game, player_id)
    if player.role != Role.TROUBLEMAKER or not player.is_alive or player.troublemaker_used:
        raise ActionRejected("no fight available")
    targets = [_require_player(game, t) for t in dict.fromkeys(target_ids)]
    if len(targets) != 2 or any(not t.is_alive or t.id == player_id for t in targets):
        raise ActionRejected("pick two other living players")
    game = copy.deepcopy(game)
    game.get_player(player_id).troublemaker_used = True
    first, second = (game.get_player(t.id) for t in targets)
    emit(
        game,
        EventType.SPECIAL,
        f"The troublemaker started a brawl between {first.name} and {second.name}. Neither survived.",
        {"target_ids": [first.id, second.id]},
    )
    resolve_deaths(game, [
        DeathMark(target_id=p.id, cause=DeathCause.TROUBLEMAKER_FIGHT, unstoppable=True, source_id=player_id)
        for p in (first, second)
    ])
    settle(game, game.phase, _now(now))
    return game


def send_ghost_message(game: Game, player_id: str, target_id: str, text: str) -> Game:
    """A dead ghost sends one private message to a living player."""
    _require_running(game)
    ghost = _require_player(game, player_id)
    if ghost.role != Role.GHOST or ghost.is_alive or ghost.ghost_message_sent:
        raise ActionRejected("no ghost message available")
    target = _require_player(game, target_id)
    if not target.is_alive:
        raise ActionRejected("ghost messages go to the living")
    text = text.strip()[:MAX_CHAT_LENGTH]
    if not text:
        raise ActionRejected("message is empty")
    game = copy.deepcopy(game)
    game.get_player(player_id).ghost_message_sent = True
    emit(
        game,
        EventType.SPECIAL,
        f"A message from beyond the grave: {text}",
        {"from_ghost": True},
        recipient_ids=(target_id,),
    )
    return game


def post_chat_message(
    game: Game,
    sender_id: str,
    text: str,
    channel: ChatChannel | str = ChatChannel.PUBLIC,
    now: Optional[float] = None,
) -> Game:
    """Post a chat line to a channel the sender belongs to."""
    if game.finished:
        raise ActionRejected("game is over")
    sender = _require_player(game, sender_id)
    try:
        channel = ChatChannel(channel)
    except ValueError as e:
        raise ActionRejected(f"unknown channel {channel}") from e
    if sender_id not in channel_members(game, channel):
        raise ActionRejected(f"{sender_id} cannot post to {channel.value}")
    fx = game.effects
    if (
        channel == ChatChannel.PUBLIC
        and game.phase in _VOTING_PHASES
        and fx.silenced_player_id == sender_id
        and fx.silenced_round == game.round
    ):
        raise ActionRejected("you have been silenced today")
    text = text.strip()[:MAX_CHAT_LENGTH]
    if not text:
        raise ActionRejected("message is empty")
    game = copy.deepcopy(game)
    game.chat_messages.append(ChatMessage(
        round=game.round,
        sender_id=sender_id,
        sender_name=sender.name,
        text=text,
        channel=channel,
        created_at=_now(now),
    ))
    return game


def is_game_over(game: Game) -> bool:
    """True if the game has reached its terminal phase."""
    return game.finished


def get_winner(game: Game) -> Optional[str]:
    """Winner code of a finished game, else None."""
    return game.outcome.winner_code if game.outcome else None
