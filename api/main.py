"""FastAPI app for El Pueblo: create and join games, submit actions, advance phases."""

import logging
import uuid
from typing import Callable

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from pueblo.engine import (
    advance_phase,
    create_game,
    join_game,
    post_chat_message,
    provoke_fight,
    reset_game,
    send_ghost_message,
    start_game,
    submit_hunter_shot,
    submit_jury_vote,
    submit_night_action,
    submit_vote,
)
from pueblo.errors import ActionRejected, GameCorrupted
from pueblo.master import execute_master_action
from pueblo.objectives import OBJECTIVES_BY_ID, evaluate_objectives
from pueblo.roles import ROLE_BEHAVIORS
from pueblo.rules import ACTION_REJECTED_MESSAGE, EventType
from pueblo.state import Game, GameSettings
from pueblo.views import public_view
from api.game_store import (
    create as store_create,
    get as store_get,
    update as store_update,
    list_games,
)
from api.models import (
    AdvanceRequest,
    ChatRequest,
    CreatorRequest,
    FightRequest,
    GameCreateRequest,
    GameStateResponse,
    GhostMessageRequest,
    JoinRequest,
    MasterActionRequest,
    NightActionRequest,
    VoteRequest,
)
from narrator.dispatcher import dispatch_event_chat
from narrator.llm_config import env_key_flags
from narrator.prompts import get_default_prompts

logger = logging.getLogger(__name__)

app = FastAPI(title="El Pueblo API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public events the AI players may react to in chat
_NARRATED_EVENTS = frozenset({
    EventType.NIGHT_RESULT,
    EventType.VOTE_RESULT,
    EventType.PLAYER_DEATH,
    EventType.LOVER_DEATH,
    EventType.ROLE_REVEALED,
    EventType.HUNTER_SHOT,
    EventType.SPECIAL,
})


def _require_game(game_id: str) -> Game:
    game = store_get(game_id)
    if game is None:
        raise HTTPException(404, "Game not found")
    return game


def _require_creator(game: Game, player_id: str) -> None:
    if game.creator_id != player_id:
        raise HTTPException(403, "Only the game creator can do this")


def _apply(
    game_id: str,
    fn: Callable[[Game], Game],
    background_tasks: BackgroundTasks | None = None,
) -> Game:
    """Run one engine transition under the store lock; map engine errors to HTTP."""
    _require_game(game_id)
    seen: dict[str, int] = {}

    def run(current: Game) -> Game:
        seen["events"] = len(current.events)
        return fn(current)

    try:
        game = store_update(game_id, run)
    except KeyError:
        raise HTTPException(404, "Game not found")
    except ActionRejected as e:
        logger.info("Rejected action on game %s: %s", game_id, e)
        raise HTTPException(400, ACTION_REJECTED_MESSAGE)
    except GameCorrupted:
        logger.exception("Game %s is corrupted; transition aborted", game_id)
        raise HTTPException(500, "Internal game error")

    if background_tasks is not None:
        for event in game.events[seen.get("events", len(game.events)):]:
            if event.recipient_ids is None and event.type in _NARRATED_EVENTS:
                background_tasks.add_task(dispatch_event_chat, game_id, event.id)
    return game


def _response(game: Game, viewer_id: str | None) -> GameStateResponse:
    return GameStateResponse(**public_view(game, viewer_id))


@app.post("/games", response_model=dict, tags=["Games"], summary="Create game")
def create_game_route(body: GameCreateRequest):
    """Create a game in the lobby; the creator and any AI players are seated."""
    game_id = str(uuid.uuid4())
    settings = GameSettings(**body.settings.model_dump())
    try:
        game = create_game(game_id, body.creator_id, body.creator_name, settings=settings, seed=body.seed)
        for i, name in enumerate(body.ai_players):
            game = join_game(game, f"ai_{i}", name, is_ai=True)
    except ActionRejected as e:
        logger.info("Rejected game creation: %s", e)
        raise HTTPException(400, ACTION_REJECTED_MESSAGE)
    store_create(game)
    return {"game_id": game_id}


@app.get("/games", response_model=list[str], tags=["Games"], summary="List game IDs")
def list_games_route():
    """List all game IDs."""
    return list_games()


@app.get("/games/{game_id}", response_model=GameStateResponse, tags=["Games"], summary="Get game state")
def get_game(game_id: str, viewer_id: str | None = None):
    """Return what viewer_id may see of the game (roles and private events filtered)."""
    return _response(_require_game(game_id), viewer_id)


@app.post("/games/{game_id}/join", response_model=GameStateResponse, tags=["Lobby"], summary="Join game")
def join_game_route(game_id: str, body: JoinRequest):
    game = _apply(game_id, lambda g: join_game(g, body.player_id, body.name, is_ai=body.is_ai))
    return _response(game, body.player_id)


@app.post("/games/{game_id}/start", response_model=GameStateResponse, tags=["Lobby"], summary="Start game")
def start_game_route(game_id: str, body: CreatorRequest, background_tasks: BackgroundTasks):
    _require_creator(_require_game(game_id), body.player_id)
    game = _apply(game_id, start_game, background_tasks)
    return _response(game, body.player_id)


@app.post("/games/{game_id}/reset", response_model=GameStateResponse, tags=["Lobby"], summary="Back to lobby")
def reset_game_route(game_id: str, body: CreatorRequest):
    _require_creator(_require_game(game_id), body.player_id)
    game = _apply(game_id, reset_game)
    return _response(game, body.player_id)


@app.post("/games/{game_id}/night-action", response_model=GameStateResponse, tags=["Actions"], summary="Submit night action")
def night_action_route(game_id: str, body: NightActionRequest):
    game = _apply(game_id, lambda g: submit_night_action(g, body.player_id, body.action_type, body.target_ids))
    return _response(game, body.player_id)


@app.post("/games/{game_id}/vote", response_model=GameStateResponse, tags=["Actions"], summary="Submit day vote")
def vote_route(game_id: str, body: VoteRequest):
    game = _apply(game_id, lambda g: submit_vote(g, body.player_id, body.target_id))
    return _response(game, body.player_id)


@app.post("/games/{game_id}/jury-vote", response_model=GameStateResponse, tags=["Actions"], summary="Submit jury vote")
def jury_vote_route(game_id: str, body: VoteRequest):
    game = _apply(game_id, lambda g: submit_jury_vote(g, body.player_id, body.target_id))
    return _response(game, body.player_id)


@app.post("/games/{game_id}/hunter-shot", response_model=GameStateResponse, tags=["Actions"], summary="Hunter's last shot")
def hunter_shot_route(game_id: str, body: VoteRequest, background_tasks: BackgroundTasks):
    game = _apply(game_id, lambda g: submit_hunter_shot(g, body.player_id, body.target_id), background_tasks)
    return _response(game, body.player_id)


@app.post("/games/{game_id}/fight", response_model=GameStateResponse, tags=["Actions"], summary="Troublemaker fight")
def fight_route(game_id: str, body: FightRequest, background_tasks: BackgroundTasks):
    game = _apply(game_id, lambda g: provoke_fight(g, body.player_id, body.target_ids), background_tasks)
    return _response(game, body.player_id)


@app.post("/games/{game_id}/ghost-message", response_model=GameStateResponse, tags=["Actions"], summary="Ghost message")
def ghost_message_route(game_id: str, body: GhostMessageRequest):
    game = _apply(game_id, lambda g: send_ghost_message(g, body.player_id, body.target_id, body.message))
    return _response(game, body.player_id)


@app.post("/games/{game_id}/chat", response_model=GameStateResponse, tags=["Chat"], summary="Post chat message")
def chat_route(game_id: str, body: ChatRequest):
    game = _apply(game_id, lambda g: post_chat_message(g, body.player_id, body.text, body.channel))
    return _response(game, body.player_id)


@app.post("/games/{game_id}/advance", response_model=GameStateResponse, tags=["Games"], summary="Advance phase")
def advance_route(game_id: str, body: AdvanceRequest, background_tasks: BackgroundTasks, viewer_id: str | None = None):
    """Advance past the current phase if its deadline passed. Early or stale calls change nothing."""
    game = _apply(game_id, lambda g: advance_phase(g, expected_phase=body.expected_phase), background_tasks)
    return _response(game, viewer_id)


@app.post("/games/{game_id}/master", response_model=GameStateResponse, tags=["Admin"], summary="Master action")
def master_route(game_id: str, body: MasterActionRequest, background_tasks: BackgroundTasks):
    _require_creator(_require_game(game_id), body.player_id)
    game = _apply(
        game_id,
        lambda g: execute_master_action(g, body.action_id, body.player_id, body.target_id),
        background_tasks,
    )
    return _response(game, body.player_id)


@app.get("/games/{game_id}/objectives", response_model=dict, tags=["Games"], summary="Secret objectives")
def objectives_route(game_id: str, viewer_id: str | None = None):
    """Objectives with completion. Everyone's once the game is over; otherwise only the viewer's."""
    game = _require_game(game_id)
    completed = evaluate_objectives(game)
    result = {}
    for player in game.players:
        if not game.finished and player.id != viewer_id:
            continue
        objective = OBJECTIVES_BY_ID.get(player.secret_objective_id or "")
        if objective is None:
            continue
        result[player.id] = {
            "objective_id": objective.id,
            "description": objective.description,
            "completed": completed.get(player.id, False),
        }
    return result


@app.get("/health", tags=["System"], summary="Health check")
def health():
    return {"status": "ok"}


@app.get("/settings/roles", response_model=dict, tags=["Settings"], summary="Role catalogue")
def get_roles():
    """Every role with its team and description."""
    return {
        role.value: {"team": behavior.team.value, "description": behavior.description}
        for role, behavior in ROLE_BEHAVIORS.items()
    }


@app.get("/settings/prompts", response_model=dict, tags=["Settings"], summary="Get default prompts")
def get_prompts():
    """Return default prompt texts used by the narrator."""
    return get_default_prompts()


@app.get("/settings/env-keys", response_model=dict, tags=["Settings"], summary="Get env API key flags")
def get_env_keys():
    """Return which provider API keys are set in server env (no key values)."""
    return env_key_flags()
