"""
FastAPI backend for Grid Getters.
Exposes the engine's commands and queries over HTTP for a hot-seat front-end.
Games live in an in-memory registry for the lifetime of the process.
"""

import logging
import random
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gridgetters.config import DEFAULT_SETUP_ID
from gridgetters.engine.actions import (
    Action,
    advance_phase,
    place_reinforcement,
    select_cell,
    select_unit,
)
from gridgetters.engine.definitions import list_setups, load_setup
from gridgetters.engine.errors import InvariantViolation
from gridgetters.engine.events import ACTION_REJECTED
from gridgetters.engine.hexes import Coordinate
from gridgetters.engine.queries import (
    get_available_action_types,
    get_event_log,
    get_game_summary,
    get_highlighted_coordinates,
    get_placeable_cells,
    get_selectable_units,
)
from gridgetters.engine.reducer import apply_action
from gridgetters.engine.state import GameState
from gridgetters.engine.utils import initialize_game_state

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Grid Getters API",
    description="Rules engine for Grid Getters - a two-player hex-grid wargame",
    version="1.0.0",
)

# CORS configuration for frontend
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = request.method
    path = request.url.path
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("[500] %s %s (exception)", method, path)
        raise
    if response.status_code >= 500:
        logger.error("[%d] %s %s", response.status_code, method, path)
    else:
        logger.debug("[%d] %s %s", response.status_code, method, path)
    return response


@app.exception_handler(InvariantViolation)
async def invariant_violation_handler(request, exc: InvariantViolation):
    """Engine contract breach: the command was aborted and the stored game is unchanged."""
    logger.error("Invariant violation on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc), "error": "invariant_violation"})


# In-memory games; key = game_id
games: dict[str, GameState] = {}

# Per-game die; seeded when the game was created with a seed
game_rngs: dict[str, random.Random] = {}


# ===== Pydantic Models =====

class CreateGameRequest(BaseModel):
    setup_id: str | None = None  # data/setups/<setup_id>.json; default from config
    seed: int | None = None  # Seed for the combat die (reproducible games)


class CellRequest(BaseModel):
    q: int
    r: int
    player: str | None = None  # Defaults to the current player (hot-seat)


class SelectUnitRequest(BaseModel):
    unit_id: int
    player: str | None = None


class AdvanceRequest(BaseModel):
    player: str | None = None


# ===== Helpers =====

def get_game(game_id: str) -> GameState:
    """Get game state from the registry; raise 404 if not found."""
    state = games.get(game_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
    return state


def state_for_response(state: GameState) -> dict[str, Any]:
    """State dict plus the computed views the UI needs to draw the board."""
    out = state.to_dict()
    out["summary"] = get_game_summary(state)
    out["highlights"] = get_highlighted_coordinates(state)
    out["placeable_cells"] = [c.to_dict() for c in get_placeable_cells(state)]
    out["selectable_unit_ids"] = [u.id for u in get_selectable_units(state)]
    return out


def run_action(game_id: str, action: Action) -> dict[str, Any]:
    """Apply an action to a stored game. Soft rejections are reported, not raised."""
    state = get_game(game_id)
    new_state, events = apply_action(state, action, game_rngs.get(game_id))
    rejected = len(events) == 1 and events[0].type == ACTION_REJECTED
    games[game_id] = new_state
    return {
        "state": state_for_response(new_state),
        "events": [e.to_dict() for e in events],
        "rejected": rejected,
        "error": events[0].payload["reason"] if rejected else None,
    }


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Grid Getters API", "version": "1.0.0"}


@app.get("/setups")
def get_setups():
    """List available setups from data/setups/."""
    return {"setups": list_setups(), "default": DEFAULT_SETUP_ID}


@app.post("/games")
def create_game(request: CreateGameRequest | None = None):
    """Create a new game from a setup. Returns its id and initial state."""
    request = request or CreateGameRequest()
    try:
        config = load_setup(request.setup_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid setup: {e}")

    game_id = str(uuid.uuid4())
    state = initialize_game_state(config)
    games[game_id] = state
    game_rngs[game_id] = random.Random(request.seed)
    logger.info("Created game %s from setup %s", game_id, request.setup_id or DEFAULT_SETUP_ID)
    return {"game_id": game_id, "state": state_for_response(state)}


@app.get("/games/{game_id}")
def get_game_state(game_id: str):
    return {"game_id": game_id, "state": state_for_response(get_game(game_id))}


@app.get("/games/{game_id}/log")
def get_game_log(game_id: str, limit: int | None = None):
    """Human-readable event log, oldest first."""
    return {"log": get_event_log(get_game(game_id), limit)}


@app.get("/games/{game_id}/available-actions")
def get_available_actions(game_id: str):
    state = get_game(game_id)
    return {
        "phase": state.phase,
        "current_player": state.current_player,
        "actions": get_available_action_types(state),
    }


@app.post("/games/{game_id}/reinforcements")
def do_place_reinforcement(game_id: str, request: CellRequest):
    state = get_game(game_id)
    action = place_reinforcement(request.player or state.current_player, Coordinate(request.q, request.r))
    return run_action(game_id, action)


@app.post("/games/{game_id}/select-cell")
def do_select_cell(game_id: str, request: CellRequest):
    state = get_game(game_id)
    action = select_cell(request.player or state.current_player, Coordinate(request.q, request.r))
    return run_action(game_id, action)


@app.post("/games/{game_id}/select-unit")
def do_select_unit(game_id: str, request: SelectUnitRequest):
    state = get_game(game_id)
    action = select_unit(request.player or state.current_player, request.unit_id)
    return run_action(game_id, action)


@app.post("/games/{game_id}/advance")
def do_advance_phase(game_id: str, request: AdvanceRequest | None = None):
    """Advance to the next phase; leaving combat resolves invasions and ends the turn."""
    state = get_game(game_id)
    player = request.player if request and request.player else state.current_player
    return run_action(game_id, advance_phase(player))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
