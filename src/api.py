from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from typing import Optional
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import logging

import core
import session
from config import load_config

logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="Tile Merge Game API",
    description="A stateless API for playing the 2048-style tile merge game. "\
                "The client keeps the full session state (board, score, flags, budgets, "\
                "undo history) and sends it with every request.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game. Omitted fields use the defaults."""
    size: Optional[int] = Field(
        default=4,
        gt=0,
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    win_tile: Optional[int] = Field(
        default=2048,
        gt=0,
        description="The tile value to achieve for winning the game (e.g., 2048)."
    )
    undo_limit: Optional[int] = Field(default=9, description="Undos available in this game.")
    merge_limit: Optional[int] = Field(default=3, description="Magic merges available in this game.")
    four_probability: Optional[float] = Field(default=0.1, description="Chance that a new tile is a 4.")


class SessionRequestData(BaseModel):
    """A request that only needs the current session."""
    state: session.SessionState = Field(..., description="Session state returned by the previous call.")


class MoveRequestData(SessionRequestData):
    """Data required to make a move."""
    direction: str = Field(..., description="Direction of the move (UP, DOWN, LEFT, RIGHT).")


class GameStateData(BaseModel):
    """Session state plus what the last operation did."""
    state: session.SessionState = Field(..., description="Full session state to send back on the next call.")
    progress: core.GameProgressState = Field(
        ...,
        description="Current progress (IN_PROGRESS, GAME_WON, GAME_WON_KEEP_PLAYING, GAME_OVER)."
    )
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")
    events: session.Events = Field(default_factory=session.Events, description="What the operation changed.")
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g. if a move was not effective or the game ended."
    )


def _build_response(state: session.SessionState, events: session.Events, message: Optional[str] = None) -> GameStateData:
    progress = session.determine_game_status(state)
    if events.won:
        message = "Congratulations! You won!"
    elif events.game_over:
        message = "Game Over. No more valid moves."
    return GameStateData(
        state=state,
        progress=progress,
        board_size=state.config.size,
        events=events,
        message=message,
    )


def _unexpected(endpoint: str, e: Exception) -> HTTPException:
    logger.error("Unexpected error in %s: %s", endpoint, e, exc_info=True)
    return HTTPException(status_code=500, detail=f"An unexpected server error occurred: {str(e)}")

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New Game")
@limiter.limit("100/minute")
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Initializes a new game from the provided settings.

    Returns the initial state with two random tiles, score 0, full undo and
    magic merge budgets and an empty undo history.
    """
    overrides = settings.model_dump(exclude_none=True)
    try:
        config = load_config(**overrides)
        state = session.init_game(config)
        return _build_response(state, session.Events(changed=True))
    except core.InvalidConfig as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise _unexpected("/game/new", e)


@app.post("/game/move", response_model=GameStateData, summary="Make a Move in the Game")
@limiter.limit("100/minute")
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move.

    The API will:
    1. Slide and merge tiles in the requested direction.
    2. If the board changed, save an undo snapshot and add a new random tile.
    3. Report a first win or a board with no moves left.
    """
    try:
        direction = core.parse_direction(request_data.direction)
        state, events = session.move(request_data.state, direction)
        message = None if events.changed else "Move was not effective; board state unchanged."
        return _build_response(state, events, message)
    except core.InvalidDirection as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state: {str(e)}")
    except Exception as e:
        raise _unexpected("/game/move", e)


@app.post("/game/undo", response_model=GameStateData, summary="Undo the Last Move")
@limiter.limit("100/minute")
async def undo_move(request: Request, request_data: SessionRequestData):
    """Restores the state before the last move or magic merge, spending one undo."""
    try:
        state = session.undo(request_data.state)
        if state is request_data.state:
            return _build_response(state, session.Events(), "Nothing to undo.")
        return _build_response(state, session.Events(changed=True, cleared=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state: {str(e)}")
    except Exception as e:
        raise _unexpected("/game/undo", e)


@app.post("/game/power-up", response_model=GameStateData, summary="Use a Magic Merge")
@limiter.limit("100/minute")
async def use_power_up(request: Request, request_data: SessionRequestData):
    """Merges adjacent equal tiles across the grid without a move or a new tile."""
    try:
        state, events = session.activate_power_up(request_data.state)
        message = None if events.merged else "Magic merge not used; nothing to merge or no merges left."
        return _build_response(state, events, message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state: {str(e)}")
    except Exception as e:
        raise _unexpected("/game/power-up", e)


@app.post("/game/keep-playing", response_model=GameStateData, summary="Keep Playing After a Win")
@limiter.limit("100/minute")
async def keep_playing(request: Request, request_data: SessionRequestData):
    """Continues a won game; has no effect unless the game is currently won."""
    try:
        state = session.set_keep_playing(request_data.state)
        return _build_response(state, session.Events(cleared=state is not request_data.state))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state: {str(e)}")
    except Exception as e:
        raise _unexpected("/game/keep-playing", e)
