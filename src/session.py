# session.py
# Session state machine: scoring, win / keep-playing, undo and the magic merge
# power-up layered on top of the stateless grid engine in core.py.
#
# Every operation takes a SessionState and returns a new one; nothing is
# mutated in place, so callers can keep the old value around (tests, undo,
# the stateless HTTP API).

from typing import Any, List, Optional, Tuple
import logging

from pydantic import BaseModel, Field

from config import DEFAULT_CONFIG, GameConfig
from core import (
    DIRECTION,
    Board,
    GameProgressState,
    SpawnedTile,
    add_random_tile,
    board_sum,
    create_empty_board,
    is_terminal,
    merge_adjacent_pairs,
    parse_direction,
    process_move,
)
from history import HistoryStore, Snapshot

logger = logging.getLogger(__name__)


class Events(BaseModel):
    """What an operation did, for the render sink to draw or announce."""
    changed: bool = Field(default=False, description="The grid was modified.")
    spawned: Optional[SpawnedTile] = Field(default=None, description="Tile added after a move.")
    won: bool = Field(default=False, description="The winning tile was reached for the first time.")
    game_over: bool = Field(default=False, description="No moves are left on the committed grid.")
    merged: bool = Field(default=False, description="The magic merge combined at least one pair.")
    cleared: bool = Field(default=False, description="Any visible win / game over message should be hidden.")


class SessionState(BaseModel):
    """Complete state of one game."""
    grid: List[List[int]]
    score: int = Field(default=0, ge=0)
    won: bool = False
    keep_playing: bool = False
    undo_budget: int = Field(default=0, ge=0)
    merge_budget: int = Field(default=0, ge=0)
    history: HistoryStore = Field(default_factory=HistoryStore)
    config: GameConfig = Field(default_factory=lambda: DEFAULT_CONFIG)


def init_game(config: Optional[GameConfig] = None, rng: Optional[Any] = None) -> SessionState:
    """
    Starts a new game: empty grid plus the configured number of random tiles.

    The score starts at 0 and is first recomputed from the grid by the first
    move or power-up.
    Args:
        config (GameConfig): Game settings. Defaults to DEFAULT_CONFIG.
        rng: Random source for tile placement. Defaults to the `random` module.
    Returns:
        SessionState: The initial state with full budgets and empty history.
    """
    config = config if config is not None else DEFAULT_CONFIG
    grid = create_empty_board(config.size)
    for _ in range(config.start_tiles):
        grid, _ = add_random_tile(grid, rng, config.four_probability)

    logger.info("Started %dx%d game (win tile %d)", config.size, config.size, config.win_tile)
    return SessionState(
        grid=grid,
        score=0,
        won=False,
        keep_playing=False,
        undo_budget=config.undo_limit,
        merge_budget=config.merge_limit,
        history=HistoryStore(),
        config=config,
    )


def new_game(state: SessionState, rng: Optional[Any] = None) -> SessionState:
    """Discards the session, history included, and starts over with the same config."""
    return init_game(state.config, rng)


def determine_game_status(state: SessionState) -> GameProgressState:
    """
    Derives the progress state of a session.

    A won game that is not kept going takes precedence over a full board,
    because moves are rejected there anyway.
    """
    if state.won and not state.keep_playing:
        return GameProgressState.GAME_WON
    if is_terminal(state.grid):
        return GameProgressState.GAME_OVER
    if state.won:
        return GameProgressState.GAME_WON_KEEP_PLAYING
    return GameProgressState.IN_PROGRESS


def _push_snapshot(state: SessionState) -> HistoryStore:
    if state.undo_budget <= 0:
        return state.history
    history = state.history.push(Snapshot.take(state), max_depth=state.undo_budget)
    logger.debug("Snapshot pushed (depth %d)", history.depth)
    return history


def move(
    state: SessionState,
    direction: DIRECTION,
    rng: Optional[Any] = None,
) -> Tuple[SessionState, Events]:
    """
    Slides the grid in `direction`, then spawns a tile if anything moved.

    Blocked moves and moves while the win message is up are no-ops: no
    snapshot, no spawn, no score change.
    Args:
        state (SessionState): The current session.
        direction (DIRECTION): Move direction (a name such as "left" is accepted too).
        rng: Random source for the spawned tile.
    Returns:
        Tuple[SessionState, Events]: The new session and what happened.
    Raises:
        InvalidDirection: If `direction` is not one of the four directions.
    """
    direction = parse_direction(direction)
    if determine_game_status(state) == GameProgressState.GAME_WON:
        logger.debug("Move %s ignored: game won and not kept going", direction.name)
        return state, Events()

    config = state.config
    moved_grid, changed, reached_win = process_move(state.grid, direction, config.win_tile)
    if not changed:
        logger.debug("Move %s blocked", direction.name)
        return state, Events()

    history = _push_snapshot(state)
    grid, spawned = add_random_tile(moved_grid, rng, config.four_probability)

    won = state.won
    won_now = reached_win and not state.won and not state.keep_playing
    if won_now:
        won = True
        logger.info("Reached %d", config.win_tile)

    game_over = is_terminal(grid)
    if game_over:
        logger.info("Game over with score %d", board_sum(grid))

    new_state = state.model_copy(update={
        "grid": grid,
        "score": board_sum(grid),
        "won": won,
        "history": history,
    })
    logger.debug("Move %s applied, score %d", direction.name, new_state.score)
    return new_state, Events(changed=True, spawned=spawned, won=won_now, game_over=game_over)


def undo(state: SessionState) -> SessionState:
    """
    Restores the state saved before the most recent move or power-up.

    Costs one unit of undo budget. keep_playing is never switched back off.
    No-op when the budget is spent or there is nothing to undo.
    """
    if state.undo_budget <= 0 or state.history.is_empty():
        logger.debug("Undo unavailable (budget %d, depth %d)", state.undo_budget, state.history.depth)
        return state

    snapshot, history = state.history.pop()
    restored = state.model_copy(update={
        "grid": snapshot.board(),
        "score": snapshot.score,
        "won": snapshot.won,
        "keep_playing": snapshot.keep_playing or state.keep_playing,
        "merge_budget": snapshot.merge_budget,
        "undo_budget": state.undo_budget - 1,
        "history": history,
    })
    logger.debug("Undo applied, %d left", restored.undo_budget)
    return restored


def activate_power_up(state: SessionState) -> Tuple[SessionState, Events]:
    """
    Magic merge: combines adjacent equal tiles across the whole grid.

    A merge that produces the win tile does not set `won` or report a win;
    only moves can win the game.
    One snapshot and one unit of merge budget are spent per activation,
    however many pairs merge. Nothing is spent if no pair merges. No tile is
    spawned, so the grid total is unchanged.
    """
    if state.merge_budget <= 0:
        logger.debug("Magic merge unavailable: budget spent")
        return state, Events()

    grid, merges = merge_adjacent_pairs(state.grid)
    if merges == 0:
        logger.debug("Magic merge found nothing to combine")
        return state, Events()

    new_state = state.model_copy(update={
        "grid": grid,
        "score": board_sum(grid),
        "merge_budget": state.merge_budget - 1,
        "history": _push_snapshot(state),
    })
    logger.debug("Magic merge combined %d pairs, %d left", merges, new_state.merge_budget)
    return new_state, Events(changed=True, merged=True)


def set_keep_playing(state: SessionState) -> SessionState:
    """Continues a won game. Only valid while the win message is up; otherwise a no-op."""
    if determine_game_status(state) != GameProgressState.GAME_WON:
        return state
    logger.info("Continuing past %d", state.config.win_tile)
    return state.model_copy(update={"keep_playing": True})


def grid_snapshot(state: SessionState) -> Board:
    """Returns a copy of the committed grid, safe to hand to renderers."""
    return [list(row) for row in state.grid]
