# core.py
# Stateless grid engine for the tile-merge puzzle: line reduction, moves,
# tile spawning, terminal detection and the magic merge pass.

from enum import Enum
from typing import Any, List, Optional, Tuple, Union
import random

from pydantic import BaseModel, ConfigDict

Board = List[List[int]]


class InvalidDirection(ValueError):
    """Raised when a move is requested with something that is not one of the four directions."""


class InvalidConfig(ValueError):
    """Raised when a game configuration is out of range."""


class GameProgressState(Enum):
    """Represents the current progress state of a session."""
    IN_PROGRESS = 1
    GAME_OVER = 2  # No moves left; the session stays usable
    GAME_WON = 3
    GAME_WON_KEEP_PLAYING = 4


class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = 1
    DOWN = 2
    LEFT = 3
    RIGHT = 4


class SpawnedTile(BaseModel):
    """A tile placed into an empty cell after a move."""
    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    value: int


def parse_direction(value: Union[DIRECTION, str, Any]) -> DIRECTION:
    """
    Normalizes a direction given as an enum member or its name.
    Args:
        value: A DIRECTION member or a name such as "up" / "LEFT".
    Returns:
        DIRECTION: The matching enum member.
    Raises:
        InvalidDirection: If the value does not name one of the four directions.
    """
    if isinstance(value, DIRECTION):
        return value
    if isinstance(value, str):
        try:
            return DIRECTION[value.strip().upper()]
        except KeyError:
            pass
    raise InvalidDirection(f"Invalid direction: {value!r}. Must be one of UP, DOWN, LEFT, RIGHT.")

# --- Board Helper Functions ---

def create_empty_board(size: int) -> Board:
    """Returns a size x size board with every cell empty."""
    if not isinstance(size, int) or size <= 0:
        raise InvalidConfig("Board size must be a positive integer.")
    return [[0] * size for _ in range(size)]

def copy_board(board: Board) -> Board:
    return [list(row) for row in board]

def get_board_size(board: Board) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board (Board): The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)

def get_empty_cells(board: Board) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty (0-value) cells in the given board, row-major.
    Args:
        board (Board): The board to check.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells.
    """
    n = get_board_size(board)
    return [(row, col) for row in range(n) for col in range(n) if board[row][col] == 0]

def board_sum(board: Board) -> int:
    """Total of all cell values; this is the session score."""
    return sum(sum(row) for row in board)

def add_random_tile(
    board: Board,
    rng: Optional[Any] = None,
    four_probability: float = 0.1,
) -> Tuple[Board, Optional[SpawnedTile]]:
    """
    Adds a new tile (2, or 4 with `four_probability`) to a uniformly chosen
    empty cell on a copy of the board.
    Args:
        board (Board): The current game board.
        rng: Random source exposing `choice()` and `random()`. Defaults to the
             `random` module.
        four_probability (float): Chance that the new tile is a 4.
    Returns:
        Tuple[Board, Optional[SpawnedTile]]: A new board and the tile that was
            placed. If there are no empty cells, returns an unchanged copy and None.
    """
    source = rng if rng is not None else random
    new_board = copy_board(board)
    empty_cells = get_empty_cells(board)
    if not empty_cells:
        return new_board, None

    row, col = source.choice(empty_cells)
    value = 4 if source.random() < four_probability else 2
    new_board[row][col] = value
    return new_board, SpawnedTile(row=row, col=col, value=value)

# --- Line Reducer ---

def _compress_line(line: List[int]) -> List[int]:
    """Moves all non-zero tiles to the start of the line, keeping their order."""
    compressed = [value for value in line if value != 0]
    return compressed + [0] * (len(line) - len(compressed))

def _merge_line(line: List[int]) -> Tuple[List[int], List[int]]:
    """
    Single left-to-right pass merging equal neighbours in place on a copy.
    The right partner is zeroed, so the scan never merges a freshly doubled
    cell again and a run of three only merges its leftmost pair.
    Args:
        line (List[int]): A compressed line.
    Returns:
        Tuple[List[int], List[int]]: The merged line and the values produced by merges.
    """
    merged = list(line)
    reached_values = []
    for i in range(len(merged) - 1):
        if merged[i] != 0 and merged[i] == merged[i + 1]:
            merged[i] *= 2
            merged[i + 1] = 0
            reached_values.append(merged[i])
    return merged, reached_values

def reduce_line(line: List[int]) -> Tuple[List[int], List[int]]:
    """
    Applies compress, merge, then compress again to a single line, moving
    toward index 0.
    Args:
        line (List[int]): The line to process. It is not modified.
    Returns:
        Tuple[List[int], List[int]]: The processed line (same length) and the
            value of every tile created by a merge, in scan order.
    """
    compressed = _compress_line(list(line))
    merged, reached_values = _merge_line(compressed)
    return _compress_line(merged), reached_values

# --- Board Transformations ---

def transpose_board(board: Board) -> Board:
    """
    Transposes a given board (swaps rows and columns).
    Args:
        board (Board): The board to transpose.
    Returns:
        Board: A new transposed board.
    """
    return [list(column) for column in zip(*board)]

def reverse_rows(board: Board) -> Board:
    """Returns a new board with every row reversed."""
    return [row[::-1] for row in board]

# --- Core Game Move Processing ---

def _reduce_all_rows(board: Board) -> Tuple[Board, List[int]]:
    reduced_board = []
    reached_values: List[int] = []
    for row in board:
        reduced_row, row_values = reduce_line(row)
        reduced_board.append(reduced_row)
        reached_values.extend(row_values)
    return reduced_board, reached_values

def process_move(
    board: Board,
    direction: DIRECTION,
    win_tile: int = 2048,
) -> Tuple[Board, bool, bool]:
    """
    Processes a move in the specified direction on a copy of the board.

    Rows (LEFT/RIGHT) or columns (UP/DOWN) are oriented so that tiles always
    slide toward index 0, reduced, and written back with the inverse transform.
    Args:
        board (Board): The current game board. Never mutated.
        direction (DIRECTION): The direction to move.
        win_tile (int): Value whose creation by a merge counts as reaching the goal.
    Returns:
        Tuple[Board, bool, bool]:
            - The new board state after the move.
            - True if any cell differs from the input board.
            - True if a merge in this move produced `win_tile`.
    Raises:
        InvalidDirection: If `direction` is not a DIRECTION member.
    """
    if not isinstance(direction, DIRECTION):
        raise InvalidDirection(f"Invalid direction specified for process_move: {direction!r}")
    get_board_size(board)

    if direction == DIRECTION.LEFT:
        new_board, reached_values = _reduce_all_rows(board)
    elif direction == DIRECTION.RIGHT:
        reduced, reached_values = _reduce_all_rows(reverse_rows(board))
        new_board = reverse_rows(reduced)
    elif direction == DIRECTION.UP:
        reduced, reached_values = _reduce_all_rows(transpose_board(board))
        new_board = transpose_board(reduced)
    else:  # DIRECTION.DOWN
        reduced, reached_values = _reduce_all_rows(reverse_rows(transpose_board(board)))
        new_board = transpose_board(reverse_rows(reduced))

    changed = new_board != board
    reached_win = win_tile in reached_values
    return new_board, changed, reached_win

def merge_adjacent_pairs(board: Board) -> Tuple[Board, int]:
    """
    Magic merge: combines adjacent equal tiles without a directional move.

    Rows are scanned first, left to right; each equal non-zero pair doubles
    the left cell, empties the right one and the scan jumps past the pair.
    Every row that merged is then closed up toward its first cell, so
    `[2, 2, 2, 0]` becomes `[4, 2, 0, 0]`. Columns are then scanned top to
    bottom with the same rule and every column that merged is closed up
    toward its top cell. Lines without a merge are left as they stand.
    Args:
        board (Board): The current game board. Never mutated.
    Returns:
        Tuple[Board, int]: The new board and the number of pairs merged.
    """
    n = get_board_size(board)
    new_board = copy_board(board)
    merges = 0

    for r in range(n):
        row_merges = 0
        c = 0
        while c < n - 1:
            if new_board[r][c] != 0 and new_board[r][c] == new_board[r][c + 1]:
                new_board[r][c] *= 2
                new_board[r][c + 1] = 0
                row_merges += 1
                c += 2
            else:
                c += 1
        if row_merges:
            new_board[r] = _compress_line(new_board[r])
            merges += row_merges

    for c in range(n):
        column = [new_board[r][c] for r in range(n)]
        column_merges = 0
        r = 0
        while r < n - 1:
            if column[r] != 0 and column[r] == column[r + 1]:
                column[r] *= 2
                column[r + 1] = 0
                column_merges += 1
                r += 2
            else:
                r += 1
        if column_merges:
            for r, value in enumerate(_compress_line(column)):
                new_board[r][c] = value
            merges += column_merges

    return new_board, merges

# --- Game State Checks ---

def is_terminal(board: Board) -> bool:
    """
    Checks whether the board is full and has no horizontally or vertically
    adjacent equal tiles, i.e. no move in any direction can change it.
    Args:
        board (Board): The committed game board.
    Returns:
        bool: True if no moves are left, False otherwise.
    """
    n = get_board_size(board)
    for r in range(n):
        for c in range(n):
            if board[r][c] == 0:
                return False
            if c < n - 1 and board[r][c] == board[r][c + 1]:
                return False
            if r < n - 1 and board[r][c] == board[r + 1][c]:
                return False
    return True
