# adapters.py
# Collaborators around the session engine: input decoding, best score
# persistence and the render sink interface.

from pathlib import Path
from typing import List, Optional, Protocol, Union
import json
import logging

from core import DIRECTION, InvalidDirection

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "2048-best-score"

KEY_DIRECTIONS = {
    "ARROWUP": DIRECTION.UP,
    "ARROWDOWN": DIRECTION.DOWN,
    "ARROWLEFT": DIRECTION.LEFT,
    "ARROWRIGHT": DIRECTION.RIGHT,
    "W": DIRECTION.UP,
    "S": DIRECTION.DOWN,
    "A": DIRECTION.LEFT,
    "D": DIRECTION.RIGHT,
}

# --- Input decoding ---

def direction_from_key(key: str) -> DIRECTION:
    """
    Maps a key name to a move direction.
    Args:
        key (str): "ArrowUp", "ArrowDown", "ArrowLeft", "ArrowRight" or W/A/S/D,
                   in any case.
    Returns:
        DIRECTION: The direction bound to the key.
    Raises:
        InvalidDirection: If the key is not bound to a move.
    """
    direction = KEY_DIRECTIONS.get(str(key).strip().upper())
    if direction is None:
        raise InvalidDirection(f"Key {key!r} is not bound to a move.")
    return direction

def direction_from_swipe(dx: float, dy: float, threshold: float = 30) -> Optional[DIRECTION]:
    """
    Turns a touch displacement into a direction along its dominant axis.

    Screen coordinates: positive dy points down. Swipes whose dominant
    component is not longer than `threshold` are ignored; equal components
    count as vertical.
    Returns:
        Optional[DIRECTION]: The swipe direction, or None for a short swipe.
    """
    if abs(dx) > abs(dy):
        if abs(dx) > threshold:
            return DIRECTION.RIGHT if dx > 0 else DIRECTION.LEFT
    elif abs(dy) > threshold:
        return DIRECTION.DOWN if dy > 0 else DIRECTION.UP
    return None

# --- Best score persistence ---

class BestScoreStore(Protocol):
    def load(self) -> int: ...

    def save(self, score: int) -> None: ...


class MemoryBestScoreStore:
    """Keeps the best score for the lifetime of the process only."""

    def __init__(self, score: int = 0):
        self.score = score

    def load(self) -> int:
        return self.score

    def save(self, score: int) -> None:
        self.score = score


class JsonFileBestScoreStore:
    """
    Stores the best score in a small JSON file under the "2048-best-score" key.

    A missing or unreadable file loads as 0; the next save rewrites it.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> int:
        if not self.path.exists():
            return 0
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return max(0, int(data.get(BEST_SCORE_KEY, 0)))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Could not read best score from %s: %s", self.path, e)
            return 0

    def save(self, score: int) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({BEST_SCORE_KEY: int(score)}), encoding="utf-8")
        logger.debug("Best score %d saved to %s", score, self.path)

# --- Rendering ---

class RenderSink(Protocol):
    """
    Draws the committed grid. Calls must be idempotent: rendering an
    unchanged grid is a no-op for the viewer.
    """

    def render(self, grid: List[List[int]], score: int, best_score: int, events) -> None: ...

    def show_message(self, won: bool) -> None: ...

    def hide_message(self) -> None: ...
