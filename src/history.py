# history.py
# Undo history: immutable snapshots of the mutable session fields and the
# stack that holds them.

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from core import Board, copy_board


class Snapshot(BaseModel):
    """A copy of the session fields restored by undo."""
    model_config = ConfigDict(frozen=True)

    grid: Tuple[Tuple[int, ...], ...]
    score: int
    won: bool
    keep_playing: bool
    merge_budget: int

    @classmethod
    def take(cls, state) -> "Snapshot":
        """Copies grid, score, flags and merge budget out of a session state."""
        return cls(
            grid=tuple(tuple(row) for row in state.grid),
            score=state.score,
            won=state.won,
            keep_playing=state.keep_playing,
            merge_budget=state.merge_budget,
        )

    def board(self) -> Board:
        """Returns a fresh, mutable copy of the saved grid."""
        return copy_board(self.grid)


class HistoryStore(BaseModel):
    """
    Stack of snapshots, most recent last.

    The session caps the depth at its remaining undo budget (9 by default),
    dropping the oldest snapshots, which no undo could reach anyway.
    Every operation returns a new store.
    """
    model_config = ConfigDict(frozen=True)

    entries: Tuple[Snapshot, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.entries)

    def is_empty(self) -> bool:
        return not self.entries

    def push(self, snapshot: Snapshot, max_depth: Optional[int] = None) -> "HistoryStore":
        """
        Appends a snapshot. With `max_depth`, only the newest `max_depth`
        entries are kept.
        """
        entries = self.entries + (snapshot,)
        if max_depth is not None:
            entries = entries[-max_depth:] if max_depth > 0 else ()
        return HistoryStore(entries=entries)

    def pop(self) -> Tuple[Optional[Snapshot], "HistoryStore"]:
        """
        Removes the most recent snapshot.
        Returns:
            Tuple[Optional[Snapshot], HistoryStore]: The snapshot (None when the
                store is empty) and the remaining store.
        """
        if not self.entries:
            return None, self
        return self.entries[-1], HistoryStore(entries=self.entries[:-1])
