# controller.py
# Stateful host for one session: serializes operations, keeps the best score
# and forwards results to a render sink.

from typing import Any, Callable, Optional
import logging
import threading

from adapters import BestScoreStore, MemoryBestScoreStore, RenderSink, direction_from_key, direction_from_swipe
from config import GameConfig
from core import DIRECTION, GameProgressState
import session
from session import Events, SessionState

logger = logging.getLogger(__name__)


class GameController:
    """
    Owns the live SessionState of an interactive game.

    All public operations run under one lock, so a move, undo, magic merge,
    keep-playing or restart always sees a fully committed state. Win and game
    over messages are shown after the configured delay; the state itself is
    committed before the message is scheduled.
    """

    def __init__(
        self,
        render_sink: RenderSink,
        config: Optional[GameConfig] = None,
        best_score_store: Optional[BestScoreStore] = None,
        rng: Optional[Any] = None,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.render_sink = render_sink
        self.best_score_store = best_score_store if best_score_store is not None else MemoryBestScoreStore()
        self.rng = rng
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending_messages = []
        self.best_score = self.best_score_store.load()
        self._state = session.init_game(config, rng)
        self._refresh(Events(changed=True, cleared=True))

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def progress(self) -> GameProgressState:
        return session.determine_game_status(self._state)

    def move(self, direction: DIRECTION) -> Events:
        with self._lock:
            self._state, events = session.move(self._state, direction, self.rng)
            if events.changed:
                self._refresh(events)
                if events.won:
                    self._schedule_message(True, self._state.config.win_message_delay)
                if events.game_over:
                    self._schedule_message(False, self._state.config.over_message_delay)
            return events

    def press_key(self, key: str) -> Events:
        """Moves in the direction bound to `key`. Unbound keys raise InvalidDirection."""
        return self.move(direction_from_key(key))

    def swipe(self, dx: float, dy: float) -> Events:
        """Moves along the dominant axis of a swipe; short swipes do nothing."""
        direction = direction_from_swipe(dx, dy, self._state.config.swipe_threshold)
        if direction is None:
            return Events()
        return self.move(direction)

    def undo(self) -> Events:
        with self._lock:
            previous = self._state
            self._state = session.undo(previous)
            if self._state is previous:
                return Events()
            events = Events(changed=True, cleared=True)
            self._clear_message()
            self._refresh(events)
            return events

    def activate_power_up(self) -> Events:
        with self._lock:
            self._state, events = session.activate_power_up(self._state)
            if events.changed:
                self._refresh(events)
            return events

    def set_keep_playing(self) -> Events:
        with self._lock:
            previous = self._state
            self._state = session.set_keep_playing(previous)
            if self._state is previous:
                return Events()
            self._clear_message()
            return Events(cleared=True)

    def new_game(self) -> Events:
        with self._lock:
            self._state = session.new_game(self._state, self.rng)
            events = Events(changed=True, cleared=True)
            self._clear_message()
            self._refresh(events)
            return events

    def close(self) -> None:
        """Cancels every message still waiting to be shown."""
        with self._lock:
            self._cancel_pending()

    # --- internals, called with the lock held ---

    def _refresh(self, events: Events) -> None:
        if self._state.score > self.best_score:
            self.best_score = self._state.score
            self.best_score_store.save(self.best_score)
        self.render_sink.render(session.grid_snapshot(self._state), self._state.score, self.best_score, events)

    def _schedule_message(self, won: bool, delay: float) -> None:
        # a move that wins and ends the game queues both messages
        if delay <= 0:
            self.render_sink.show_message(won)
            return
        timer = self._timer_factory(delay, self.render_sink.show_message, args=(won,))
        timer.daemon = True
        self._pending_messages.append(timer)
        timer.start()

    def _cancel_pending(self) -> None:
        for timer in self._pending_messages:
            timer.cancel()
        self._pending_messages = []

    def _clear_message(self) -> None:
        self._cancel_pending()
        self.render_sink.hide_message()
