import pytest

from config import load_config
from history import HistoryStore
from session import SessionState


class FirstCellRng:
    """Always picks the first empty cell (row-major) and spawns a 2, or a 4 when `roll` is low."""

    def __init__(self, roll=0.5):
        self.roll = roll
        self.choices = []

    def choice(self, cells):
        self.choices.append(list(cells))
        return cells[0]

    def random(self):
        return self.roll


class RecordingRenderer:
    def __init__(self):
        self.renders = []
        self.messages = []
        self.hidden = 0

    def render(self, grid, score, best_score, events):
        self.renders.append((grid, score, best_score, events))

    def show_message(self, won):
        self.messages.append(won)

    def hide_message(self):
        self.hidden += 1


class FakeTimer:
    created = []

    def __init__(self, delay, function, args=()):
        self.delay = delay
        self.function = function
        self.args = args
        self.started = False
        self.cancelled = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args)


@pytest.fixture
def rng():
    return FirstCellRng()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def fake_timer():
    FakeTimer.created = []
    return FakeTimer


@pytest.fixture
def make_state():
    """Builds a SessionState around a literal grid."""

    def _make(grid, **overrides):
        config_fields = {"size": len(grid), "win_message_delay": 0, "over_message_delay": 0}
        for key in ("win_tile", "undo_limit", "merge_limit", "four_probability"):
            if key in overrides:
                config_fields[key] = overrides.pop(key)
        config = load_config(**config_fields)
        fields = {
            "grid": [list(row) for row in grid],
            "score": sum(sum(row) for row in grid),
            "undo_budget": config.undo_limit,
            "merge_budget": config.merge_limit,
            "history": HistoryStore(),
            "config": config,
        }
        fields.update(overrides)
        return SessionState(**fields)

    return _make
