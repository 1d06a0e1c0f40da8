import pytest

from config import DEFAULT_CONFIG, load_config
from core import InvalidConfig


def test_defaults():
    assert DEFAULT_CONFIG.size == 4
    assert DEFAULT_CONFIG.win_tile == 2048
    assert DEFAULT_CONFIG.undo_limit == 9
    assert DEFAULT_CONFIG.merge_limit == 3
    assert DEFAULT_CONFIG.four_probability == pytest.approx(0.1)
    assert DEFAULT_CONFIG.start_tiles == 2


def test_overrides():
    config = load_config(size=5, win_tile=64, undo_limit=0, four_probability=1.0)
    assert (config.size, config.win_tile, config.undo_limit) == (5, 64, 0)


@pytest.mark.parametrize("overrides", [
    {"size": 0},
    {"size": -3},
    {"undo_limit": -1},
    {"merge_limit": -1},
    {"four_probability": -0.1},
    {"four_probability": 1.5},
    {"win_tile": 1000},
    {"win_tile": 1},
    {"size": 2, "start_tiles": 5},
    {"swipe_threshold": -1},
])
def test_invalid_settings(overrides):
    with pytest.raises(InvalidConfig):
        load_config(**overrides)


def test_invalid_config_is_a_value_error():
    with pytest.raises(ValueError):
        load_config(size=0)
