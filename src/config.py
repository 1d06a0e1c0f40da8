# config.py
# Validated game settings shared by the session engine, the API and the CLI.

import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from core import InvalidConfig

logger = logging.getLogger(__name__)


class GameConfig(BaseModel):
    """Settings for a game session. Instances are immutable."""
    model_config = ConfigDict(frozen=True)

    size: int = Field(
        default=4,
        ge=1,
        description="Dimension N of the N x N board."
    )
    win_tile: int = Field(
        default=2048,
        ge=2,
        description="Tile value that wins the game when a merge creates it."
    )
    undo_limit: int = Field(
        default=9,
        ge=0,
        description="Number of undos available per game."
    )
    merge_limit: int = Field(
        default=3,
        ge=0,
        description="Number of magic merge power-ups available per game."
    )
    four_probability: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Probability that a spawned tile is a 4 rather than a 2."
    )
    start_tiles: int = Field(
        default=2,
        ge=0,
        description="Tiles spawned when a game starts."
    )
    swipe_threshold: float = Field(
        default=30,
        ge=0,
        description="Minimum swipe length, in pixels, that counts as a move."
    )
    win_message_delay: float = Field(
        default=0.3,
        ge=0,
        description="Seconds to wait before showing the win message."
    )
    over_message_delay: float = Field(
        default=0.5,
        ge=0,
        description="Seconds to wait before showing the game over message."
    )

    @field_validator("win_tile")
    @classmethod
    def _win_tile_is_power_of_two(cls, value: int) -> int:
        if value & (value - 1):
            raise ValueError("win_tile must be a power of two")
        return value

    @model_validator(mode="after")
    def _start_tiles_fit_board(self) -> "GameConfig":
        if self.start_tiles > self.size * self.size:
            raise ValueError("start_tiles cannot exceed the number of cells")
        return self


def load_config(**overrides) -> GameConfig:
    """
    Builds a GameConfig from keyword overrides.
    Raises:
        InvalidConfig: If any setting is out of range.
    """
    try:
        return GameConfig(**overrides)
    except ValidationError as e:
        logger.debug("Rejected game config %r: %s", overrides, e)
        raise InvalidConfig(str(e)) from e


DEFAULT_CONFIG = GameConfig()
