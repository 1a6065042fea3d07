"""
Configuration - Settings read from the environment.

    LUDO_ENV          development | production       (development)
    LUDO_HOST         bind address                   (0.0.0.0)
    LUDO_PORT         listen port                    (8080)
    LUDO_VARIANT      classic | trio                 (classic)
    LUDO_SEAT_COUNT   seats that auto-start a game   (all colors of the variant)
    LUDO_MIN_SEATS    fewest seats a game runs with  (2)
    LUDO_BOT_DELAY    seconds before a bot acts      (0.35)
    LUDO_PASS_DELAY   seconds before a dead roll passes (0.8)
    LUDO_BOT_POLICY   greedy | first | random        (greedy)
    LUDO_LOG_LEVEL    logging level name             (INFO)
    ALLOWED_ORIGINS   comma-separated CORS origins   (*)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

from .bots import POLICIES
from .engine_core.board import get_layout
from .session.manager import SessionConfig

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class Settings:
    env: str = "development"
    host: str = "0.0.0.0"
    port: int = 8080
    variant: str = "classic"
    seat_count: int | None = None
    min_seats: int = 2
    bot_delay: float = 0.35
    pass_delay: float = 0.8
    bot_policy: str = "greedy"
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        get_layout(self.variant)
        if self.bot_policy not in POLICIES:
            raise ValueError(
                f"Unknown bot policy '{self.bot_policy}'. Supported: {sorted(POLICIES)}"
            )
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValueError(f"Unknown log level '{self.log_level}'")

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from environment variables."""
        return cls(
            env=os.getenv("LUDO_ENV", "development"),
            host=os.getenv("LUDO_HOST", "0.0.0.0"),
            port=_int_env("LUDO_PORT", 8080),
            variant=os.getenv("LUDO_VARIANT", "classic"),
            seat_count=_int_env("LUDO_SEAT_COUNT", None),
            min_seats=_int_env("LUDO_MIN_SEATS", 2),
            bot_delay=_float_env("LUDO_BOT_DELAY", 0.35),
            pass_delay=_float_env("LUDO_PASS_DELAY", 0.8),
            bot_policy=os.getenv("LUDO_BOT_POLICY", "greedy"),
            log_level=os.getenv("LUDO_LOG_LEVEL", "INFO"),
            allowed_origins=[
                origin.strip()
                for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
                if origin.strip()
            ],
        )

    def session_config(self) -> SessionConfig:
        """Rules and pacing for every session this process creates."""
        return SessionConfig(
            layout=get_layout(self.variant),
            seat_count=self.seat_count,
            min_seats=self.min_seats,
            bot_delay=self.bot_delay,
            pass_delay=self.pass_delay,
        )


def configure_logging(level: str = "INFO"):
    """Process-wide logging setup; call once at startup."""
    logging.basicConfig(format=LOG_FORMAT, level=level.upper())
