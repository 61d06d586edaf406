# judgment_engine/config.py
from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

# Load environment variables from a .env file if present.
load_dotenv()

DEFAULT_TRICK_RESOLUTION_DELAY = 2.0
DEFAULT_PORT = 3001
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false); got '{raw}'")


@dataclass(frozen=True)
class Settings:
    """
    Runtime knobs for the game service.

    trick_resolution_delay: seconds a decided trick stays on the table
        before the next trick may start.
    auto_drive_ai: let AI participants act automatically after every
        human action and after every cleared trick.
    log_level: name of a `logging` level, applied by `configure_logging`
        when a `GameService` is built.
    port: listening port for the transport layer; unused by the engine.
    """
    trick_resolution_delay: float = DEFAULT_TRICK_RESOLUTION_DELAY
    auto_drive_ai: bool = True
    log_level: str = "INFO"
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        delay = self.trick_resolution_delay
        if not math.isfinite(delay) or delay < 0:
            raise ValueError(
                f"trick_resolution_delay must be a finite number >= 0; got {delay}"
            )
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be between 1 and 65535; got {self.port}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        raw_delay = env.get("JUDGMENT_TRICK_DELAY_SECONDS")
        raw_auto = env.get("JUDGMENT_AUTO_DRIVE_AI")
        raw_port = env.get("PORT")

        try:
            delay = (
                float(raw_delay)
                if raw_delay
                else DEFAULT_TRICK_RESOLUTION_DELAY
            )
        except ValueError:
            raise ValueError(
                f"JUDGMENT_TRICK_DELAY_SECONDS must be a number; got '{raw_delay}'"
            ) from None
        try:
            port = int(raw_port) if raw_port else DEFAULT_PORT
        except ValueError:
            raise ValueError(f"PORT must be an integer; got '{raw_port}'") from None

        return cls(
            trick_resolution_delay=delay,
            auto_drive_ai=(
                _parse_bool("JUDGMENT_AUTO_DRIVE_AI", raw_auto)
                if raw_auto
                else True
            ),
            log_level=(env.get("JUDGMENT_LOG_LEVEL") or "INFO").upper(),
            port=port,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
