from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from pastestack.errors import ConfigurationError

ENV_PREFIX = "PASTESTACK_"
DEFAULT_CAPACITY = 10
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_PASTE_DELAY = 0.05

BackendName = Literal["auto", "memory", "macos", "windows", "linux"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _to_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    paste_delay: float = Field(default=DEFAULT_PASTE_DELAY, ge=0)
    capacity: int = Field(default=DEFAULT_CAPACITY, gt=0)
    simulate_paste: bool = True
    backend: BackendName = "auto"
    log_level: LogLevel = "INFO"

    @classmethod
    def from_env(cls, *, env_path: Optional[Path] = None, **overrides) -> "Settings":
        """Build settings from ``PASTESTACK_*`` variables and an optional ``.env``.

        Keyword overrides (``None`` values are ignored) win over the
        environment, so CLI flags can be layered on top.
        """
        load_dotenv(dotenv_path=env_path, override=False)

        values = {}
        poll_raw = os.getenv(f"{ENV_PREFIX}POLL_INTERVAL")
        delay_raw = os.getenv(f"{ENV_PREFIX}PASTE_DELAY")
        backend = os.getenv(f"{ENV_PREFIX}BACKEND")
        log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")

        if poll_raw:
            values["poll_interval"] = poll_raw
        if delay_raw:
            values["paste_delay"] = delay_raw
        if backend:
            values["backend"] = backend.strip().lower()
        if log_level:
            values["log_level"] = log_level.strip().upper()
        values["simulate_paste"] = _to_bool(
            os.getenv(f"{ENV_PREFIX}SIMULATE_PASTE"), default=True)

        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError("Invalid PasteStack settings", e) from e
