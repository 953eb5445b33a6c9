"""Engine configuration sourced from keyword arguments or the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "MODAL_ENGINE_"
DEFAULT_QUIT_KEYS = ("C-g",)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Settings the engine reads once at construction time."""

    default_keystate: Optional[str] = None
    quit_keys: tuple[str, ...] = DEFAULT_QUIT_KEYS
    motion_prompt: str = "{operator} motion: "

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        default = env.get(f"{ENV_PREFIX}DEFAULT_KEYSTATE") or None
        raw_quit = env.get(f"{ENV_PREFIX}QUIT_KEYS")
        if raw_quit:
            quit_keys = tuple(key.strip() for key in raw_quit.split(",") if key.strip())
        else:
            quit_keys = DEFAULT_QUIT_KEYS
        return cls(default_keystate=default, quit_keys=quit_keys)


__all__ = ["EngineConfig"]
