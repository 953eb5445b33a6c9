"""Runtime services: telemetry and environment configuration."""

from . import telemetry
from .config import EngineConfig

__all__ = ["telemetry", "EngineConfig"]
