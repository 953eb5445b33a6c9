"""Keystate activation and the operator/motion pipeline."""

from .bus import ModeBus
from .keystate_manager import DISABLED_MESSAGE, KeystateManager
from .operator_pipeline import (
    MotionDefinition,
    OperatorDefinition,
    OperatorInvocation,
    OperatorPipeline,
    Range,
)

__all__ = [
    "ModeBus",
    "KeystateManager",
    "DISABLED_MESSAGE",
    "OperatorPipeline",
    "OperatorDefinition",
    "OperatorInvocation",
    "MotionDefinition",
    "Range",
]
