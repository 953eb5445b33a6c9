"""Reference host editor the engine dispatches through."""

from .buffer import BufferValidationError, KillRing, TextBuffer
from .protocol import HostDispatcher
from .session import EditorSession

__all__ = [
    "BufferValidationError",
    "KillRing",
    "TextBuffer",
    "HostDispatcher",
    "EditorSession",
]
