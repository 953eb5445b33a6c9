"""Interface the engine consumes from its host editor."""

from __future__ import annotations

from typing import Any, ContextManager, Optional, Protocol, Tuple

from modal_engine.keymaps.models import Command, KeyPath
from modal_engine.keymaps.resolver import Lookup

from .buffer import KillRing, TextBuffer


class HostDispatcher(Protocol):
    """Command-table slot, buffer queries and blocking reads of a host editor.

    Reads raise ``InputInterrupted`` when the user cancels.
    """

    baseline_table: Lookup
    kill_ring: KillRing

    def attach(self, engine: Any) -> None: ...

    def current_buffer(self) -> TextBuffer: ...

    def point(self) -> int: ...

    def selection_active(self) -> bool: ...

    def selection_bounds(self) -> Tuple[int, int]: ...

    def install_active_table(self, table: Lookup) -> None: ...

    def overlay(self, table: Optional[Lookup]) -> ContextManager[None]: ...

    def read_key_sequence(self, prompt: str = "") -> KeyPath: ...

    def read_char(self, prompt: str = "") -> str: ...

    def read_line(self, prompt: str = "") -> str: ...

    def confirm(self, prompt: str) -> bool: ...

    def lookup_command(self, keys: KeyPath) -> Optional[Command]: ...

    def call_interactively(self, command: Command, *args: object) -> object: ...

    def notice(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


__all__ = ["HostDispatcher"]
