"""Reference host: buffers, the active command-table slot and the input loop."""

from __future__ import annotations

from collections import deque
from contextlib import contextmanager
from typing import Any, Callable, Deque, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from modal_engine.errors import InputExhausted, InputInterrupted, ModalEngineError
from modal_engine.keymaps.models import Command, KeyPath, KeyStroke, Remap
from modal_engine.keymaps.resolver import (
    BindingValue,
    Lookup,
    ResolutionResult,
    lookup_layers,
    resolve_layers,
)
from modal_engine.keymaps.table import KeymapTable
from modal_engine.runtime import telemetry
from modal_engine.runtime.config import DEFAULT_QUIT_KEYS

from .buffer import KillRing, TextBuffer

InputSource = Callable[[str], Union[str, KeyStroke, None]]

NAMED_CHARS = {"SPC": " ", "TAB": "\t", "RET": "\n"}


def stroke_char(stroke: KeyStroke) -> Optional[str]:
    """Character a plain keystroke inserts, or ``None`` for chords."""

    if stroke.modifiers:
        return None
    if stroke.key in NAMED_CHARS:
        return NAMED_CHARS[stroke.key]
    if len(stroke.key) == 1:
        return stroke.key
    return None


def self_insert_command(engine: Any) -> None:
    session = engine.host
    stroke = session.last_command_key
    char = stroke_char(stroke) if stroke is not None else None
    if char is not None:
        session.current_buffer().insert(char)


def delete_backward_char(engine: Any) -> None:
    buffer = engine.host.current_buffer()
    if buffer.point > buffer.point_min:
        buffer.delete_range(buffer.point - 1, buffer.point)


def build_baseline_table() -> KeymapTable:
    """Dense global table: printable keys self-insert, plus RET and DEL."""

    table = KeymapTable(kind="dense", name="global")
    insert = Command("self-insert-command", self_insert_command)
    for code in range(33, 127):
        table.define_key(KeyPath((KeyStroke(chr(code)),)), insert)
    for name in NAMED_CHARS:
        table.define_key(name, insert)
    table.define_key("DEL", Command("delete-backward-char", delete_backward_char))
    return table


class EditorSession:
    """In-memory host editor the engine dispatches through.

    Keys come from ``feed`` (a FIFO) or from ``input_source``, a callable
    that may block and returns ``None`` once the input is closed. Either
    way exactly one command runs at a time.
    """

    def __init__(
        self,
        *,
        buffers: Iterable[TextBuffer] = (),
        input_source: InputSource | None = None,
        quit_keys: Iterable[str] = DEFAULT_QUIT_KEYS,
    ) -> None:
        self._buffers: Dict[str, TextBuffer] = {}
        for buffer in buffers:
            self._buffers[buffer.name] = buffer
        if not self._buffers:
            scratch = TextBuffer()
            self._buffers[scratch.name] = scratch
        self._current = next(iter(self._buffers))
        self.kill_ring = KillRing()
        self._queue: Deque[KeyStroke] = deque()
        self.input_source = input_source
        self.quit_keys = frozenset(KeyStroke.parse(key) for key in quit_keys)
        self.baseline_table: Lookup = build_baseline_table()
        self.active_table: Lookup = self.baseline_table
        self._overlays: List[Lookup] = []
        self.messages: List[str] = []
        self.errors: List[str] = []
        self.last_command_key: Optional[KeyStroke] = None
        self.this_command: Optional[Command] = None
        self._engine: Any = None
        self.logger = telemetry.get_logger("modal_engine.host")

    def attach(self, engine: Any) -> None:
        self._engine = engine

    @property
    def engine(self) -> Any:
        if self._engine is None:
            raise RuntimeError("EditorSession has no engine attached")
        return self._engine

    # buffers ----------------------------------------------------------------

    def current_buffer(self) -> TextBuffer:
        return self._buffers[self._current]

    def add_buffer(self, buffer: TextBuffer) -> TextBuffer:
        self._buffers[buffer.name] = buffer
        return buffer

    def switch_to_buffer(self, name: str) -> TextBuffer:
        if name not in self._buffers:
            self._buffers[name] = TextBuffer(name=name)
        self._current = name
        return self._buffers[name]

    def point(self) -> int:
        return self.current_buffer().point

    def selection_active(self) -> bool:
        return self.current_buffer().selection_active()

    def selection_bounds(self) -> Tuple[int, int]:
        buffer = self.current_buffer()
        if buffer.mark is None:
            raise RuntimeError("No mark set in this buffer")
        return (buffer.mark, buffer.point)

    # command tables ---------------------------------------------------------

    def install_active_table(self, table: Lookup) -> None:
        self.active_table = table
        telemetry.record_event(
            "host.install_table",
            level="debug",
            data={"table": repr(table)},
            logger_name="modal_engine.host",
        )

    @contextmanager
    def overlay(self, table: Optional[Lookup]) -> Iterator[None]:
        """Layer ``table`` above the active table for the ``with`` block."""

        if table is None:
            yield
            return
        self._overlays.append(table)
        try:
            yield
        finally:
            self._overlays.remove(table)

    @property
    def overlays(self) -> Tuple[Lookup, ...]:
        return tuple(self._overlays)

    def _layers(self) -> List[Lookup]:
        return [*reversed(self._overlays), self.active_table]

    def resolve(self, keys: KeyPath) -> ResolutionResult:
        return resolve_layers(self._layers(), keys)

    def lookup_command(self, keys: KeyPath) -> Optional[Command]:
        command = self._as_command(lookup_layers(self._layers(), keys))
        if command is None:
            return None
        remapped = self._as_command(lookup_layers(self._layers(), Remap(command.name)))
        return remapped or command

    def _as_command(self, binding: BindingValue) -> Optional[Command]:
        if isinstance(binding, Command):
            return binding
        if isinstance(binding, str) and self._engine is not None:
            return self._engine.registry.get_command(binding)
        return None

    def call_interactively(self, command: Command, *args: object) -> object:
        self.this_command = command
        return command(self.engine, *args)

    # input ------------------------------------------------------------------

    def feed(self, *keys: Union[str, KeyStroke]) -> None:
        """Queue keys; strings may hold several space-separated chords."""

        for key in keys:
            if isinstance(key, KeyStroke):
                self._queue.append(key)
            else:
                self._queue.extend(KeyPath.parse(key).strokes)

    @property
    def pending_input(self) -> int:
        return len(self._queue)

    def read_key(self, prompt: str = "") -> KeyStroke:
        if self._queue:
            stroke = self._queue.popleft()
        elif self.input_source is not None:
            raw = self.input_source(prompt)
            if raw is None:
                raise InputExhausted("Input closed")
            stroke = raw if isinstance(raw, KeyStroke) else KeyStroke.parse(raw)
        else:
            raise InputExhausted("No pending input")
        if stroke in self.quit_keys:
            raise InputInterrupted("Quit")
        return stroke

    def read_key_sequence(self, prompt: str = "") -> KeyPath:
        """Read chords until they form a complete binding or can't."""

        strokes: List[KeyStroke] = []
        while True:
            strokes.append(self.read_key(prompt if not strokes else ""))
            keys = KeyPath(tuple(strokes))
            if self.resolve(keys).complete:
                self.last_command_key = strokes[-1]
                return keys

    def read_char(self, prompt: str = "") -> str:
        stroke = self.read_key(prompt)
        return stroke_char(stroke) or stroke.token

    def read_line(self, prompt: str = "") -> str:
        chars: List[str] = []
        while True:
            stroke = self.read_key(prompt)
            if stroke.key == "RET" and not stroke.modifiers:
                return "".join(chars)
            if stroke.key == "DEL" and not stroke.modifiers:
                if chars:
                    chars.pop()
                continue
            char = stroke_char(stroke)
            if char is not None:
                chars.append(char)

    def confirm(self, prompt: str) -> bool:
        self.notice(f"{prompt}(y or n)")
        while True:
            stroke = self.read_key(prompt)
            if stroke.token == "y":
                return True
            if stroke.token == "n":
                return False

    # messages ---------------------------------------------------------------

    def notice(self, message: str) -> None:
        self.messages.append(message)
        self.logger.info(message)

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.logger.warning(message)

    # command loop -----------------------------------------------------------

    def dispatch_once(self) -> bool:
        """Run one key sequence; ``False`` once the input is exhausted."""

        try:
            keys = self.read_key_sequence()
        except InputExhausted:
            return False
        except InputInterrupted as exc:
            self.error(str(exc))
            return True

        command = self.lookup_command(keys)
        if command is None:
            self.error(f"{keys.text} is undefined")
            return True
        try:
            self.call_interactively(command)
        except ModalEngineError as exc:
            self.error(str(exc))
        return True

    def process_input(self) -> int:
        """Dispatch until the input runs dry; returns the number of sequences."""

        handled = 0
        while self.dispatch_once():
            handled += 1
        return handled


__all__ = [
    "EditorSession",
    "InputSource",
    "build_baseline_table",
    "stroke_char",
]
