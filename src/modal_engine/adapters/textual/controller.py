"""Textual adapter: key translation, a blocking key queue and UI callbacks."""

from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Union

from modal_engine.host.buffer import TextBuffer
from modal_engine.keymaps.models import KeyStroke
from modal_engine.runtime import telemetry

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.engine import ModalEngine

MODIFIER_NAMES = {"ctrl": "C", "alt": "M", "meta": "M", "shift": "S", "super": "s"}

NAMED_KEYS = {
    "escape": "ESC",
    "enter": "RET",
    "return": "RET",
    "space": "SPC",
    "tab": "TAB",
    "backspace": "DEL",
    "delete": "deletechar",
}

RELAYED_EVENTS = (
    "keystate.switch",
    "keystate.disabled",
    "operator.done",
    "operator.failed",
)


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[TextBuffer], None]
    update_status: Callable[[str], None] = _noop
    show_message: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


def translate_key(key: str, character: Optional[str] = None) -> Optional[KeyStroke]:
    """Turn a Textual key name such as ``ctrl+x`` into a ``KeyStroke``."""

    if not key:
        return None
    parts = key.split("+")
    base = parts[-1]
    modifiers = [MODIFIER_NAMES[part] for part in parts[:-1] if part in MODIFIER_NAMES]
    if base in NAMED_KEYS:
        return KeyStroke(NAMED_KEYS[base], tuple(modifiers))
    chorded = [mod for mod in modifiers if mod != "S"]
    if (
        not chorded
        and character
        and len(character) == 1
        and character.isprintable()
        and not character.isspace()
    ):
        return KeyStroke(character)
    return KeyStroke(base, tuple(modifiers))


class BlockingKeyQueue:
    """Thread-safe key source for ``EditorSession``; ``None`` once closed."""

    _CLOSED = object()

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self.closed = False

    def put(self, stroke: Union[str, KeyStroke]) -> None:
        if self.closed:
            return
        self._queue.put(stroke)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put(self._CLOSED)

    def __call__(self, prompt: str = "") -> Union[str, KeyStroke, None]:
        item = self._queue.get()
        if item is self._CLOSED:
            # leave the marker for any later reader
            self._queue.put(item)
            return None
        return item  # type: ignore[return-value]


class TextualModalAdapter:
    """Feeds translated Textual keys to the engine's session and refreshes the UI.

    ``run`` blocks on the key queue, so a host calls it from a worker thread
    and marshals the hook calls back to its event loop.
    """

    def __init__(
        self,
        engine: "ModalEngine",
        hooks: TextualUIHooks,
        keys: BlockingKeyQueue | None = None,
    ) -> None:
        self.engine = engine
        self.session = engine.host
        self.hooks = hooks
        self.keys = keys or BlockingKeyQueue()
        self.session.input_source = self.keys
        self.logger = telemetry.get_logger("modal_engine.adapters.textual")
        self._message_count = len(self.session.messages)
        self._error_count = len(self.session.errors)
        self._subscribe_events()
        self._refresh()

    def handle_textual_key(
        self, key: str, *, character: Optional[str] = None
    ) -> Optional[KeyStroke]:
        """Translate and queue one key; returns the stroke that was queued."""

        stroke = translate_key(key, character)
        if stroke is None:
            return None
        self.hooks.log(f"key -> {stroke.token}")
        self.keys.put(stroke)
        return stroke

    def run(self) -> int:
        """Dispatch queued keys until the queue closes."""

        handled = 0
        while self.session.dispatch_once():
            handled += 1
            self._refresh()
        self.logger.debug(f"Key queue closed after {handled} sequence(s)")
        return handled

    def close(self) -> None:
        self.keys.close()

    def status_line(self) -> str:
        buffer = self.session.current_buffer()
        keystate = self.engine.active_keystate or "modal off"
        return f"[{keystate}] {buffer.name} @ {buffer.point}"

    def _subscribe_events(self) -> None:
        for event in RELAYED_EVENTS:
            self.engine.bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self.hooks.log(f"event -> {name} {payload!r}")
        self.hooks.handle_event(name, payload)
        if name.startswith("keystate"):
            self.hooks.update_status(self.status_line())

    def _refresh(self) -> None:
        self.hooks.update_buffer(self.session.current_buffer())
        self.hooks.update_status(self.status_line())
        errors = self.session.errors
        messages = self.session.messages
        if len(errors) > self._error_count:
            self.hooks.show_message(errors[-1])
        elif len(messages) > self._message_count:
            self.hooks.show_message(messages[-1])
        self._error_count = len(errors)
        self._message_count = len(messages)


__all__ = [
    "BlockingKeyQueue",
    "TextualModalAdapter",
    "TextualUIHooks",
    "translate_key",
]
