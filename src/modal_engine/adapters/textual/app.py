"""Executable Textual app that hosts the modal engine."""

from __future__ import annotations

import argparse
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from textual import events
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import Footer, Header, Static

from modal_engine.engine import ModalEngine
from modal_engine.host import EditorSession, TextBuffer
from modal_engine.runtime import EngineConfig, telemetry

from .controller import BlockingKeyQueue, TextualModalAdapter, TextualUIHooks


def create_default_engine(
    keys: BlockingKeyQueue,
    *,
    text: str = "",
    name: str = "*scratch*",
    config: EngineConfig | None = None,
) -> ModalEngine:
    """Build a session-backed engine with the stock keystates active."""

    session = EditorSession(
        buffers=[TextBuffer.from_text(text, name=name)],
        input_source=keys,
        quit_keys=(config or EngineConfig.from_env()).quit_keys,
    )
    engine = ModalEngine(session, config=config, load_defaults=True)
    engine.switch_to(engine.default_keystate)
    return engine


@dataclass
class UIState:
    buffer_text: str = ""
    status_text: str = ""
    message_text: str = ""


class ModalEditorApp(App[None]):
    """Minimal Textual UI embedding the modal engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 1 1;
		content-align: left top;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#message-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, text: str = "", name: str = "*scratch*") -> None:
        super().__init__()
        self._state = UIState()
        self._text = text
        self._buffer_name = name
        self.key_queue = BlockingKeyQueue()
        self.engine: ModalEngine | None = None
        self.adapter: TextualModalAdapter | None = None
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None
        self._message_widget: Static | None = None
        self._ui_thread: int | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view")
            yield self._buffer_widget
        self._status_widget = Static("", id="status-line")
        self._message_widget = Static("", id="message-line")
        yield self._status_widget
        yield self._message_widget
        yield Footer()

    async def on_mount(self) -> None:
        self._ui_thread = threading.get_ident()
        self.engine = create_default_engine(
            self.key_queue, text=self._text, name=self._buffer_name
        )
        self.adapter = TextualModalAdapter(
            self.engine, self._threaded_hooks(), self.key_queue
        )
        self.run_worker(
            self.adapter.run, name="modal-dispatch", thread=True, exclusive=True
        )

    async def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter or event.key == "ctrl+q":
            return
        if self.adapter.handle_textual_key(event.key, character=event.character):
            event.stop()

    def _threaded_hooks(self) -> TextualUIHooks:
        # the dispatch loop runs on a worker thread; the first refresh does not
        def relay(callback: Any) -> Any:
            def call(*args: Any) -> None:
                if threading.get_ident() == self._ui_thread:
                    callback(*args)
                else:
                    self.call_from_thread(callback, *args)

            return call

        return TextualUIHooks(
            update_buffer=relay(self._update_buffer),
            update_status=relay(self._update_status),
            show_message=relay(self._show_message),
            log=relay(self._log_line),
        )

    def _update_buffer(self, buffer: TextBuffer) -> None:
        text = buffer.text
        self._state.buffer_text = f"{text[: buffer.point]}|{text[buffer.point :]}"
        if self._buffer_widget:
            self._buffer_widget.update(self._state.buffer_text)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _show_message(self, message: str) -> None:
        self._state.message_text = message
        if self._message_widget:
            self._message_widget.update(message)

    def _log_line(self, line: str) -> None:
        self.log(line)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the modal engine Textual demo.")
    parser.add_argument("path", nargs="?", help="File to load into the buffer")
    parser.add_argument(
        "--log-preset",
        default=os.environ.get("MODAL_ENGINE_LOG_PRESET"),
        choices=("development", "production", "quiet"),
        help="telelog preset to configure before starting",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    text = ""
    name = "*scratch*"
    if args.path:
        path = Path(args.path)
        text = path.read_text(encoding="utf-8") if path.exists() else ""
        name = path.name
    ModalEditorApp(text=text, name=name).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
