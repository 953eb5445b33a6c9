from __future__ import annotations

from typing import List, Optional

import pytest

from modal_engine.adapters.textual import (
    BlockingKeyQueue,
    TextualModalAdapter,
    TextualUIHooks,
    translate_key,
)
from modal_engine.engine import ModalEngine
from modal_engine.host import EditorSession, TextBuffer
from modal_engine.runtime import EngineConfig


def make_engine(text: str = "hello world") -> ModalEngine:
    session = EditorSession(buffers=[TextBuffer.from_text(text)])
    engine = ModalEngine(session, config=EngineConfig(), load_defaults=True)
    engine.switch_to("normal")
    return engine


@pytest.mark.parametrize(
    ("key", "character", "expected"),
    [
        ("a", "a", "a"),
        ("dollar_sign", "$", "$"),
        ("ctrl+x", "\x18", "C-x"),
        ("escape", "\x1b", "ESC"),
        ("enter", "\r", "RET"),
        ("space", " ", "SPC"),
        ("tab", "\t", "TAB"),
        ("backspace", "\x7f", "DEL"),
        ("alt+f", None, "M-f"),
        ("ctrl+alt+x", None, "C-M-x"),
        ("shift+tab", None, "S-TAB"),
        ("A", "A", "A"),
        ("f1", None, "f1"),
    ],
)
def test_translate_key(key: str, character: Optional[str], expected: str) -> None:
    stroke = translate_key(key, character)

    assert stroke is not None
    assert stroke.token == expected


def test_translate_key_ignores_empty_names() -> None:
    assert translate_key("") is None


def test_closed_queue_keeps_returning_none() -> None:
    keys = BlockingKeyQueue()
    keys.put("a")
    keys.close()
    keys.put("b")

    assert keys() == "a"
    assert keys() is None
    assert keys() is None


def test_adapter_dispatches_queued_keys_and_refreshes() -> None:
    engine = make_engine()
    buffers: List[str] = []
    statuses: List[str] = []
    messages: List[str] = []
    hooks = TextualUIHooks(
        update_buffer=lambda buffer: buffers.append(buffer.text),
        update_status=statuses.append,
        show_message=messages.append,
    )
    adapter = TextualModalAdapter(engine, hooks)

    adapter.handle_textual_key("i", character="i")
    adapter.handle_textual_key("a", character="a")
    adapter.handle_textual_key("escape", character="\x1b")
    adapter.close()
    handled = adapter.run()

    assert handled == 3
    assert buffers[-1] == "ahello world"
    assert statuses[-1] == "[normal] *scratch* @ 1"
    assert "Keystate: insert" in messages


def test_adapter_relays_bus_events() -> None:
    engine = make_engine()
    events: List[tuple[str, object | None]] = []
    hooks = TextualUIHooks(
        update_buffer=lambda buffer: None,
        handle_event=lambda name, payload: events.append((name, payload)),
    )
    adapter = TextualModalAdapter(engine, hooks)

    for key in ("d", "w"):
        adapter.handle_textual_key(key, character=key)
    adapter.close()
    adapter.run()

    assert [name for name, _ in events] == ["operator.done"]
    assert engine.host.current_buffer().text == " world"


def test_adapter_surfaces_errors() -> None:
    engine = make_engine()
    messages: List[str] = []
    hooks = TextualUIHooks(update_buffer=lambda buffer: None, show_message=messages.append)
    adapter = TextualModalAdapter(engine, hooks)

    adapter.handle_textual_key("x", character="x")
    adapter.close()
    adapter.run()

    assert messages == ["x is undefined"]
