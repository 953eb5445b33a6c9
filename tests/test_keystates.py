from __future__ import annotations

from typing import List, Tuple

import pytest

from modal_engine.engine import ModalEngine
from modal_engine.errors import NoValidKeystate
from modal_engine.host import EditorSession, TextBuffer
from modal_engine.keymaps import Command, ConflictPolicy
from modal_engine.modes import DISABLED_MESSAGE
from modal_engine.runtime import EngineConfig


def make_engine(*, default: str | None = None) -> Tuple[ModalEngine, EditorSession]:
    session = EditorSession(buffers=[TextBuffer.from_text("hello world")])
    engine = ModalEngine(session, config=EngineConfig(default_keystate=default))
    return engine, session


def make_command(name: str) -> Command:
    return Command(name, lambda *args: None)


def define_simple_keystate(engine: ModalEngine, name: str, key: str, command: Command) -> None:
    engine.define_keymap(f"{name}-map", [(key, command)])
    engine.define_keystate(name, [f"{name}-map"])


def test_switch_installs_composed_table_over_baseline() -> None:
    engine, session = make_engine()
    command = make_command("cmd")
    define_simple_keystate(engine, "alpha", "C-a", command)

    composed = engine.switch_to("alpha")

    assert engine.active_keystate == "alpha"
    assert session.active_table is composed
    assert composed.lookup("C-a") is command
    assert composed.parent is session.baseline_table
    assert session.messages[-1] == "Keystate: alpha"


def test_unknown_request_falls_back_to_default() -> None:
    engine, session = make_engine(default="alpha")
    define_simple_keystate(engine, "alpha", "C-a", make_command("cmd"))

    engine.switch_to("missing")

    assert engine.active_keystate == "alpha"


def test_no_valid_keystate_resets_active_and_keeps_table() -> None:
    engine, session = make_engine(default="also-missing")
    define_simple_keystate(engine, "alpha", "C-a", make_command("cmd"))
    installed = engine.switch_to("alpha")

    with pytest.raises(NoValidKeystate):
        engine.switch_to("missing")

    assert engine.active_keystate is None
    assert session.active_table is installed


def test_no_default_and_no_request_match() -> None:
    engine, _ = make_engine()

    with pytest.raises(NoValidKeystate) as excinfo:
        engine.switch_to("missing")

    assert excinfo.value.requested == "missing"
    assert excinfo.value.default is None


def test_empty_request_disables_modal_dispatch() -> None:
    engine, session = make_engine()
    define_simple_keystate(engine, "alpha", "C-a", make_command("cmd"))
    engine.switch_to("alpha")

    assert engine.switch_to(None) is None

    assert engine.active_keystate is None
    assert session.active_table is session.baseline_table
    assert session.messages[-1] == DISABLED_MESSAGE


def test_activation_command_switches_keystate() -> None:
    engine, _ = make_engine()
    define_simple_keystate(engine, "alpha", "C-a", make_command("cmd"))

    engine.call("alpha")

    assert engine.active_keystate == "alpha"
    assert engine.registry.get_command("alpha").kind == "keystate"


def test_redefining_active_keystate_reinstalls_it() -> None:
    engine, session = make_engine()
    first, second = make_command("first"), make_command("second")
    engine.define_keymap("one", [("C-a", first)])
    engine.define_keymap("two", [("C-a", second)])
    engine.define_keystate("alpha", ["one"])
    engine.switch_to("alpha")

    engine.define_keystate("alpha", ["two"], on_conflict=ConflictPolicy.overwrite())

    assert session.active_table.lookup("C-a") is second


def test_redefinition_prompts_through_the_host() -> None:
    engine, session = make_engine()
    engine.define_keymap("one")
    session.feed("y")

    engine.define_keymap("one", [("C-a", make_command("cmd"))])

    assert "C-a" in engine.registry.get_keymap("one")
    assert session.messages[-1].endswith("(y or n)")


def test_switch_events_reach_the_bus() -> None:
    engine, _ = make_engine()
    define_simple_keystate(engine, "alpha", "C-a", make_command("cmd"))
    seen: List[object] = []
    engine.bus.subscribe("keystate.switch", seen.append)
    engine.bus.subscribe("keystate.disabled", lambda _payload: seen.append("off"))

    engine.switch_to("alpha")
    engine.switch_to(None)

    assert seen == ["alpha", "off"]


def test_default_keystate_is_settable() -> None:
    engine, _ = make_engine()
    define_simple_keystate(engine, "alpha", "C-a", make_command("cmd"))
    engine.default_keystate = "alpha"

    engine.switch_to("nope")

    assert engine.active_keystate == "alpha"
