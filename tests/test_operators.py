from __future__ import annotations

from typing import List, Tuple

import pytest

from modal_engine.engine import ModalEngine
from modal_engine.errors import InvalidArgument, InvalidKeymap, InvalidMotion, ModalEngineError
from modal_engine.host import EditorSession, TextBuffer
from modal_engine.keymaps import KeymapTable
from modal_engine.keymaps.defaults import load_default_keystates
from modal_engine.runtime import EngineConfig

TEXT = "abcdefghijklmnopqrstuvwxyz"


def make_engine(text: str = TEXT, *, point: int = 0) -> Tuple[ModalEngine, EditorSession]:
    session = EditorSession(buffers=[TextBuffer.from_text(text, point=point)])
    engine = ModalEngine(session, config=EngineConfig())
    return engine, session


def make_recorder(engine: ModalEngine, name: str = "record", extra=()) -> List[Tuple[int, int]]:
    calls: List[Tuple[int, int]] = []
    engine.define_operator(name, extra, lambda _engine, beg, end: calls.append((beg, end)))
    return calls


def back_six(engine: ModalEngine) -> None:
    buffer = engine.host.current_buffer()
    buffer.goto_char(buffer.point - 6)


def install_motion_keystate(engine: ModalEngine, *bindings: Tuple[str, str]) -> None:
    engine.define_keymap("test-motions", bindings)
    engine.define_keystate("test", ["test-motions"])
    engine.switch_to("test")


def test_motion_range_runs_from_start_to_final_point() -> None:
    engine, session = make_engine(point=10)
    calls = make_recorder(engine)
    engine.define_motion("back-six", back_six)
    install_motion_keystate(engine, ("j", "back-six"))
    session.feed("j")

    engine.call("record")

    assert calls == [(10, 4)]


def test_explicit_range_is_passed_verbatim() -> None:
    engine, _ = make_engine(point=10)
    calls = make_recorder(engine)

    engine.call("record", 10, 4)

    assert calls == [(10, 4)]


def test_motion_reported_range_wins_over_point() -> None:
    engine, session = make_engine(point=3)
    calls = make_recorder(engine)
    engine.define_motion("span", lambda e: e.host.current_buffer().goto_char(20) and (1, 8))
    install_motion_keystate(engine, ("s", "span"))
    session.feed("s")

    engine.call("record")

    assert calls == [(1, 8)]


def test_selection_skips_the_motion_read(monkeypatch: pytest.MonkeyPatch) -> None:
    engine, session = make_engine(point=7)
    calls = make_recorder(engine, extra=[("x", "forward-char")])
    session.current_buffer().set_mark(2)
    installed: List[object] = []
    original_overlay = session.overlay

    def fail_read(prompt: str = "") -> None:
        raise AssertionError("motion read during an active selection")

    def spy_overlay(table):
        installed.append(table)
        return original_overlay(table)

    monkeypatch.setattr(session, "read_key_sequence", fail_read)
    monkeypatch.setattr(session, "overlay", spy_overlay)

    engine.call("record")

    assert calls == [(2, 7)]
    assert installed == []
    assert engine.operators.last_invocation.state == "done"


def test_motion_leaving_the_buffer_is_rejected() -> None:
    engine, session = make_engine(point=5)
    calls = make_recorder(engine)
    engine.define_motion("elsewhere", lambda e: e.host.switch_to_buffer("other"))
    install_motion_keystate(engine, ("o", "elsewhere"))
    session.feed("o")

    with pytest.raises(InvalidMotion):
        engine.call("record")

    assert calls == []
    assert engine.operators.last_invocation.state == "failed"


def test_unbound_motion_key_is_rejected() -> None:
    engine, session = make_engine()
    calls = make_recorder(engine)
    session.feed("C-z")

    with pytest.raises(InvalidMotion) as excinfo:
        engine.call("record")

    assert calls == []
    assert excinfo.value.keys.text == "C-z"


def test_overlay_is_active_only_during_the_motion_read(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    engine, session = make_engine(point=2)
    during_read: List[int] = []
    during_motion: List[int] = []
    original_read = session.read_key_sequence

    def counting_read(prompt: str = ""):
        during_read.append(len(session.overlays))
        return original_read(prompt)

    def to_five(e: ModalEngine) -> None:
        during_motion.append(len(e.host.overlays))
        e.host.current_buffer().goto_char(5)

    monkeypatch.setattr(session, "read_key_sequence", counting_read)
    engine.define_motion("to-five", to_five)
    calls = make_recorder(engine, extra=[("x", "to-five")])
    session.feed("x")

    engine.call("record")

    assert during_read == [1]
    assert during_motion == [0]
    assert session.overlays == ()
    assert calls == [(2, 5)]


def test_extra_motions_accept_tables() -> None:
    engine, session = make_engine(point=10)
    engine.define_motion("back-six", back_six)
    table = KeymapTable()
    table.define_key("j", "back-six")
    calls = make_recorder(engine, extra=[table])
    session.feed("j")

    engine.call("record")

    assert calls == [(10, 4)]


def test_extra_motions_accept_keymap_names() -> None:
    engine, session = make_engine(point=10)
    engine.define_motion("back-six", back_six)
    engine.define_keymap("jumps", [("j", "back-six")])
    calls = make_recorder(engine, extra=["jumps"])
    session.feed("j")

    engine.call("record")

    assert calls == [(10, 4)]


@pytest.mark.parametrize("item", [42, "no-such-keymap"])
def test_malformed_extra_motions_are_invalid(item: object) -> None:
    engine, session = make_engine()
    calls = make_recorder(engine, extra=[item])
    session.feed("j")

    with pytest.raises(InvalidKeymap):
        engine.call("record")

    assert calls == []
    assert session.overlays == ()


def test_extra_motions_merge_shared_prefixes() -> None:
    engine, session = make_engine(point=10)
    engine.define_motion("back-six", back_six)
    engine.define_motion("forward-one", lambda e: e.host.current_buffer().goto_char(11))
    first, second = KeymapTable(), KeymapTable()
    first.define_key("f", "forward-one")
    second.define_key("g", "back-six")
    upper, lower = KeymapTable(), KeymapTable()
    upper.define_key("C-x", first)
    lower.define_key("C-x", second)
    calls = make_recorder(engine, extra=[upper, lower])
    session.feed("C-x g")

    engine.call("record")

    assert calls == [(10, 4)]


def test_remapped_unbound_key_is_an_invalid_motion() -> None:
    engine, session = make_engine(point=3)
    load_default_keystates(engine, activate=True)
    session.feed("x")

    with pytest.raises(InvalidMotion) as excinfo:
        engine.call("delete")

    assert excinfo.value.keys.text == "x"
    assert session.current_buffer().text == TEXT


def test_overlay_is_released_when_the_read_is_interrupted() -> None:
    engine, session = make_engine()
    calls = make_recorder(engine, extra=[("x", "forward-char")])
    session.feed("C-g")

    with pytest.raises(InvalidMotion):
        engine.call("record")

    assert session.overlays == ()
    assert calls == []


def test_extra_motions_shadow_the_active_table() -> None:
    engine, session = make_engine(point=10)
    engine.define_motion("back-six", back_six)
    engine.define_motion("forward-one", lambda e: e.host.current_buffer().goto_char(11))
    install_motion_keystate(engine, ("x", "back-six"))
    calls = make_recorder(engine, extra=[("x", "forward-one")])
    session.feed("x")

    engine.call("record")

    assert calls == [(10, 11)]


def test_earlier_extra_motions_win() -> None:
    engine, session = make_engine(point=10)
    engine.define_motion("back-six", back_six)
    engine.define_motion("forward-one", lambda e: e.host.current_buffer().goto_char(11))
    calls = make_recorder(engine, extra=[("x", "back-six"), ("x", "forward-one")])
    session.feed("x")

    engine.call("record")

    assert calls == [(10, 4)]


@pytest.mark.parametrize(
    ("beg", "end", "bad"),
    [
        (None, 4, "beg"),
        (3, None, "end"),
        ("3", 4, "beg"),
        (0, 999, "end"),
        (-1, 4, "beg"),
        (True, 4, "beg"),
    ],
)
def test_invalid_positions_are_rejected(beg: object, end: object, bad: str) -> None:
    engine, _ = make_engine()
    calls = make_recorder(engine)

    with pytest.raises(InvalidArgument) as excinfo:
        engine.call("record", beg, end)

    assert excinfo.value.name == bad
    assert calls == []


def test_body_errors_propagate_and_mark_failure() -> None:
    engine, _ = make_engine()
    failures: List[object] = []
    engine.bus.subscribe("operator.failed", failures.append)

    def explode(_engine: ModalEngine, beg: int, end: int) -> None:
        raise ModalEngineError("boom")

    engine.define_operator("explode", [], explode)

    with pytest.raises(ModalEngineError, match="boom"):
        engine.call("explode", 0, 1)

    assert len(failures) == 1
    assert failures[0].state == "failed"


def test_body_runs_once_and_reports_done() -> None:
    engine, _ = make_engine()
    done: List[object] = []
    engine.bus.subscribe("operator.done", done.append)
    calls = make_recorder(engine)

    engine.call("record", 1, 2)

    assert calls == [(1, 2)]
    invocation = done[0]
    assert invocation.range == (1, 2)
    assert invocation.history[-1] == "body_execution"


def test_operator_commands_are_registered_by_kind() -> None:
    engine, _ = make_engine()
    make_recorder(engine)
    engine.define_motion("back-six", back_six)

    assert [c.name for c in engine.registry.iter_commands("operator")] == ["record"]
    assert [c.name for c in engine.registry.iter_commands("motion")] == ["back-six"]
