from __future__ import annotations

import pytest

from modal_engine.errors import InvalidKeymap
from modal_engine.keymaps import (
    Command,
    KeymapTable,
    KeyPath,
    KeyStroke,
    Remap,
    apply_prefix,
    normalize_prefix,
    parse_binding_key,
)


def make_command(name: str = "noop") -> Command:
    return Command(name, lambda *args: None)


def test_keystroke_orders_modifiers_canonically() -> None:
    stroke = KeyStroke.parse("M-C-x")

    assert stroke.key == "x"
    assert stroke.modifiers == ("C", "M")
    assert stroke.token == "C-M-x"


def test_keypath_parses_emacs_notation() -> None:
    path = KeyPath.parse("C-x  M-f")

    assert path.tokens == ("C-x", "M-f")
    assert path.text == "C-x M-f"
    assert len(path) == 2
    assert path == KeyPath.from_strings("C-x", "M-f")


def test_keypath_rejects_empty_input() -> None:
    with pytest.raises(ValueError):
        KeyPath.parse("   ")
    with pytest.raises(ValueError):
        KeyPath(())


def test_keystroke_parse_edge_tokens() -> None:
    with pytest.raises(ValueError):
        KeyStroke.parse("   ")

    assert KeyStroke.parse("C-").key == "C-"
    assert KeyStroke.parse("C--").token == "C--"


def test_keystroke_rejects_unknown_modifier() -> None:
    with pytest.raises(ValueError):
        KeyStroke("x", ("X",))


def test_parse_binding_key_accepts_remap_forms() -> None:
    expected = Remap("kill-line")

    assert parse_binding_key(expected) is expected
    assert parse_binding_key(("remap", "kill-line")) == expected
    assert parse_binding_key("<remap> <kill-line>") == expected
    assert parse_binding_key("C-k") == KeyPath.parse("C-k")


@pytest.mark.parametrize(
    ("prefix", "expected"),
    [
        ("A-", "A-"),
        ("A", "A "),
        ("C-c ", "C-c "),
        ("C-c", "C-c "),
        ("", " "),
    ],
)
def test_normalize_prefix(prefix: str, expected: str) -> None:
    assert normalize_prefix(prefix) == expected


def test_modifier_prefix_glues_onto_the_chord() -> None:
    table = KeymapTable()
    table.define_key("x", make_command())

    prefixed = apply_prefix(table, "A-")

    assert [key.text for key, _ in prefixed.items()] == ["A-x"]


def test_plain_prefix_becomes_its_own_chord() -> None:
    table = KeymapTable()
    table.define_key("x", make_command())

    prefixed = apply_prefix(table, "A")

    key, _ = next(prefixed.items())
    assert key.tokens == ("A", "x")


def test_prefix_keeps_remap_keys_identical() -> None:
    remap = Remap("self-insert-command")
    command = make_command()
    table = KeymapTable(kind="dense", name="base")
    table.define_key(remap, command)
    table.define_key("a", command)

    prefixed = apply_prefix(table, "C-c")

    keys = [key for key, _ in prefixed.items()]
    assert keys[0] is remap
    assert keys[1] == KeyPath.parse("C-c a")
    assert prefixed.kind == "dense"
    assert prefixed.name == "C-c base"
    assert prefixed.lookup(remap) is command


def test_prefix_without_recurse_shares_nested_tables() -> None:
    nested = KeymapTable()
    nested.define_key("f", make_command("find-file"))
    table = KeymapTable()
    table.define_key("C-x", nested)

    prefixed = apply_prefix(table, "C-c ")

    assert prefixed.get("C-c C-x") is nested


def test_prefix_with_recurse_transforms_nested_tables() -> None:
    command = make_command("find-file")
    nested = KeymapTable()
    nested.define_key("f", command)
    table = KeymapTable()
    table.define_key("C-x", nested)

    prefixed = apply_prefix(table, "C-c ", recurse=True)

    rewritten = prefixed.get("C-c C-x")
    assert isinstance(rewritten, KeymapTable)
    assert rewritten is not nested
    assert rewritten.get("C-c f") is command
    assert nested.get("f") is command


def test_prefix_leaves_source_untouched() -> None:
    table = KeymapTable()
    table.define_key("x", make_command())

    apply_prefix(table, "M-")

    assert "x" in table
    assert "M-x" not in table


def test_prefix_rejects_non_tables() -> None:
    with pytest.raises(InvalidKeymap):
        apply_prefix("not-a-table", "C-c")  # type: ignore[arg-type]


def test_table_walks_nested_tables() -> None:
    command = make_command("save")
    nested = KeymapTable()
    nested.define_key("C-s", command)
    table = KeymapTable()
    table.define_key("C-x", nested)

    assert table.lookup("C-x C-s") is command
    assert table.resolve(KeyPath.parse("C-x")).status == "pending"
    assert table.resolve(KeyPath.parse("C-x C-s")).status == "match"
    assert table.resolve(KeyPath.parse("C-x z")).status == "miss"


def test_table_reports_pending_for_flat_multi_chord_keys() -> None:
    table = KeymapTable()
    table.define_key("C-c m", make_command())

    assert table.resolve(KeyPath.parse("C-c")).status == "pending"
    assert table.lookup("C-c") is None
