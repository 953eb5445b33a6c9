"""Stock keymaps and keystates: a vi-flavoured ``normal`` and ``insert`` pair.

``normal`` layers ``normal-editing`` over ``motion``; plain printing keys are
remapped to ``undefined`` so they no longer self-insert. ``insert`` keeps the
global table reachable and exposes the same motions under ``M-``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from modal_engine import actions

from .models import UNBOUND_KIND, Command, Remap
from .registry import ConflictPolicy

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.engine import ModalEngine

MOTIONS = (
    ("forward-char", actions.forward_char, "Move point one character right"),
    ("backward-char", actions.backward_char, "Move point one character left"),
    ("forward-word", actions.forward_word, "Move point past the next word"),
    ("backward-word", actions.backward_word, "Move point to the previous word start"),
    ("beginning-of-line", actions.beginning_of_line, "Move point to line start"),
    ("end-of-line", actions.end_of_line, "Move point to line end"),
    ("find-char", actions.find_char, "Move point to the next occurrence of a character"),
    ("whole-line", actions.whole_line, "Select the current line"),
)

OPERATORS = (
    ("delete", "d", actions.delete, "Kill a range into the kill ring"),
    ("copy", "y", actions.copy, "Copy a range into the kill ring"),
    ("change", "c", actions.change, "Kill a range and enter insert"),
)

COMMANDS = (
    ("set-mark", actions.set_mark, "Toggle the selection anchor"),
    ("yank", actions.yank, "Insert the most recent kill"),
    ("disable-modal", actions.disable_modal, "Restore the global table"),
)

MOTION_KEYS = (
    ("h", "backward-char"),
    ("l", "forward-char"),
    ("w", "forward-word"),
    ("b", "backward-word"),
    ("0", "beginning-of-line"),
    ("$", "end-of-line"),
    ("f", "find-char"),
)

NORMAL_EDITING_KEYS = (
    ("d", "delete"),
    ("y", "copy"),
    ("c", "change"),
    ("p", "yank"),
    ("i", "insert"),
    ("v", "set-mark"),
    ("C-c m", "disable-modal"),
    (Remap("self-insert-command"), "undefined"),
)

INSERT_ESCAPE_KEYS = (("ESC", "normal"),)


def load_default_keystates(
    engine: "ModalEngine",
    *,
    on_conflict: Optional[ConflictPolicy] = None,
    activate: bool = False,
) -> None:
    """Register the stock commands, keymaps and keystates on ``engine``."""

    for name, body, description in MOTIONS:
        engine.define_motion(name, body, description=description, on_conflict=on_conflict)
    for name, key, body, description in OPERATORS:
        engine.define_operator(
            name,
            [(key, "whole-line")],
            body,
            description=description,
            on_conflict=on_conflict,
        )
    for name, handler, description in COMMANDS:
        engine.define_command(
            name, handler, description=description, on_conflict=on_conflict
        )

    engine.registry.register_command(
        Command(
            "undefined",
            actions.undefined,
            kind=UNBOUND_KIND,
            description="Report an unbound key",
        ),
        on_conflict=on_conflict,
    )

    engine.define_keymap("motion", MOTION_KEYS, on_conflict=on_conflict)
    engine.define_keymap("normal-editing", NORMAL_EDITING_KEYS, on_conflict=on_conflict)
    engine.define_keymap("insert-escape", INSERT_ESCAPE_KEYS, on_conflict=on_conflict)

    engine.define_keystate("normal", ["normal-editing", "motion"], on_conflict=on_conflict)
    engine.define_keystate(
        "insert", ["insert-escape", ("motion", "M-")], on_conflict=on_conflict
    )

    if engine.default_keystate is None:
        engine.default_keystate = "normal"
    if activate:
        engine.switch_to(engine.default_keystate)


__all__ = ["load_default_keystates", "MOTION_KEYS", "NORMAL_EDITING_KEYS"]
