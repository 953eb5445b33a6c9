"""Primitive motions over the host's current buffer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple

from modal_engine.errors import InvalidMotion

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.engine import ModalEngine


def _is_word_char(char: Optional[str]) -> bool:
    return char is not None and (char.isalnum() or char == "_")


def forward_char(engine: "ModalEngine") -> None:
    buffer = engine.host.current_buffer()
    buffer.goto_char(buffer.point + 1)


def backward_char(engine: "ModalEngine") -> None:
    buffer = engine.host.current_buffer()
    buffer.goto_char(buffer.point - 1)


def forward_word(engine: "ModalEngine") -> None:
    buffer = engine.host.current_buffer()
    pos = buffer.point
    while pos < buffer.point_max and not _is_word_char(buffer.char_after(pos)):
        pos += 1
    while pos < buffer.point_max and _is_word_char(buffer.char_after(pos)):
        pos += 1
    buffer.goto_char(pos)


def backward_word(engine: "ModalEngine") -> None:
    buffer = engine.host.current_buffer()
    pos = buffer.point
    while pos > buffer.point_min and not _is_word_char(buffer.char_after(pos - 1)):
        pos -= 1
    while pos > buffer.point_min and _is_word_char(buffer.char_after(pos - 1)):
        pos -= 1
    buffer.goto_char(pos)


def beginning_of_line(engine: "ModalEngine") -> None:
    buffer = engine.host.current_buffer()
    buffer.goto_char(buffer.line_start())


def end_of_line(engine: "ModalEngine") -> None:
    buffer = engine.host.current_buffer()
    buffer.goto_char(buffer.line_end())


def find_char(engine: "ModalEngine") -> Tuple[int, int]:
    """Jump to the next occurrence of a read character, inclusive."""

    buffer = engine.host.current_buffer()
    target = engine.host.read_char("Find char: ")
    start = buffer.point
    found = buffer.text.find(target, start + 1)
    if found == -1:
        raise InvalidMotion(f"Character {target!r} not found")
    buffer.goto_char(found)
    return (start, found + 1)


def whole_line(engine: "ModalEngine") -> Tuple[int, int]:
    """Report the current line including its newline."""

    buffer = engine.host.current_buffer()
    start = buffer.line_start()
    end = min(buffer.line_end() + 1, buffer.point_max)
    buffer.goto_char(start)
    return (start, end)


__all__ = [
    "forward_char",
    "backward_char",
    "forward_word",
    "backward_word",
    "beginning_of_line",
    "end_of_line",
    "find_char",
    "whole_line",
]
