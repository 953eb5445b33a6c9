"""Stock motions, operators and commands used by the default keystates."""

from .core import disable_modal, set_mark, undefined, yank
from .motions import (
    backward_char,
    backward_word,
    beginning_of_line,
    end_of_line,
    find_char,
    forward_char,
    forward_word,
    whole_line,
)
from .operators import change, copy, delete

__all__ = [
    "disable_modal",
    "set_mark",
    "undefined",
    "yank",
    "backward_char",
    "backward_word",
    "beginning_of_line",
    "end_of_line",
    "find_char",
    "forward_char",
    "forward_word",
    "whole_line",
    "change",
    "copy",
    "delete",
]
