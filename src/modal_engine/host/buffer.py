"""Minimal host text model: a named buffer with point, mark and a kill ring."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class BufferValidationError(RuntimeError):
    """Raised when a position falls outside the buffer."""

    def __init__(self, message: str, *, position: object | None = None) -> None:
        super().__init__(message)
        self.position = position


@dataclass(slots=True)
class TextBuffer:
    """Flat text with integer positions ``0..len(text)``.

    ``mark`` is the selection anchor; the selection is active only while
    ``mark_active`` is set.
    """

    name: str = "*scratch*"
    text: str = ""
    point: int = 0
    mark: Optional[int] = None
    mark_active: bool = False
    version: int = 0

    @classmethod
    def from_text(cls, text: str, *, name: str = "*scratch*", point: int = 0) -> "TextBuffer":
        buffer = cls(name=name, text=text)
        buffer.goto_char(point)
        return buffer

    @property
    def point_min(self) -> int:
        return 0

    @property
    def point_max(self) -> int:
        return len(self.text)

    def valid_position(self, position: object) -> bool:
        return (
            isinstance(position, int)
            and not isinstance(position, bool)
            and self.point_min <= position <= self.point_max
        )

    def ensure_position(self, position: int) -> int:
        if not self.valid_position(position):
            raise BufferValidationError("Position out of range", position=position)
        return position

    def goto_char(self, position: int) -> int:
        self.point = max(self.point_min, min(position, self.point_max))
        return self.point

    def char_after(self, position: int | None = None) -> Optional[str]:
        pos = self.point if position is None else position
        if self.point_min <= pos < self.point_max:
            return self.text[pos]
        return None

    def line_start(self, position: int | None = None) -> int:
        pos = self.point if position is None else position
        return self.text.rfind("\n", 0, pos) + 1

    def line_end(self, position: int | None = None) -> int:
        pos = self.point if position is None else position
        end = self.text.find("\n", pos)
        return self.point_max if end == -1 else end

    # selection --------------------------------------------------------------

    def set_mark(self, position: int | None = None) -> None:
        self.mark = self.point if position is None else self.ensure_position(position)
        self.mark_active = True

    def deactivate_mark(self) -> None:
        self.mark_active = False

    def selection_active(self) -> bool:
        return self.mark_active and self.mark is not None

    # editing ----------------------------------------------------------------

    def insert(self, text: str) -> None:
        self.text = self.text[: self.point] + text + self.text[self.point :]
        if self.mark is not None and self.mark > self.point:
            self.mark += len(text)
        self.point += len(text)
        self._touch()

    def substring(self, start: int, end: int) -> str:
        lo, hi = sorted((self.ensure_position(start), self.ensure_position(end)))
        return self.text[lo:hi]

    def delete_range(self, start: int, end: int) -> str:
        lo, hi = sorted((self.ensure_position(start), self.ensure_position(end)))
        removed = self.text[lo:hi]
        self.text = self.text[:lo] + self.text[hi:]
        if self.point > hi:
            self.point -= hi - lo
        elif self.point > lo:
            self.point = lo
        self.deactivate_mark()
        self._touch()
        return removed

    def _touch(self) -> None:
        self.version += 1


@dataclass(slots=True)
class KillRing:
    """Clipboard history; the newest entry is yanked first."""

    max_size: int = 60
    _entries: List[str] = field(default_factory=list)

    def push(self, text: str) -> None:
        self._entries.insert(0, text)
        del self._entries[self.max_size :]

    def yank(self) -> str:
        return self._entries[0] if self._entries else ""

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["BufferValidationError", "TextBuffer", "KillRing"]
