"""Range operators: delete, copy and change."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.engine import ModalEngine


def delete(engine: "ModalEngine", beg: int, end: int) -> str:
    """Kill the text between ``beg`` and ``end`` into the kill ring."""

    removed = engine.host.current_buffer().delete_range(beg, end)
    engine.host.kill_ring.push(removed)
    return removed


def copy(engine: "ModalEngine", beg: int, end: int) -> str:
    buffer = engine.host.current_buffer()
    text = buffer.substring(beg, end)
    engine.host.kill_ring.push(text)
    buffer.deactivate_mark()
    return text


def change(engine: "ModalEngine", beg: int, end: int) -> str:
    removed = delete(engine, beg, end)
    engine.switch_to("insert")
    return removed


__all__ = ["delete", "copy", "change"]
