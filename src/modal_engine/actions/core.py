"""Commands that are neither motions nor operators."""

from __future__ import annotations

from typing import TYPE_CHECKING

from modal_engine.errors import ModalEngineError

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.engine import ModalEngine


def set_mark(engine: "ModalEngine") -> None:
    """Toggle the selection anchor at point."""

    buffer = engine.host.current_buffer()
    if buffer.selection_active():
        buffer.deactivate_mark()
    else:
        buffer.set_mark()


def yank(engine: "ModalEngine") -> None:
    engine.host.current_buffer().insert(engine.host.kill_ring.yank())


def disable_modal(engine: "ModalEngine") -> None:
    engine.switch_to(None)


def undefined(engine: "ModalEngine") -> None:
    keys = getattr(engine.host, "last_command_key", None)
    raise ModalEngineError(f"{keys or 'Key'} is undefined")


__all__ = ["set_mark", "yank", "disable_modal", "undefined"]
