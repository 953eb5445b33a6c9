"""Operator/motion protocol: acquire a range, then run the operator body once.

An operator takes its range from the active selection when there is one.
Otherwise it reads one key sequence with the operator's extra motions laid
over the active table, runs the command bound to it, and takes the range
the command reports, or ``(point before, point after)`` if it reports none.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Sequence, Tuple

from modal_engine.errors import (
    InputInterrupted,
    InvalidArgument,
    InvalidKeymap,
    InvalidMotion,
)
from modal_engine.keymaps import (
    Command,
    ComposedKeymap,
    ConflictPolicy,
    Direct,
    KeymapTable,
    KeyPath,
    UNBOUND_KIND,
    compose,
)
from modal_engine.runtime import telemetry

if TYPE_CHECKING:  # pragma: no cover
    from modal_engine.engine import ModalEngine
    from modal_engine.host.buffer import TextBuffer

Range = Tuple[int, int]
OperatorBody = Callable[["ModalEngine", int, int], object]
MotionBody = Callable[["ModalEngine"], object]


@dataclass(slots=True)
class OperatorInvocation:
    """Transient state of one operator run."""

    operator: str
    state: str = "idle"
    buffer: Optional["TextBuffer"] = None
    start_point: Optional[int] = None
    overlay: Optional[KeymapTable] = None
    keys: Optional[KeyPath] = None
    motion: Optional[str] = None
    range: Optional[Range] = None
    history: list[str] = field(default_factory=list)

    def enter(self, state: str) -> None:
        self.history.append(self.state)
        self.state = state


@dataclass(frozen=True, slots=True)
class MotionDefinition:
    """Callable wrapper for a motion body; the result is passed through."""

    name: str
    body: MotionBody

    def __call__(self, engine: "ModalEngine") -> object:
        return self.body(engine)


@dataclass(frozen=True, slots=True)
class OperatorDefinition:
    """An operator body plus the motions it adds while reading its range."""

    name: str
    body: OperatorBody
    extra_motions: Tuple[object, ...] = ()

    def __call__(
        self,
        engine: "ModalEngine",
        beg: Optional[int] = None,
        end: Optional[int] = None,
    ) -> object:
        return engine.operators.run(self, beg, end)


def is_range(value: object) -> bool:
    return isinstance(value, tuple) and len(value) == 2


class OperatorPipeline:
    """Runs operators against the engine's host."""

    def __init__(self, engine: "ModalEngine") -> None:
        self.engine = engine
        self.logger = telemetry.get_logger("modal_engine.operators")
        self.last_invocation: Optional[OperatorInvocation] = None

    @property
    def host(self) -> Any:
        return self.engine.host

    def run(
        self,
        operator: OperatorDefinition,
        beg: Optional[int] = None,
        end: Optional[int] = None,
    ) -> object:
        invocation = OperatorInvocation(operator=operator.name)
        self.last_invocation = invocation
        with telemetry.span(
            "operator::run",
            logger_name="modal_engine.operators",
            component="operators",
            metadata={"operator": operator.name},
        ) as handle:
            try:
                if beg is None and end is None:
                    beg, end = self.acquire_range(operator, invocation)
                self.validate(beg, end)
                invocation.range = (beg, end)  # type: ignore[assignment]
                handle.add_metadata("range", invocation.range)
                invocation.enter("body_execution")
                result = operator.body(self.engine, beg, end)  # type: ignore[arg-type]
            except Exception:
                invocation.enter("failed")
                self.engine.bus.emit("operator.failed", invocation)
                raise
            invocation.enter("done")
        telemetry.record_event(
            "operator.done",
            data={"operator": operator.name, "range": invocation.range},
            logger_name="modal_engine.operators",
        )
        self.engine.bus.emit("operator.done", invocation)
        return result

    def acquire_range(
        self, operator: OperatorDefinition, invocation: OperatorInvocation
    ) -> Range:
        invocation.enter("range_acquisition")
        if self.host.selection_active():
            invocation.enter("selection_range")
            return self.host.selection_bounds()

        invocation.enter("motion_read")
        invocation.overlay = self.build_overlay(operator.extra_motions)
        invocation.buffer = self.host.current_buffer()
        invocation.start_point = self.host.point()
        prompt = self.engine.config.motion_prompt.format(operator=operator.name)
        try:
            with self.host.overlay(invocation.overlay):
                invocation.keys = self.host.read_key_sequence(prompt)
                motion = self.host.lookup_command(invocation.keys)
        except InputInterrupted as exc:
            raise InvalidMotion(f"Motion read interrupted: {exc}") from exc

        if motion is None or motion.kind == UNBOUND_KIND:
            raise InvalidMotion(
                f"{invocation.keys.text} is not bound to a motion",
                keys=invocation.keys,
            )

        invocation.enter("motion_executed")
        invocation.motion = motion.name
        result = self.host.call_interactively(motion)
        if self.host.current_buffer() is not invocation.buffer:
            raise InvalidMotion(
                f"Motion '{motion.name}' left the buffer", keys=invocation.keys
            )
        if is_range(result):
            return (result[0], result[1])  # type: ignore[index]
        return (invocation.start_point, self.host.point())

    def build_overlay(self, extra_motions: Sequence[object]) -> Optional[KeymapTable]:
        """Merge extra motions into one sparse table, earlier entries first."""

        if not extra_motions:
            return None
        specs = [Direct(self._motion_table(item)) for item in extra_motions]
        return compose(specs, name="motion-overlay").flatten(kind="sparse")

    def _motion_table(self, item: object) -> KeymapTable | ComposedKeymap:
        """Accept a table, a ``(key, command)`` pair, or a keymap/keystate name.

        A name is looked up among registered keymaps and keystates only; a
        single ``(key, command)`` pair has no name of its own.
        """

        if isinstance(item, (KeymapTable, ComposedKeymap)):
            return item
        if is_range(item):
            key, binding = item  # type: ignore[misc]
            table = KeymapTable(name="motion-pair")
            table.define_key(key, binding)
            return table
        if isinstance(item, str):
            return self.engine.registry.resolve_table(item)
        raise InvalidKeymap(item, reason="expected a keymap or (key, command) pair")

    def validate(self, beg: object, end: object) -> None:
        buffer = self.host.current_buffer()
        for name, value in (("beg", beg), ("end", end)):
            if not buffer.valid_position(value):
                raise InvalidArgument(name, value)


def define_operator(
    engine: "ModalEngine",
    name: str,
    extra_motions: Iterable[object],
    body: OperatorBody,
    *,
    description: str = "",
    on_conflict: Optional[ConflictPolicy] = None,
) -> Command:
    definition = OperatorDefinition(name, body, tuple(extra_motions))
    command = Command(name, definition, kind="operator", description=description)
    return engine.registry.register_command(command, on_conflict=on_conflict)


def define_motion(
    engine: "ModalEngine",
    name: str,
    body: MotionBody,
    *,
    description: str = "",
    on_conflict: Optional[ConflictPolicy] = None,
) -> Command:
    command = Command(
        name, MotionDefinition(name, body), kind="motion", description=description
    )
    return engine.registry.register_command(command, on_conflict=on_conflict)


__all__ = [
    "Range",
    "OperatorBody",
    "MotionBody",
    "OperatorInvocation",
    "OperatorDefinition",
    "MotionDefinition",
    "OperatorPipeline",
    "define_operator",
    "define_motion",
    "is_range",
]
