"""The engine context object a host owns and passes to every command."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from modal_engine.host.protocol import HostDispatcher
from modal_engine.keymaps import (
    Command,
    ComposedKeymap,
    ConflictPolicy,
    KeymapRegistry,
    KeymapTable,
)
from modal_engine.keymaps.defaults import load_default_keystates
from modal_engine.keymaps.registry import KeymapEntry
from modal_engine.keymaps.table import TableKind
from modal_engine.modes import KeystateManager, ModeBus, OperatorPipeline
from modal_engine.modes.operator_pipeline import (
    MotionBody,
    OperatorBody,
    define_motion,
    define_operator,
)
from modal_engine.runtime import EngineConfig, telemetry


class ModalEngine:
    """Registry, keystate switching and operator dispatch bound to one host.

    Commands, motions and operators all receive this object as their first
    argument. Nothing here is global: two engines over two hosts never
    share state.
    """

    def __init__(
        self,
        host: HostDispatcher,
        *,
        registry: KeymapRegistry | None = None,
        bus: ModeBus | None = None,
        config: EngineConfig | None = None,
        load_defaults: bool = False,
    ) -> None:
        self.host = host
        self.config = config or EngineConfig.from_env()
        self.bus = bus or ModeBus()
        self.logger = telemetry.get_logger("modal_engine")
        self.registry = registry or KeymapRegistry(
            on_conflict=ConflictPolicy.prompt(host.confirm),
            logger_name="modal_engine.keymaps",
        )
        self.keystates = KeystateManager(
            self.registry, host, self.bus, default=self.config.default_keystate
        )
        self.operators = OperatorPipeline(self)
        host.attach(self)
        if load_defaults:
            load_default_keystates(self)

    # definitions ------------------------------------------------------------

    def define_command(
        self,
        name: str,
        handler: Callable[..., object],
        *,
        description: str = "",
        on_conflict: ConflictPolicy | None = None,
    ) -> Command:
        command = Command(name, handler, description=description)
        return self.registry.register_command(command, on_conflict=on_conflict)

    def define_keymap(
        self,
        name: str,
        entries: Iterable[KeymapEntry] = (),
        *,
        kind: TableKind = "sparse",
        on_conflict: ConflictPolicy | None = None,
    ) -> KeymapTable:
        return self.registry.define_keymap(
            name, entries, kind=kind, on_conflict=on_conflict
        )

    def define_keystate(
        self,
        name: str,
        specs: Iterable[object],
        *,
        on_conflict: ConflictPolicy | None = None,
    ) -> Command:
        return self.keystates.define_keystate(name, specs, on_conflict=on_conflict)

    def define_operator(
        self,
        name: str,
        extra_motions: Iterable[object],
        body: OperatorBody,
        *,
        description: str = "",
        on_conflict: ConflictPolicy | None = None,
    ) -> Command:
        return define_operator(
            self,
            name,
            extra_motions,
            body,
            description=description,
            on_conflict=on_conflict,
        )

    def define_motion(
        self,
        name: str,
        body: MotionBody,
        *,
        description: str = "",
        on_conflict: ConflictPolicy | None = None,
    ) -> Command:
        return define_motion(
            self, name, body, description=description, on_conflict=on_conflict
        )

    # keystates --------------------------------------------------------------

    def switch_to(self, name: Optional[str]) -> Optional[ComposedKeymap]:
        return self.keystates.switch_to(name)

    @property
    def active_keystate(self) -> Optional[str]:
        return self.keystates.active

    @property
    def default_keystate(self) -> Optional[str]:
        return self.keystates.default

    @default_keystate.setter
    def default_keystate(self, name: Optional[str]) -> None:
        self.keystates.default = name

    # invocation -------------------------------------------------------------

    def call(self, name: str, *args: object) -> object:
        """Invoke a registered command programmatically."""

        command = self.registry.get_command(name)
        if command is None:
            raise KeyError(f"Command '{name}' is not defined")
        return command(self, *args)


__all__ = ["ModalEngine"]
