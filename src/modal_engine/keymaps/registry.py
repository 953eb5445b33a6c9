"""Registry of named commands, keymaps and keystate composition specs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Literal, Optional, Union

from modal_engine.errors import (
    DefinitionDeclined,
    DuplicateDefinition,
    InputInterrupted,
    InvalidKeymap,
)
from modal_engine.runtime.telemetry import span

from .composer import ComposedKeymap, CompositionSpec, as_spec, compose
from .models import Command
from .resolver import BindingValue
from .table import KeymapTable, TableKind

Confirm = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class ConflictPolicy:
    """What to do when a definition reuses an existing name."""

    action: Literal["fail", "overwrite", "prompt"] = "prompt"
    confirm: Optional[Confirm] = None

    @classmethod
    def fail(cls) -> "ConflictPolicy":
        return cls("fail")

    @classmethod
    def overwrite(cls) -> "ConflictPolicy":
        return cls("overwrite")

    @classmethod
    def prompt(cls, confirm: Optional[Confirm] = None) -> "ConflictPolicy":
        return cls("prompt", confirm)

    def check(self, kind: str, name: str) -> None:
        """Return if ``name`` may be overwritten, raise otherwise."""

        if self.action == "overwrite":
            return
        if self.action == "fail":
            raise DuplicateDefinition(kind, name)
        if self.confirm is None:
            raise DefinitionDeclined(kind, name)
        try:
            accepted = self.confirm(f"{kind.capitalize()} '{name}' already defined; redefine? ")
        except InputInterrupted as exc:
            raise DefinitionDeclined(kind, name) from exc
        if not accepted:
            raise DefinitionDeclined(kind, name)


@dataclass(slots=True)
class RegistryStats:
    """Lightweight snapshot describing registry state."""

    command_count: int
    keymap_count: int
    keystates: tuple[str, ...]


KeymapEntry = tuple[object, BindingValue]


class KeymapRegistry:
    """Owns commands, named keymap tables and keystate spec lists.

    Keystate specs are stored symbolically; name references inside them are
    resolved by ``resolve_table`` at compose time, so redefining a keymap or
    keystate reaches its dependents on their next composition.
    """

    def __init__(
        self,
        *,
        on_conflict: ConflictPolicy | None = None,
        logger_name: str | None = None,
    ) -> None:
        self._commands: Dict[str, Command] = {}
        self._keymaps: Dict[str, KeymapTable] = {}
        self._keystates: Dict[str, tuple[CompositionSpec, ...]] = {}
        self._resolving: list[str] = []
        self.on_conflict = on_conflict or ConflictPolicy.prompt()
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    # commands ---------------------------------------------------------------

    def register_command(
        self, command: Command, *, on_conflict: ConflictPolicy | None = None
    ) -> Command:
        with span(
            "keymaps::register_command",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"command": command.name, "kind": command.kind},
        ):
            if command.name in self._commands:
                (on_conflict or self.on_conflict).check(command.kind, command.name)
            self._commands[command.name] = command
            self._touch()
            return command

    def get_command(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def iter_commands(self, kind: str | None = None) -> Iterable[Command]:
        for command in self._commands.values():
            if kind is None or command.kind == kind:
                yield command

    # keymaps ----------------------------------------------------------------

    def define_keymap(
        self,
        name: str,
        entries: Iterable[KeymapEntry] = (),
        *,
        kind: TableKind = "sparse",
        on_conflict: ConflictPolicy | None = None,
    ) -> KeymapTable:
        """Build a table from ``(key, binding)`` pairs and store it as ``name``."""

        with span(
            "keymaps::define_keymap",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"keymap": name, "kind": kind},
        ) as handle:
            if name in self._keymaps:
                (on_conflict or self.on_conflict).check("keymap", name)
            table = KeymapTable(kind=kind, name=name)
            for key, binding in entries:
                table.define_key(key, binding)
            handle.add_metadata("entries", len(table))
            self._keymaps[name] = table
            self._touch()
            return table

    def get_keymap(self, name: str) -> Optional[KeymapTable]:
        return self._keymaps.get(name)

    # keystates --------------------------------------------------------------

    def define_keystate(
        self,
        name: str,
        specs: Iterable[object],
        *,
        activation: Command | None = None,
        on_conflict: ConflictPolicy | None = None,
    ) -> tuple[CompositionSpec, ...]:
        """Store ``name -> specs`` and, if given, its activation command.

        Both the keystate and its activation command are checked against the
        conflict policy once, before anything is written.
        """

        normalized = tuple(as_spec(spec) for spec in specs)
        with span(
            "keymaps::define_keystate",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"keystate": name, "specs": len(normalized)},
        ):
            existing_command = self._commands.get(name)
            shadows_command = existing_command is not None and (
                activation is None or existing_command.kind != "keystate"
            )
            if name in self._keystates or shadows_command:
                (on_conflict or self.on_conflict).check("keystate", name)
            self._keystates[name] = normalized
            if activation is not None:
                self._commands[name] = activation
            self._touch()
            return normalized

    def has_keystate(self, name: object) -> bool:
        return isinstance(name, str) and name in self._keystates

    def keystate_specs(self, name: str) -> tuple[CompositionSpec, ...]:
        try:
            return self._keystates[name]
        except KeyError as exc:
            raise KeyError(f"Keystate '{name}' is not defined") from exc

    def compose_keystate(
        self, name: str, parent: object = None
    ) -> ComposedKeymap:
        if name in self._resolving:
            cycle = " -> ".join([*self._resolving, name])
            raise InvalidKeymap(name, reason=f"keystate cycle {cycle}")
        self._resolving.append(name)
        try:
            return compose(
                self.keystate_specs(name),
                parent,
                resolve_name=self.resolve_table,
                name=name,
            )
        finally:
            self._resolving.pop()

    def resolve_table(self, name: str) -> Union[KeymapTable, ComposedKeymap]:
        """Dereference a symbolic table: keymap names first, then keystates."""

        table = self._keymaps.get(name)
        if table is not None:
            return table
        if name in self._keystates:
            return self.compose_keystate(name)
        raise InvalidKeymap(name, reason="no keymap or keystate by that name")

    def stats(self) -> RegistryStats:
        return RegistryStats(
            command_count=len(self._commands),
            keymap_count=len(self._keymaps),
            keystates=tuple(sorted(self._keystates)),
        )

    def _touch(self) -> None:
        self._revision += 1


__all__ = [
    "ConflictPolicy",
    "KeymapRegistry",
    "KeymapEntry",
    "RegistryStats",
]
