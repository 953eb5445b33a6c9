"""Composition of keymap specs into a single precedence-ordered lookup surface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Sequence, Union

from modal_engine.errors import InvalidKeymap
from modal_engine.runtime.telemetry import span

from .models import BindingKey, KeyPath, parse_binding_key
from .prefix import apply_prefix
from .resolver import BindingValue, ResolutionResult, lookup_layers, resolve_layers
from .table import KeymapTable

TableRef = Union[KeymapTable, "ComposedKeymap", str]
NameResolver = Callable[[str], Union[KeymapTable, "ComposedKeymap"]]


@dataclass(frozen=True, slots=True)
class Direct:
    """Use ``table`` as is."""

    table: TableRef


@dataclass(frozen=True, slots=True)
class Prefixed:
    """Use ``table`` with every key moved under ``prefix``."""

    table: TableRef
    prefix: str
    recurse: bool = False


CompositionSpec = Union[Direct, Prefixed]


def as_spec(value: object) -> CompositionSpec:
    """Coerce shorthand forms into a ``Direct``/``Prefixed`` spec.

    Accepted: a spec, a table, a composed keymap, a name, or a
    ``(table, prefix)`` / ``(table, prefix, recurse)`` tuple.
    """

    if isinstance(value, (Direct, Prefixed)):
        return value
    if isinstance(value, (KeymapTable, ComposedKeymap, str)):
        return Direct(value)
    if isinstance(value, tuple) and len(value) in (2, 3):
        table, prefix = value[0], value[1]
        recurse = bool(value[2]) if len(value) == 3 else False
        if not isinstance(prefix, str):
            raise InvalidKeymap(value, reason="prefix must be a string")
        return Prefixed(table, prefix, recurse)
    raise InvalidKeymap(value, reason="not a composition spec")


class ComposedKeymap:
    """Ordered layers plus an optional parent, consulted first-match-wins."""

    def __init__(
        self,
        layers: Sequence[Union[KeymapTable, "ComposedKeymap"]],
        parent: Union[KeymapTable, "ComposedKeymap", None] = None,
        *,
        name: str | None = None,
    ) -> None:
        self.layers = tuple(layers)
        self.parent = parent
        self.name = name

    def _surfaces(self) -> Iterator[Union[KeymapTable, "ComposedKeymap", None]]:
        yield from self.layers
        yield self.parent

    def lookup(self, key: object) -> BindingValue:
        return lookup_layers(self._surfaces(), parse_binding_key(key))

    def resolve(self, path: KeyPath) -> ResolutionResult:
        return resolve_layers(self._surfaces(), path)

    def __contains__(self, key: object) -> bool:
        return self.lookup(key) is not None

    def items(self) -> Iterator[tuple[BindingKey, BindingValue]]:
        """Yield every visible entry once, shadowed entries skipped."""

        seen: set[BindingKey] = set()
        for surface in self._surfaces():
            if surface is None:
                continue
            for key, binding in surface.items():
                if key in seen or binding is None:
                    continue
                seen.add(key)
                yield key, binding

    def flatten(self, *, kind: str = "sparse") -> KeymapTable:
        """Merge every layer into one table, first wins.

        Nested tables sharing a prefix key are merged level by level, so
        the result answers every lookup the way the composition does.
        """

        table = KeymapTable(kind=kind, name=self.name)  # type: ignore[arg-type]
        for surface in self._surfaces():
            if isinstance(surface, ComposedKeymap):
                _merge_into(table, surface.flatten(kind=kind))
            elif surface is not None:
                _merge_into(table, surface)
        return table

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        parent = " +parent" if self.parent is not None else ""
        return f"<ComposedKeymap{label} layers={len(self.layers)}{parent}>"


def _merge_into(target: KeymapTable, source: KeymapTable) -> None:
    for key, binding in source.items():
        if binding is None:
            continue
        current = target.get(key)
        if current is None:
            if isinstance(binding, KeymapTable):
                copy = KeymapTable(kind=binding.kind, name=binding.name)
                _merge_into(copy, binding)
                binding = copy
            target.define_key(key, binding)
        elif isinstance(current, KeymapTable) and isinstance(binding, KeymapTable):
            _merge_into(current, binding)


def resolve_table(
    ref: object, resolve_name: Optional[NameResolver] = None
) -> Union[KeymapTable, ComposedKeymap]:
    if isinstance(ref, (KeymapTable, ComposedKeymap)):
        return ref
    if isinstance(ref, str):
        if resolve_name is None:
            raise InvalidKeymap(ref, reason="symbolic keymap without a resolver")
        return resolve_name(ref)
    raise InvalidKeymap(ref)


def resolve_spec(
    spec: object, resolve_name: Optional[NameResolver] = None
) -> Union[KeymapTable, ComposedKeymap]:
    """Turn one spec into the table it contributes to a composition."""

    normalized = as_spec(spec)
    table = resolve_table(normalized.table, resolve_name)
    if isinstance(normalized, Prefixed):
        return apply_prefix(table, normalized.prefix, normalized.recurse)
    return table


def compose(
    specs: Iterable[object],
    parent: object = None,
    *,
    resolve_name: Optional[NameResolver] = None,
    name: str | None = None,
) -> ComposedKeymap:
    """Compose ``specs`` (earliest wins) over an optional ``parent``."""

    spec_list = [as_spec(spec) for spec in specs]
    with span(
        "keymaps::compose",
        logger_name="modal_engine.keymaps",
        component="keymaps",
        metadata={"name": name or "?", "specs": len(spec_list)},
    ):
        layers = [resolve_spec(spec, resolve_name) for spec in spec_list]
        resolved_parent = None
        if parent is not None:
            resolved_parent = resolve_spec(parent, resolve_name)
        return ComposedKeymap(layers, resolved_parent, name=name)


__all__ = [
    "Direct",
    "Prefixed",
    "CompositionSpec",
    "TableRef",
    "NameResolver",
    "ComposedKeymap",
    "as_spec",
    "resolve_spec",
    "resolve_table",
    "compose",
]
