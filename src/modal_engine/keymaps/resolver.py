"""Key path resolution across an ordered stack of lookup surfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Literal, Optional, Protocol, Union

from .models import BindingKey, Command, KeyPath

if TYPE_CHECKING:  # pragma: no cover
    from .table import KeymapTable

BindingValue = Union[Command, "KeymapTable", str, None]


class Lookup(Protocol):
    """Anything that can answer exact lookups and incremental resolution."""

    def lookup(self, key: BindingKey) -> BindingValue: ...

    def resolve(self, path: KeyPath) -> "ResolutionResult": ...


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome of resolving a (possibly partial) key path.

    ``match`` carries the bound value, ``pending`` means ``keys`` is a
    proper prefix of some binding, ``miss`` means nothing can follow.
    """

    status: Literal["match", "pending", "miss"]
    keys: KeyPath
    binding: BindingValue = None

    @property
    def complete(self) -> bool:
        return self.status != "pending"


def lookup_layers(layers: Iterable[Optional[Lookup]], key: BindingKey) -> BindingValue:
    """Return the first non-``None`` binding for ``key``; earlier layers win."""

    for layer in layers:
        if layer is None:
            continue
        binding = layer.lookup(key)
        if binding is not None:
            return binding
    return None


def resolve_layers(
    layers: Iterable[Optional[Lookup]], path: KeyPath
) -> ResolutionResult:
    """Resolve ``path`` against ``layers`` with first-match-wins precedence."""

    for layer in layers:
        if layer is None:
            continue
        result = layer.resolve(path)
        if result.status != "miss":
            return result
    return ResolutionResult(status="miss", keys=path)


__all__ = [
    "BindingValue",
    "Lookup",
    "ResolutionResult",
    "lookup_layers",
    "resolve_layers",
]
