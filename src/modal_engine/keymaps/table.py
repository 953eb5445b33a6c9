"""Mutable key path -> binding tables."""

from __future__ import annotations

from typing import Dict, Iterator, Literal, Optional

from .models import BindingKey, KeyPath, Remap, parse_binding_key
from .resolver import BindingValue, ResolutionResult

TableKind = Literal["sparse", "dense"]


class KeymapTable:
    """Exact-match table from ``KeyPath``/``Remap`` to a binding.

    A multi-chord key is either stored whole or reached by walking nested
    tables one chord per level; a single table never matches a key by one
    of its prefixes. ``kind`` mirrors Emacs' dense/sparse keymaps and only
    matters as a hint carried through transforms.
    """

    def __init__(self, *, kind: TableKind = "sparse", name: str | None = None) -> None:
        if kind not in ("sparse", "dense"):
            raise ValueError(f"Unknown keymap kind '{kind}'")
        self.kind: TableKind = kind
        self.name = name
        self._entries: Dict[BindingKey, BindingValue] = {}

    def define_key(self, key: object, binding: BindingValue) -> BindingKey:
        parsed = parse_binding_key(key)
        self._entries[parsed] = binding
        return parsed

    def lookup(self, key: object) -> BindingValue:
        parsed = parse_binding_key(key)
        binding = self._entries.get(parsed)
        if binding is not None or isinstance(parsed, Remap):
            return binding
        for depth in range(1, len(parsed)):
            nested = self._entries.get(parsed.head(depth))
            if isinstance(nested, KeymapTable):
                return nested.lookup(parsed.tail(depth))
        return None

    def resolve(self, path: KeyPath) -> ResolutionResult:
        binding = self.lookup(path)
        if isinstance(binding, KeymapTable):
            return ResolutionResult(status="pending", keys=path, binding=binding)
        if binding is not None:
            return ResolutionResult(status="match", keys=path, binding=binding)
        if self._extends(path):
            return ResolutionResult(status="pending", keys=path)
        return ResolutionResult(status="miss", keys=path)

    def _extends(self, path: KeyPath) -> bool:
        for key, binding in self._entries.items():
            if not isinstance(key, KeyPath) or binding is None:
                continue
            if len(key) > len(path) and key.startswith(path):
                return True
            if (
                isinstance(binding, KeymapTable)
                and len(path) > len(key)
                and path.startswith(key)
                and binding.resolve(path.tail(len(key))).status == "pending"
            ):
                return True
        return False

    def items(self) -> Iterator[tuple[BindingKey, BindingValue]]:
        return iter(list(self._entries.items()))

    def get(self, key: object) -> Optional[BindingValue]:
        return self._entries.get(parse_binding_key(key))

    def __contains__(self, key: object) -> bool:
        return self.lookup(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<KeymapTable{label} {self.kind} entries={len(self._entries)}>"


__all__ = ["KeymapTable", "TableKind"]
