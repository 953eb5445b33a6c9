"""Prefix transforms: rewrite every key of a table under a key prefix."""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from modal_engine.errors import InvalidKeymap
from modal_engine.runtime.telemetry import span

from .models import KeyPath, Remap
from .table import KeymapTable

if TYPE_CHECKING:  # pragma: no cover
    from .composer import ComposedKeymap

SEPARATORS = (" ", "-")


def normalize_prefix(prefix: str) -> str:
    """Make ``prefix`` safe to concatenate with a key's text.

    A prefix already ending in a space or ``-`` is returned as is; anything
    else gets one space appended, so ``"C-"`` glues onto the next chord while
    ``"M"`` becomes a chord of its own.
    """

    if prefix.endswith(SEPARATORS):
        return prefix
    return prefix + " "


def apply_prefix(
    table: Union[KeymapTable, "ComposedKeymap"],
    prefix: str,
    recurse: bool = False,
) -> KeymapTable:
    """Return a new table holding ``table``'s entries under ``prefix``.

    Remap keys are carried over untouched. Nested tables are shared by
    reference unless ``recurse`` is set, in which case they are transformed
    with the same prefix.
    """

    source = _as_table(table)
    normalized = normalize_prefix(prefix)
    with span(
        "keymaps::apply_prefix",
        logger_name="modal_engine.keymaps",
        component="keymaps",
        metadata={"prefix": prefix, "recurse": recurse, "source": source.name or "?"},
    ):
        result = KeymapTable(kind=source.kind, name=_prefixed_name(source, prefix))
        for key, binding in source.items():
            if isinstance(key, Remap):
                new_key: KeyPath | Remap = key
            else:
                new_key = KeyPath.parse(normalized + key.text)
            if recurse and isinstance(binding, KeymapTable):
                binding = apply_prefix(binding, prefix, recurse=True)
            result.define_key(new_key, binding)
        return result


def _as_table(value: object) -> KeymapTable:
    if isinstance(value, KeymapTable):
        return value
    flatten = getattr(value, "flatten", None)
    if callable(flatten):
        flattened = flatten()
        if isinstance(flattened, KeymapTable):
            return flattened
    raise InvalidKeymap(value, reason="expected a keymap table")


def _prefixed_name(source: KeymapTable, prefix: str) -> str | None:
    if source.name is None:
        return None
    return f"{normalize_prefix(prefix)}{source.name}"


__all__ = ["SEPARATORS", "normalize_prefix", "apply_prefix"]
