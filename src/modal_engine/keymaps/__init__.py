"""Keymap tables, prefix transforms, composition and the definition registry."""

from .models import UNBOUND_KIND, Command, KeyPath, KeyStroke, Remap, parse_binding_key
from .table import KeymapTable
from .resolver import ResolutionResult, lookup_layers, resolve_layers
from .prefix import apply_prefix, normalize_prefix
from .composer import ComposedKeymap, CompositionSpec, Direct, Prefixed, as_spec, compose
from .registry import ConflictPolicy, KeymapRegistry, RegistryStats

__all__ = [
    "Command",
    "KeyPath",
    "KeyStroke",
    "Remap",
    "parse_binding_key",
    "UNBOUND_KIND",
    "KeymapTable",
    "ResolutionResult",
    "lookup_layers",
    "resolve_layers",
    "apply_prefix",
    "normalize_prefix",
    "ComposedKeymap",
    "CompositionSpec",
    "Direct",
    "Prefixed",
    "as_spec",
    "compose",
    "ConflictPolicy",
    "KeymapRegistry",
    "RegistryStats",
]
