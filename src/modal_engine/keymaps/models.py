"""Key chords, key paths, remap keys and command references."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Sequence, Union

MODIFIER_ORDER = ("A", "C", "H", "M", "S", "s")
_CHORD_RE = re.compile(r"^((?:[ACHMSs]-)*)(.+)$")


def _normalize_modifiers(modifiers: Iterable[str]) -> tuple[str, ...]:
    values = {m.strip() for m in modifiers if m.strip()}
    unknown = values.difference(MODIFIER_ORDER)
    if unknown:
        raise ValueError(f"unknown key modifier(s): {sorted(unknown)}")
    return tuple(m for m in MODIFIER_ORDER if m in values)


@dataclass(frozen=True, slots=True)
class KeyStroke:
    """Single chord: a base key plus a canonically ordered modifier set."""

    key: str
    modifiers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key cannot be empty")
        object.__setattr__(self, "modifiers", _normalize_modifiers(self.modifiers))

    @classmethod
    def parse(cls, token: str) -> "KeyStroke":
        token = token.strip()
        if not token:
            raise ValueError("empty key token")
        match = _CHORD_RE.match(token)
        if match is None:
            raise ValueError(f"unparseable key token: {token!r}")
        prefix, base = match.groups()
        return cls(base, tuple(part for part in prefix.split("-") if part))

    @property
    def token(self) -> str:
        return "".join(f"{mod}-" for mod in self.modifiers) + self.key

    def __str__(self) -> str:
        return self.token


KeyPathInput = Union[str, "KeyPath", KeyStroke, Sequence[Union[str, KeyStroke]]]


@dataclass(frozen=True, slots=True)
class KeyPath:
    """Non-empty, immutable sequence of chords used as a binding key."""

    strokes: tuple[KeyStroke, ...]

    def __post_init__(self) -> None:
        if not self.strokes:
            raise ValueError("KeyPath requires at least one stroke")

    @classmethod
    def parse(cls, value: KeyPathInput) -> "KeyPath":
        """Parse Emacs-style text (``"C-x M-f"``) or a token sequence."""

        if isinstance(value, KeyPath):
            return value
        if isinstance(value, KeyStroke):
            return cls((value,))
        if isinstance(value, str):
            tokens: Sequence[Union[str, KeyStroke]] = value.split()
        else:
            tokens = value
        strokes = tuple(
            token if isinstance(token, KeyStroke) else KeyStroke.parse(str(token))
            for token in tokens
        )
        if not strokes:
            raise ValueError(f"empty key sequence: {value!r}")
        return cls(strokes)

    @classmethod
    def from_strings(cls, *tokens: str) -> "KeyPath":
        return cls.parse(tokens)

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(stroke.token for stroke in self.strokes)

    @property
    def text(self) -> str:
        return " ".join(self.tokens)

    def head(self, count: int) -> "KeyPath":
        return KeyPath(self.strokes[:count])

    def tail(self, count: int) -> "KeyPath":
        return KeyPath(self.strokes[count:])

    def startswith(self, other: "KeyPath") -> bool:
        return self.strokes[: len(other.strokes)] == other.strokes

    def prepend(self, *strokes: KeyStroke) -> "KeyPath":
        return KeyPath(tuple(strokes) + self.strokes)

    def append(self, *strokes: KeyStroke) -> "KeyPath":
        return KeyPath(self.strokes + tuple(strokes))

    def __len__(self) -> int:
        return len(self.strokes)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class Remap:
    """Key form that redirects an existing command rather than a literal key."""

    command: str

    def __post_init__(self) -> None:
        if not self.command:
            raise ValueError("remap target cannot be empty")

    @property
    def text(self) -> str:
        return f"<remap> <{self.command}>"

    def __str__(self) -> str:
        return self.text


BindingKey = Union[KeyPath, Remap]

UNBOUND_KIND = "unbound"


def parse_binding_key(raw: object) -> BindingKey:
    """Accept ``Remap``/``("remap", name)``/``"<remap> <name>"`` or key text."""

    if isinstance(raw, (KeyPath, Remap)):
        return raw
    if isinstance(raw, tuple) and len(raw) == 2 and raw[0] == "remap":
        return Remap(str(raw[1]))
    if isinstance(raw, str) and raw.startswith("<remap>"):
        return Remap(raw[len("<remap>") :].strip().strip("<>"))
    return KeyPath.parse(raw)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class Command:
    """Named callable bound into keymaps.

    ``kind`` distinguishes plain commands from motions, operators and
    keystate activators; dispatch treats them all the same. Commands of kind
    ``UNBOUND_KIND`` stand in for a key that is deliberately left unbound.
    """

    name: str
    handler: Callable[..., object]
    kind: str = "command"
    description: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Command name cannot be empty")
        if not callable(self.handler):
            raise TypeError("handler must be callable")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.handler(*args, **kwargs)


__all__ = [
    "MODIFIER_ORDER",
    "KeyStroke",
    "KeyPath",
    "KeyPathInput",
    "Remap",
    "BindingKey",
    "parse_binding_key",
    "Command",
    "UNBOUND_KIND",
]
