"""User-facing error taxonomy shared by the keymap and operator layers."""

from __future__ import annotations

from typing import Optional


class ModalEngineError(RuntimeError):
    """Base class for non-fatal errors surfaced to the invoking context."""


class InvalidKeymap(ModalEngineError):
    """Raised when a value cannot be resolved to a keymap table."""

    def __init__(self, value: object, *, reason: str | None = None) -> None:
        message = f"Invalid keymap: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.value = value
        self.reason = reason


class NoValidKeystate(ModalEngineError):
    """Raised when activation has neither a known target nor a usable default."""

    def __init__(self, requested: object, default: Optional[str]) -> None:
        super().__init__(
            f"No valid keystate: requested {requested!r}, default {default!r}"
        )
        self.requested = requested
        self.default = default


class InvalidMotion(ModalEngineError):
    """Raised when a motion read does not yield a usable range."""

    def __init__(self, message: str, *, keys: object | None = None) -> None:
        super().__init__(message)
        self.keys = keys


class InvalidArgument(ModalEngineError):
    """Raised when an operator receives a non-position ``beg`` or ``end``."""

    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"Invalid argument {name}: {value!r} is not a valid position")
        self.name = name
        self.value = value


class DuplicateDefinition(ModalEngineError):
    """Raised by the ``fail`` conflict policy when a name is already taken."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind.capitalize()} '{name}' is already defined")
        self.kind = kind
        self.name = name


class DefinitionDeclined(ModalEngineError):
    """Raised when an overwrite confirmation is declined or impossible."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"Definition of {kind} '{name}' declined")
        self.kind = kind
        self.name = name


class InputInterrupted(ModalEngineError):
    """Raised by host reads when the user cancels (quit key)."""


class InputExhausted(InputInterrupted):
    """Raised by host reads when the input source has nothing left."""


__all__ = [
    "ModalEngineError",
    "InvalidKeymap",
    "NoValidKeystate",
    "InvalidMotion",
    "InvalidArgument",
    "DuplicateDefinition",
    "DefinitionDeclined",
    "InputInterrupted",
    "InputExhausted",
]
