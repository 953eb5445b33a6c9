"""Textual front end for the modal engine."""

from .controller import (
    BlockingKeyQueue,
    TextualModalAdapter,
    TextualUIHooks,
    translate_key,
)

__all__ = [
    "BlockingKeyQueue",
    "TextualModalAdapter",
    "TextualUIHooks",
    "translate_key",
]
