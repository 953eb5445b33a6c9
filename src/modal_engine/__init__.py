"""Modal input engine: composable keystates and an operator/motion protocol."""

__all__ = [
    "actions",
    "adapters",
    "engine",
    "errors",
    "host",
    "keymaps",
    "modes",
    "runtime",
]

__version__ = "0.1.0"
