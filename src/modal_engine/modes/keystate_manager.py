"""Keystate activation: resolve a keystate name and install its composed table."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from modal_engine.errors import NoValidKeystate
from modal_engine.keymaps import Command, ComposedKeymap, ConflictPolicy, KeymapRegistry
from modal_engine.runtime import telemetry

from .bus import ModeBus

DISABLED_MESSAGE = "Modal editing disabled"


class KeystateManager:
    """Tracks the active and default keystate and swaps the host's table."""

    def __init__(
        self,
        registry: KeymapRegistry,
        host: Any,
        bus: ModeBus,
        *,
        default: Optional[str] = None,
    ) -> None:
        self.registry = registry
        self.host = host
        self.bus = bus
        self.default = default
        self.active: Optional[str] = None
        self.installed: Optional[ComposedKeymap] = None
        self.logger = telemetry.get_logger("modal_engine.keystates")

    def define_keystate(
        self,
        name: str,
        specs: Iterable[object],
        *,
        on_conflict: ConflictPolicy | None = None,
    ) -> Command:
        """Register ``name`` and its activation command ``name``.

        Redefining the active keystate reinstalls it straight away.
        """

        activation = Command(
            name=name,
            handler=lambda _engine, keystate=name: self.switch_to(keystate),
            kind="keystate",
            description=f"Activate keystate '{name}'",
        )
        self.registry.define_keystate(
            name, specs, activation=activation, on_conflict=on_conflict
        )
        if self.active == name:
            self.switch_to(name)
        return activation

    def is_bound(self, name: object) -> bool:
        return bool(name) and self.registry.has_keystate(name)

    def switch_to(self, requested: Optional[str]) -> Optional[ComposedKeymap]:
        """Activate ``requested``, falling back to the default keystate.

        A falsy ``requested`` disables modal dispatch. When neither the
        request nor the default is a known keystate, ``active`` is reset
        and ``NoValidKeystate`` raised while the installed table stays put.
        """

        with telemetry.span(
            "keystates::switch",
            logger_name="modal_engine.keystates",
            component="keystates",
            metadata={"requested": requested, "default": self.default},
        ) as handle:
            if not requested:
                self.active = None
                self.installed = None
                self.host.install_active_table(self.host.baseline_table)
                self.host.notice(DISABLED_MESSAGE)
                self.bus.emit("keystate.disabled", None)
                return None

            if self.is_bound(requested):
                target = requested
            elif self.is_bound(self.default):
                handle.add_metadata("fallback", self.default)
                target = str(self.default)
            else:
                self.active = None
                raise NoValidKeystate(requested, self.default)

            composed = self.registry.compose_keystate(
                target, self.host.baseline_table
            )
            self.active = target
            self.host.install_active_table(composed)
            self.installed = composed
            self.host.notice(f"Keystate: {self.active}")
            telemetry.record_event(
                "keystate.switch",
                data={"keystate": self.active, "requested": requested},
                logger_name="modal_engine.keystates",
            )
            self.bus.emit("keystate.switch", self.active)
            return composed


__all__ = ["KeystateManager", "DISABLED_MESSAGE"]
