from __future__ import annotations

import pytest

from modal_engine.runtime import telemetry


@pytest.fixture(autouse=True)
def quiet_telemetry() -> None:
    telemetry.configure(preset="quiet")
