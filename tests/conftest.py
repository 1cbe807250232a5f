"""Shared fixtures for the Colonist test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import Role
from colonist.colony.state import ColonyState
from colonist.colony.store import InMemoryStore
from colonist.errors import ActionRejectedError
from colonist.simulation.config import SimulationConfig
from colonist.spawning.admission import ProductionRequest
from colonist.spawning.executor import ActionStatus


class RecordingActions:
    """Action interface double that records commands and answers OK."""

    def __init__(self) -> None:
        self.produced: list[ProductionRequest] = []
        self.renewed: list[str] = []
        self.produce_status = ActionStatus.OK
        self.renew_status = ActionStatus.OK
        self.raise_on_produce = False

    def produce(self, request: ProductionRequest) -> ActionStatus:
        self.produced.append(request)
        if self.raise_on_produce:
            raise ActionRejectedError(ActionStatus.BUSY, "spawning")
        return self.produce_status

    def renew(self, unit_id: str) -> ActionStatus:
        self.renewed.append(unit_id)
        return self.renew_status


@pytest.fixture
def config() -> SchedulerConfig:
    """Default scheduler tuning (no YAML file needed)."""
    return SchedulerConfig()


@pytest.fixture
def make_state() -> Callable[..., ColonyState]:
    """Factory for snapshots of a modest level-3 colony at half income."""

    def _make(**overrides: Any) -> ColonyState:
        fields: dict[str, Any] = {
            "level": 3,
            "energy_available": 550,
            "energy_capacity": 550,
            "energy_income": 10.0,
            "energy_income_max": 20.0,
            "source_count": 2,
        }
        fields.update(overrides)
        return ColonyState(**fields)

    return _make


@pytest.fixture
def staffed_counts() -> dict[Role, int]:
    """Role counts of a colony whose home economy is fully staffed."""
    return {Role.HARVESTER: 2, Role.HAULER: 2, Role.UPGRADER: 2}


@pytest.fixture
def actions() -> RecordingActions:
    return RecordingActions()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def sim_config() -> SimulationConfig:
    """Default simulation config (no raids, no YAML file needed)."""
    return SimulationConfig()
