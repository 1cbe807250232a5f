"""Tests for colonist.colony.store and the StrategicState model."""

import logging

import pytest

from colonist.colony.roles import Role
from colonist.colony.store import InMemoryStore, StrategicStateRepository
from colonist.colony.strategic import (
    PHASE_ALLOCATIONS,
    Bottleneck,
    CapacityTransition,
    EnergyBudget,
    LevelProgress,
    Phase,
    StrategicState,
    WorkforceRequirements,
)


def _plan(updated_at: int = 100) -> StrategicState:
    return StrategicState(
        phase=Phase.STABLE,
        updated_at=updated_at,
        budget=EnergyBudget(
            income_per_tick=18.0,
            max_income_per_tick=20.0,
            harvest_efficiency=0.9,
            allocation=PHASE_ALLOCATIONS[Phase.STABLE],
        ),
        workforce=WorkforceRequirements(
            harvest_work_parts=10,
            targets={Role.HARVESTER: 2, Role.UPGRADER: 4},
            gaps={Role.HARVESTER: 0, Role.UPGRADER: 1},
        ),
        bottleneck=Bottleneck.CAPACITY,
        recommendations=("Production facility saturated; units are queueing",),
        progress=LevelProgress(current=10.0, total=100.0, percent=10.0, eta_ticks=None),
        capacity_transition=CapacityTransition(
            in_transition=True,
            current_capacity=1800,
            future_capacity=2300,
            units_building=10,
            eta_ticks=120,
            delay_spawning=True,
        ),
    )


class TestStrategicState:
    """Defaults and serialisation."""

    def test_default_is_conservative(self) -> None:
        state = StrategicState.default()
        assert state.is_default
        assert not state.capacity_transition.suppress_renewal
        assert not state.capacity_transition.delay_spawning
        assert state.budget.allocation.total == pytest.approx(100)
        assert state.budget.allocation.production == state.budget.allocation.reserve

    def test_dict_round_trip(self) -> None:
        plan = _plan()
        data = plan.to_dict()
        assert data["phase"] == "stable"
        assert data["workforce"]["targets"] == {"harvester": 2, "upgrader": 4}
        assert StrategicState.from_dict(data) == plan

    def test_future_capacity_never_below_current(self) -> None:
        t = CapacityTransition(current_capacity=800, future_capacity=300)
        assert t.future_capacity == 800


class TestStrategicStateRepository:
    """Namespacing, staleness and malformed entries."""

    def test_key_namespaced(self) -> None:
        assert StrategicStateRepository.key("alpha") == "colony/alpha/strategic"

    def test_absent_is_default(self, store: InMemoryStore) -> None:
        assert StrategicStateRepository(store).load("alpha", now=0).is_default

    def test_fresh_plan_loaded(self, store: InMemoryStore) -> None:
        repository = StrategicStateRepository(store)
        repository.save("alpha", _plan(updated_at=100))
        loaded = repository.load("alpha", now=200)
        assert loaded == _plan(updated_at=100)

    def test_colonies_are_independent(self, store: InMemoryStore) -> None:
        repository = StrategicStateRepository(store)
        repository.save("alpha", _plan())
        assert repository.load("beta", now=100).is_default

    def test_stale_plan_is_default(self, store: InMemoryStore) -> None:
        repository = StrategicStateRepository(store, max_age=100)
        repository.save("alpha", _plan(updated_at=100))
        assert repository.load("alpha", now=201).is_default

    @pytest.mark.parametrize(
        "raw",
        [
            {"phase": "stable"},
            {**_plan().to_dict(), "phase": "panic"},
            {**_plan().to_dict(), "budget": "lots"},
            "not a mapping",
        ],
    )
    def test_malformed_plan_is_default(
        self,
        raw: object,
        store: InMemoryStore,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store.set(StrategicStateRepository.key("alpha"), raw)
        with caplog.at_level(logging.WARNING):
            loaded = StrategicStateRepository(store).load("alpha", now=100)
        assert loaded.is_default
        assert "malformed" in caplog.text
