"""Tests for colonist.spawning.executor - issuing build and renewal commands."""

import logging
from collections.abc import Callable

import pytest

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import Part, Role
from colonist.colony.state import ColonyState, UnitSummary
from colonist.colony.strategic import CapacityTransition, StrategicState
from colonist.spawning.executor import ActionStatus, ProductionExecutor

from conftest import RecordingActions

StateFactory = Callable[..., ColonyState]

W, C, M = Part.WORK, Part.CARRY, Part.MOVE
BIG = (W, W, W, C, M, M)
SMALL = (W, W, C, M)


@pytest.fixture
def executor(actions: RecordingActions, config: SchedulerConfig) -> ProductionExecutor:
    return ProductionExecutor(actions, config)


class TestBuild:
    """At most one build per cycle."""

    def test_single_build(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        state = make_state(
            counts={Role.HARVESTER: 1, Role.HAULER: 1},
            targets={Role.HARVESTER: 3, Role.HAULER: 3, Role.UPGRADER: 3},
        )
        outcome = executor.run(state, StrategicState.default())
        assert len(actions.produced) == 1
        assert outcome.build_status is ActionStatus.OK
        assert outcome.request is actions.produced[0]

    def test_busy_facility_does_nothing(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        state = make_state(
            facility_busy=True,
            targets={Role.HARVESTER: 2},
            units=(UnitSummary("h1", Role.HARVESTER, BIG, ticks_to_live=50),),
        )
        outcome = executor.run(state, StrategicState.default())
        assert actions.produced == []
        assert actions.renewed == []
        assert outcome.admission is None

    def test_rejection_is_logged(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        actions.produce_status = ActionStatus.NOT_ENOUGH_ENERGY
        state = make_state(counts={Role.HARVESTER: 1}, targets={Role.HARVESTER: 2})
        with caplog.at_level(logging.WARNING):
            outcome = executor.run(state, StrategicState.default())
        assert outcome.build_status is ActionStatus.NOT_ENOUGH_ENERGY
        assert len(actions.produced) == 1
        assert "rejected" in caplog.text

    def test_raised_rejection_is_caught(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        actions.raise_on_produce = True
        state = make_state(counts={Role.HARVESTER: 1}, targets={Role.HARVESTER: 2})
        outcome = executor.run(state, StrategicState.default())
        assert outcome.build_status is ActionStatus.BUSY


class TestRenewal:
    """Nearest eligible unit, only with spare energy and a free facility."""

    def _state(self, make_state: StateFactory, *units: UnitSummary, **overrides) -> ColonyState:
        counts = {Role.HARVESTER: 2, Role.HAULER: 2, Role.UPGRADER: 2}
        fields = {"counts": counts, "targets": counts, "units": units}
        fields.update(overrides)
        return make_state(**fields)

    def test_renews_nearest(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        state = self._state(
            make_state,
            UnitSummary("far", Role.UPGRADER, BIG, ticks_to_live=100, distance=1),
            UnitSummary("near", Role.UPGRADER, BIG, ticks_to_live=200, distance=0),
        )
        outcome = executor.run(state, StrategicState.default())
        assert actions.produced == []
        assert actions.renewed == ["near"]
        assert outcome.renew_status is ActionStatus.OK

    def test_larger_unit_wins_tie(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        state = self._state(
            make_state,
            UnitSummary("small", Role.HAULER, (C, M, C, M, C, M), ticks_to_live=100),
            UnitSummary("big", Role.UPGRADER, BIG + (M,), ticks_to_live=100),
        )
        executor.run(state, StrategicState.default())
        assert actions.renewed == ["big"]

    def test_ineligible_units_skipped(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        state = self._state(
            make_state,
            UnitSummary("young", Role.UPGRADER, BIG, ticks_to_live=900),
            UnitSummary("away", Role.UPGRADER, BIG, ticks_to_live=100, distance=5),
            UnitSummary("cheap", Role.UPGRADER, (W, C, M), ticks_to_live=100),
        )
        outcome = executor.run(state, StrategicState.default())
        assert actions.renewed == []
        assert outcome.renewed is None

    def test_needs_half_capacity_available(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        state = self._state(
            make_state,
            UnitSummary("u1", Role.UPGRADER, BIG, ticks_to_live=100),
            energy_available=200,
        )
        executor.run(state, StrategicState.default())
        assert actions.renewed == []

    def test_no_renewal_after_successful_build(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        state = self._state(
            make_state,
            UnitSummary("u1", Role.UPGRADER, BIG, ticks_to_live=100),
            targets={Role.HARVESTER: 2, Role.HAULER: 2, Role.UPGRADER: 3},
        )
        executor.run(state, StrategicState.default())
        assert len(actions.produced) == 1
        assert actions.renewed == []

    def test_renewal_after_rejected_build(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        actions.produce_status = ActionStatus.INVALID
        state = self._state(
            make_state,
            UnitSummary("u1", Role.UPGRADER, BIG, ticks_to_live=100),
            targets={Role.HARVESTER: 2, Role.HAULER: 2, Role.UPGRADER: 3},
        )
        executor.run(state, StrategicState.default())
        assert actions.renewed == ["u1"]

    def test_transition_suppresses(
        self,
        executor: ProductionExecutor,
        actions: RecordingActions,
        make_state: StateFactory,
    ) -> None:
        strategic = StrategicState(
            capacity_transition=CapacityTransition(
                in_transition=True,
                current_capacity=550,
                future_capacity=800,
                units_building=5,
                eta_ticks=200,
                suppress_renewal=True,
            ),
        )
        state = self._state(
            make_state,
            UnitSummary("u1", Role.UPGRADER, SMALL, ticks_to_live=100),
        )
        executor.run(state, strategic)
        assert actions.renewed == []
