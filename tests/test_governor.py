"""Tests for colonist.spawning.governor - capacity transition rules."""

from collections.abc import Callable

import pytest

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import Part, Role
from colonist.colony.state import ColonyState, UnitSummary
from colonist.colony.strategic import CapacityTransition
from colonist.spawning.governor import TransitionGovernor, detect_transition

StateFactory = Callable[..., ColonyState]

W, C, M = Part.WORK, Part.CARRY, Part.MOVE

# Cost 300: above half of 550 capacity, below 70% of 800 future capacity.
MID_LOADOUT = (W, W, C, M)
CHEAP_LOADOUT = (W, C, M)


def _transition(*, delay: bool = True, suppress: bool = True) -> CapacityTransition:
    return CapacityTransition(
        in_transition=True,
        current_capacity=550,
        future_capacity=800,
        units_building=5,
        eta_ticks=200,
        suppress_renewal=suppress,
        delay_spawning=delay,
    )


class TestDetectTransition:
    """Future capacity, ETA and the suppress/delay verdicts."""

    def test_short_eta(self, make_state: StateFactory, config: SchedulerConfig) -> None:
        state = make_state(
            capacity_sites=5,
            capacity_remaining_progress=1600,
            builder_work_parts=4,
        )
        t = detect_transition(state, config)
        assert t.in_transition
        assert t.future_capacity == 800
        assert t.eta_ticks == 200
        assert t.suppress_renewal
        assert t.delay_spawning

    def test_no_builders_means_no_eta(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        state = make_state(capacity_sites=5, capacity_remaining_progress=1600)
        t = detect_transition(state, config)
        assert t.in_transition
        assert t.eta_ticks is None
        assert not t.delay_spawning
        assert not t.suppress_renewal

    def test_small_growth_does_not_suppress(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        state = make_state(
            energy_capacity=1800,
            capacity_sites=2,
            capacity_remaining_progress=100,
            builder_work_parts=4,
        )
        t = detect_transition(state, config)
        assert t.delay_spawning
        assert not t.suppress_renewal

    def test_idle(self, make_state: StateFactory, config: SchedulerConfig) -> None:
        t = detect_transition(make_state(), config)
        assert not t.in_transition
        assert t.future_capacity == t.current_capacity == 550


class TestDelays:
    """Non-critical production waits; critical and understaffed roles do not."""

    def test_non_critical_delayed(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(_transition(), config)
        state = make_state(counts={Role.BUILDER: 2})
        assert governor.delays(Role.BUILDER, state)

    def test_critical_never_delayed(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(_transition(), config)
        state = make_state(counts={Role.UPGRADER: 5})
        assert not governor.delays(Role.UPGRADER, state)
        assert not governor.delays(Role.HARVESTER, state)

    def test_below_minimum_never_delayed(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(_transition(), config)
        state = make_state(counts={Role.BUILDER: 1})
        assert not governor.delays(Role.BUILDER, state)

    @pytest.mark.parametrize("role", [Role.DEFENDER, Role.REMOTE_DEFENDER, Role.RESERVER])
    def test_first_unit_never_delayed(
        self,
        role: Role,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        """A zero or missing minimum still lets the first unit through."""
        governor = TransitionGovernor(_transition(), config)
        assert governor.minimum(role) == 1
        assert not governor.delays(role, make_state())
        assert governor.delays(role, make_state(counts={role: 1}))

    def test_no_delay_outside_transition(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(CapacityTransition(), config)
        assert not governor.delays(Role.BUILDER, make_state(counts={Role.BUILDER: 4}))


class TestRenewalSuppression:
    """Which expiring units are left to lapse."""

    def _unit(self, role: Role, loadout=MID_LOADOUT) -> UnitSummary:
        return UnitSummary("u1", role, loadout, ticks_to_live=100)

    def test_undersized_always_suppressed(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(CapacityTransition(), config)
        unit = self._unit(Role.HARVESTER, CHEAP_LOADOUT)
        assert governor.suppresses_renewal(unit, make_state(counts={Role.HARVESTER: 1}))

    def test_kept_outside_transition(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(CapacityTransition(), config)
        unit = self._unit(Role.UPGRADER)
        assert not governor.suppresses_renewal(unit, make_state(counts={Role.UPGRADER: 3}))

    def test_low_value_suppressed_in_transition(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(_transition(), config)
        unit = self._unit(Role.UPGRADER)
        assert governor.suppresses_renewal(unit, make_state(counts={Role.UPGRADER: 3}))

    def test_protected_role_at_minimum_kept(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(_transition(), config)
        unit = self._unit(Role.HARVESTER)
        state = make_state(counts={Role.HARVESTER: 2})
        assert not governor.suppresses_renewal(unit, state)

    def test_protected_role_above_minimum_suppressed(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(_transition(), config)
        unit = self._unit(Role.HAULER)
        state = make_state(counts={Role.HAULER: 3})
        assert governor.suppresses_renewal(unit, state)

    def test_below_minimum_kept(
        self,
        make_state: StateFactory,
        config: SchedulerConfig,
    ) -> None:
        governor = TransitionGovernor(_transition(), config)
        unit = self._unit(Role.BUILDER)
        assert not governor.suppresses_renewal(unit, make_state(counts={Role.BUILDER: 1}))
