"""EconomicCoordinator — periodic colony-level planning.

Runs once per strategy interval, strictly before the production pass of
the same cycle, and writes a fresh :class:`StrategicState`:

1. Classify the development phase (emergency overrides maturity).
2. Estimate income and split it by the phase's allocation.
3. Derive workforce requirements and gaps from that budget.
4. Diagnose the single biggest bottleneck (first match wins).
5. Measure progress toward the next level.
6. Detect capacity transitions for the governor.
7. Summarise the above as human-readable recommendations.

Everything here is advisory except the capacity transition, which the
governor enforces.
"""

from __future__ import annotations

import logging
import math

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import Role
from colonist.colony.state import ColonyState
from colonist.colony.store import StrategicStateRepository
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
from colonist.spawning.governor import detect_transition
from colonist.strategy.telemetry import IncomeTelemetry

logger = logging.getLogger(__name__)

EMERGENCY_DPS = 50.0
CRITICAL_HITS_RATIO = 0.5
BOOTSTRAP_MAX_LEVEL = 2
DEVELOPING_MAX_LEVEL = 4

INCOME_WINDOW = 20
INCOME_FALLBACK_RATIO = 0.5

LOW_EFFICIENCY = 0.5
DROPPED_BACKLOG = 500
CONTAINER_BACKLOG = 1500
POPULATION_GAP = 3
LOW_BUCKET = 3000

# Energy a hauler CARRY part moves per tick on an average round trip.
CARRY_THROUGHPUT = 2.5


def classify_phase(state: ColonyState) -> Phase:
    """Emergency if under attack, badly damaged or without harvesters."""
    if (
        state.hostile_dps > EMERGENCY_DPS
        or state.facility_hits_ratio < CRITICAL_HITS_RATIO
        or state.count(Role.HARVESTER) == 0
    ):
        return Phase.EMERGENCY
    if state.level <= BOOTSTRAP_MAX_LEVEL:
        return Phase.BOOTSTRAP
    if state.level <= DEVELOPING_MAX_LEVEL:
        return Phase.DEVELOPING
    return Phase.STABLE


def estimate_budget(
    state: ColonyState,
    phase: Phase,
    telemetry: IncomeTelemetry | None,
) -> EnergyBudget:
    """Income from telemetry, or half the theoretical maximum without it."""
    income = telemetry.average(INCOME_WINDOW) if telemetry is not None else None
    if income is None:
        income = state.energy_income_max * INCOME_FALLBACK_RATIO
    max_income = state.energy_income_max
    efficiency = min(1.0, max(0.0, income / max_income)) if max_income > 0 else 0.0
    return EnergyBudget(
        income_per_tick=income,
        max_income_per_tick=max_income,
        harvest_efficiency=efficiency,
        allocation=PHASE_ALLOCATIONS[phase],
    )


def plan_workforce(
    state: ColonyState,
    budget: EnergyBudget,
    config: SchedulerConfig,
) -> WorkforceRequirements:
    """Work parts each purpose can use and the unit counts that implies.

    Per-unit capability is estimated from current capacity: a harvester
    carries up to five WORK parts, an upgrader four, a builder one per
    200 capacity and a hauler up to eight CARRY parts.
    """
    income = budget.income_per_tick
    allocation = budget.allocation
    capacity = state.energy_capacity

    harvest_parts = state.source_count * config.harvester_work_cap
    upgrade_parts = math.ceil(income * allocation.upgrading / 100)
    build_parts = max(1, math.ceil(income * allocation.building / 100 / config.build_rate_per_work))

    per_harvester = max(1, min(config.harvester_work_cap, capacity // 150))
    per_upgrader = max(1, min(4, capacity // 150))
    per_builder = max(1, capacity // 200)
    per_hauler = max(1, min(8, capacity // 100))

    surplus = (
        state.container_fill_ratio > 0.5
        or state.storage_fill_ratio > 0.3
        or state.dropped_energy > 200
    )

    targets: dict[Role, int] = {
        Role.HARVESTER: max(state.source_count, math.ceil(harvest_parts / per_harvester)),
        Role.HAULER: max(1, math.ceil(income / (per_hauler * CARRY_THROUGHPUT))),
    }
    upgraders = max(1, math.ceil(upgrade_parts / per_upgrader))
    if state.construction_sites > 0:
        builders = max(
            1,
            math.ceil(build_parts / per_builder),
            math.ceil(math.sqrt(state.construction_sites)),
        )
        targets[Role.BUILDER] = builders + (1 if surplus else 0)
        if surplus and not state.destinations_have_capacity:
            upgraders += 1
    else:
        # Nothing to build: builders' share goes to upgrading.
        upgraders += 2
    targets[Role.UPGRADER] = upgraders

    gaps = {role: target - state.count(role) for role, target in targets.items()}
    return WorkforceRequirements(
        harvest_work_parts=harvest_parts,
        upgrade_work_parts=upgrade_parts,
        build_work_parts=build_parts,
        carry_throughput=income,
        targets=targets,
        gaps=gaps,
    )


def diagnose_bottleneck(
    state: ColonyState,
    budget: EnergyBudget,
    workforce: WorkforceRequirements,
) -> Bottleneck | None:
    """Return the first limiting factor found, or None if none applies."""
    if budget.harvest_efficiency < LOW_EFFICIENCY:
        return Bottleneck.INCOME
    if state.dropped_energy > DROPPED_BACKLOG or state.container_energy > CONTAINER_BACKLOG:
        if state.destinations_have_capacity:
            return Bottleneck.TRANSPORT
        return Bottleneck.CONSUMPTION
    if (
        state.extensions_built < state.extensions_allowed
        or state.sources_without_container > 0
    ):
        return Bottleneck.CONSTRUCTION
    gap = workforce.total_positive_gap
    if gap >= POPULATION_GAP:
        return Bottleneck.POPULATION
    if state.facility_busy and gap > 0:
        return Bottleneck.CAPACITY
    if state.compute_bucket < LOW_BUCKET:
        return Bottleneck.COMPUTE
    return None


def measure_progress(state: ColonyState, budget: EnergyBudget) -> LevelProgress:
    total = state.level_progress_total
    current = state.level_progress
    percent = current / total * 100 if total > 0 else 0.0
    rate = budget.income_per_tick * budget.allocation.upgrading / 100
    remaining = max(0.0, total - current)
    eta = math.ceil(remaining / rate) if rate > 0 else None
    return LevelProgress(
        current=current,
        total=total if total > 0 else 1.0,
        percent=percent,
        eta_ticks=eta,
    )


def recommend(
    state: ColonyState,
    budget: EnergyBudget,
    workforce: WorkforceRequirements,
    bottleneck: Bottleneck | None,
    transition: CapacityTransition,
) -> tuple[str, ...]:
    """Informational notes for operators; nothing reads them back."""
    notes: list[str] = []
    if transition.suppress_renewal:
        notes.append(
            f"Capacity growing {transition.current_capacity} -> "
            f"{transition.future_capacity}; letting small units expire",
        )
    if transition.delay_spawning:
        notes.append(
            f"Delaying non-critical production for ~{transition.eta_ticks} ticks",
        )

    if bottleneck is Bottleneck.INCOME:
        notes.append(
            f"Harvest efficiency {budget.harvest_efficiency:.0%}; "
            f"need {workforce.harvest_work_parts} WORK parts on sources",
        )
    elif bottleneck is Bottleneck.TRANSPORT:
        notes.append(
            f"Energy piling up; haulers must move {workforce.carry_throughput:.1f}/tick",
        )
    elif bottleneck is Bottleneck.CONSUMPTION:
        notes.append("Energy piling up with nowhere to go; add upgraders or storage")
    elif bottleneck is Bottleneck.CONSTRUCTION:
        if state.extensions_built < state.extensions_allowed:
            missing = state.extensions_allowed - state.extensions_built
            notes.append(f"Build {missing} more capacity structures")
        if state.sources_without_container > 0:
            notes.append(f"Build containers at {state.sources_without_container} sources")
    elif bottleneck is Bottleneck.POPULATION:
        for role, gap in workforce.gaps.items():
            if gap > 0:
                notes.append(f"Need {gap} more {role.value}")
    elif bottleneck is Bottleneck.CAPACITY:
        notes.append("Production facility saturated; units are queueing")
    elif bottleneck is Bottleneck.COMPUTE:
        notes.append(f"Compute bucket low ({state.compute_bucket})")

    if not notes:
        notes.append("Colony running smoothly")
    return tuple(notes)


class EconomicCoordinator:
    """Builds and stores one colony's strategic plan.

    Args:
        config: Scheduler tuning; ``strategy_interval`` sets the cadence.
        repository: Where plans are written.
        telemetry: Rolling income history, if the host keeps one.
    """

    def __init__(
        self,
        config: SchedulerConfig,
        repository: StrategicStateRepository,
        telemetry: IncomeTelemetry | None = None,
    ) -> None:
        self.config = config
        self.repository = repository
        self.telemetry = telemetry

    def due(self, tick: int) -> bool:
        return tick % self.config.strategy_interval == 0

    def plan(self, state: ColonyState) -> StrategicState:
        """Compute a plan for ``state`` without storing it."""
        phase = classify_phase(state)
        budget = estimate_budget(state, phase, self.telemetry)
        workforce = plan_workforce(state, budget, self.config)
        bottleneck = diagnose_bottleneck(state, budget, workforce)
        transition = detect_transition(state, self.config)
        return StrategicState(
            phase=phase,
            updated_at=state.tick,
            budget=budget,
            workforce=workforce,
            bottleneck=bottleneck,
            recommendations=recommend(state, budget, workforce, bottleneck, transition),
            progress=measure_progress(state, budget),
            capacity_transition=transition,
        )

    def run(self, state: ColonyState) -> StrategicState:
        """Plan for ``state`` and write the result to the repository."""
        strategic = self.plan(state)
        self.repository.save(state.name, strategic)
        logger.info(
            "[%s] Strategy: %s, income %.1f/tick (%.0f%%), bottleneck %s",
            state.name,
            strategic.phase.value,
            strategic.budget.income_per_tick,
            strategic.budget.harvest_efficiency * 100,
            strategic.bottleneck.value if strategic.bottleneck else "none",
        )
        for note in strategic.recommendations:
            logger.debug("[%s]   %s", state.name, note)
        return strategic
