"""ColonyController — one colony's per-cycle entry point.

Wires the coordinator, the strategic-state repository and the executor
together and enforces their ordering: when a strategic refresh is due,
it is written before the executor reads the plan in the same cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from colonist.colony.config import SchedulerConfig
from colonist.colony.state import ColonyState
from colonist.colony.store import KeyValueStore, StrategicStateRepository
from colonist.colony.strategic import StrategicState
from colonist.errors import MalformedSnapshotError
from colonist.spawning.executor import ActionInterface, CycleOutcome, ProductionExecutor
from colonist.strategy.coordinator import EconomicCoordinator
from colonist.strategy.telemetry import IncomeTelemetry

logger = logging.getLogger(__name__)


class ColonyController:
    """Runs the production core for a single colony.

    Args:
        actions: Host command interface for the colony's facility.
        store: Shared key-value store holding strategic plans.
        config: Scheduler tuning.

    Attributes:
        telemetry: Income history fed from every snapshot.
        repository: Strategic plan storage.
        coordinator: Periodic planner.
        executor: Per-cycle build and renewal.
        last_strategic: Plan used by the most recent cycle.
    """

    def __init__(
        self,
        actions: ActionInterface,
        store: KeyValueStore,
        config: SchedulerConfig | None = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self.telemetry = IncomeTelemetry()
        self.repository = StrategicStateRepository(store, max_age=self.config.strategy_interval)
        self.coordinator = EconomicCoordinator(self.config, self.repository, self.telemetry)
        self.executor = ProductionExecutor(actions, self.config)
        self.last_strategic: StrategicState = StrategicState.default()

    def tick(self, snapshot: ColonyState | Mapping[str, Any]) -> CycleOutcome:
        """Run one cycle; a malformed snapshot produces nothing."""
        if isinstance(snapshot, ColonyState):
            state = snapshot
        else:
            try:
                state = ColonyState.from_mapping(snapshot)
            except MalformedSnapshotError as exc:
                logger.warning("Skipping cycle on malformed snapshot: %s", exc)
                return CycleOutcome()

        self.telemetry.record(state.energy_income)
        if self.coordinator.due(state.tick):
            self.coordinator.run(state)

        self.last_strategic = self.repository.load(state.name, state.tick)
        return self.executor.run(state, self.last_strategic)
