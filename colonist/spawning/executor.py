"""ProductionExecutor — issue this cycle's build and renewal commands.

The whole decision is computed before anything is sent, so a host that
aborts mid-cycle never observes a half-applied decision.  Each command
is sent once; a rejection is logged and the next cycle re-evaluates
from a fresh snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from colonist.colony.config import SchedulerConfig
from colonist.colony.state import ColonyState, UnitSummary
from colonist.colony.strategic import StrategicState
from colonist.errors import ActionRejectedError
from colonist.spawning.admission import Admission, AdmissionFilter, ProductionRequest
from colonist.spawning.governor import TransitionGovernor

logger = logging.getLogger(__name__)


class ActionStatus(Enum):
    """Synchronous result of a command sent to the host."""

    OK = auto()
    NOT_ENOUGH_ENERGY = auto()
    BUSY = auto()
    INVALID = auto()


class ActionInterface(Protocol):
    """The host's command surface for one colony's production facility."""

    def produce(self, request: ProductionRequest) -> ActionStatus: ...

    def renew(self, unit_id: str) -> ActionStatus: ...


@dataclass
class CycleOutcome:
    """What the executor decided and what the host answered."""

    admission: Admission | None = None
    build_status: ActionStatus | None = None
    renewed: UnitSummary | None = None
    renew_status: ActionStatus | None = None

    @property
    def request(self) -> ProductionRequest | None:
        return self.admission.request if self.admission else None


def _send(command: Callable[[], ActionStatus]) -> ActionStatus:
    try:
        return command()
    except ActionRejectedError as exc:
        return exc.status


class ProductionExecutor:
    """Runs one colony's production decision each cycle.

    Args:
        actions: Host command interface.
        config: Scheduler tuning.
    """

    def __init__(self, actions: ActionInterface, config: SchedulerConfig) -> None:
        self.actions = actions
        self.config = config

    def renewal_candidate(
        self,
        state: ColonyState,
        governor: TransitionGovernor,
    ) -> UnitSummary | None:
        """Nearest near-expiry unit worth renewing, larger units first on ties."""
        if state.energy_available < state.energy_capacity * self.config.renew_min_energy_ratio:
            return None
        eligible = [
            unit
            for unit in state.units
            if unit.ticks_to_live < self.config.renew_ttl_below
            and unit.distance <= self.config.renew_max_distance
            and not governor.suppresses_renewal(unit, state)
        ]
        if not eligible:
            return None
        return min(eligible, key=lambda u: (u.distance, -u.part_count, u.unit_id))

    def run(self, state: ColonyState, strategic: StrategicState) -> CycleOutcome:
        """Decide and issue at most one build and at most one renewal."""
        governor = TransitionGovernor(strategic.capacity_transition, self.config)
        outcome = CycleOutcome()

        if not state.facility_busy:
            outcome.admission = AdmissionFilter(self.config, governor).admit(state)
            request = outcome.admission.request
            if request is not None:
                outcome.build_status = _send(lambda: self.actions.produce(request))
                if outcome.build_status is ActionStatus.OK:
                    logger.info(
                        "[%s] Producing %s (%d parts, %d energy, utility %.1f)",
                        state.name,
                        request.role.name,
                        len(request.loadout),
                        request.cost,
                        request.utility,
                    )
                else:
                    logger.warning(
                        "[%s] Production of %s rejected: %s",
                        state.name,
                        request.role.name,
                        outcome.build_status.name,
                    )

        # A successful build occupies the facility for the rest of the cycle.
        if state.facility_busy or outcome.build_status is ActionStatus.OK:
            return outcome

        unit = self.renewal_candidate(state, governor)
        if unit is not None:
            outcome.renewed = unit
            outcome.renew_status = _send(lambda: self.actions.renew(unit.unit_id))
            if outcome.renew_status is ActionStatus.OK:
                logger.info("[%s] Renewing %s (%s)", state.name, unit.unit_id, unit.role.name)
            else:
                logger.warning(
                    "[%s] Renewal of %s rejected: %s",
                    state.name,
                    unit.unit_id,
                    outcome.renew_status.name,
                )
        return outcome
