"""AdmissionFilter and RequestBuilder — from scores to one request.

One scheduling pass:

1. score every role (zero-utility roles drop out);
2. build each remaining role's loadout (roles the budget cannot cover
   drop out);
3. resolve a remote target for roles that need one (no target, drop);
4. ask the transition governor (vetoed roles drop out);
5. rank by utility, highest first, ties broken by the priority table;
6. drop anything costing more than the energy available now.

If the best-ranked candidate is unaffordable while the colony still
earns energy, nothing is produced this cycle: spending on a lower
ranked role would only delay the one that matters.  With no income the
colony would wait forever, so the best affordable candidate goes ahead.

The facility builds one unit at a time, so a pass yields at most one
:class:`ProductionRequest`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from functools import cached_property

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import Loadout, Role, loadout_cost
from colonist.colony.state import ColonyState
from colonist.spawning.governor import TransitionGovernor
from colonist.spawning.loadout import build_loadout
from colonist.spawning.targets import Assignment, resolve_target
from colonist.spawning.utility import score

logger = logging.getLogger(__name__)


class Rejection(Enum):
    """Why a role was not produced this cycle."""

    NO_UTILITY = auto()
    NO_LOADOUT = auto()
    NO_TARGET = auto()
    GOVERNOR_VETO = auto()
    INSUFFICIENT_ENERGY = auto()
    HELD_FOR_BETTER = auto()


@dataclass(frozen=True)
class Candidate:
    """A role the colony could produce this cycle."""

    role: Role
    utility: float
    loadout: Loadout
    cost: int
    assignment: Assignment


@dataclass(frozen=True)
class ProductionRequest:
    """The single build command a pass may emit.

    Attributes:
        role: Role of the unit to produce.
        priority: The role's tie-break rank.
        loadout: Part composition.
        assignment: Where the unit should work.
        cost: Energy the loadout costs.
        utility: Utility the role scored.
    """

    role: Role
    priority: int
    loadout: Loadout
    assignment: Assignment
    cost: int
    utility: float


class PassCache:
    """Memoises per-role work for exactly one scheduling pass.

    Created at the start of a pass and discarded with it, so nothing
    computed for one snapshot can leak into the next.
    """

    def __init__(self, state: ColonyState, config: SchedulerConfig) -> None:
        self.state = state
        self.config = config
        self._utility: dict[Role, float] = {}
        self._loadouts: dict[Role, Loadout] = {}

    @cached_property
    def emergency(self) -> bool:
        return self.state.is_emergency

    def utility(self, role: Role) -> float:
        if role not in self._utility:
            self._utility[role] = score(role, self.state, self.config)
        return self._utility[role]

    def loadout(self, role: Role) -> Loadout:
        if role not in self._loadouts:
            self._loadouts[role] = build_loadout(
                role,
                energy_available=self.state.energy_available,
                energy_capacity=self.state.energy_capacity,
                emergency=self.emergency,
                config=self.config,
            )
        return self._loadouts[role]


@dataclass
class Admission:
    """Outcome of one pass.

    Attributes:
        request: The request to issue, if any.
        ranked: Candidates that passed every filter except affordability,
            best first.
        admitted: Affordable candidates, best first; ``request`` is built
            from the first one.
        rejected: Reason each non-admitted role was dropped.
    """

    request: ProductionRequest | None = None
    ranked: list[Candidate] = field(default_factory=list)
    admitted: list[Candidate] = field(default_factory=list)
    rejected: dict[Role, Rejection] = field(default_factory=dict)


def build_request(candidate: Candidate, config: SchedulerConfig) -> ProductionRequest:
    """Turn the winning candidate into a production request."""
    return ProductionRequest(
        role=candidate.role,
        priority=config.priority(candidate.role),
        loadout=candidate.loadout,
        assignment=candidate.assignment,
        cost=loadout_cost(candidate.loadout),
        utility=candidate.utility,
    )


class AdmissionFilter:
    """Filters and ranks candidates for a colony snapshot."""

    def __init__(self, config: SchedulerConfig, governor: TransitionGovernor) -> None:
        self.config = config
        self.governor = governor

    def rank_key(self, candidate: Candidate) -> tuple[float, int]:
        return (-candidate.utility, self.config.priority(candidate.role))

    def candidates(self, cache: PassCache, rejected: dict[Role, Rejection]) -> list[Candidate]:
        """Every role that survives the utility, loadout, target and governor checks."""
        state = cache.state
        found: list[Candidate] = []
        for role in Role:
            utility = cache.utility(role)
            if utility <= 0:
                rejected[role] = Rejection.NO_UTILITY
                continue
            loadout = cache.loadout(role)
            if not loadout:
                rejected[role] = Rejection.NO_LOADOUT
                continue
            assignment = resolve_target(role, state)
            if assignment is None:
                rejected[role] = Rejection.NO_TARGET
                continue
            if self.governor.delays(role, state):
                rejected[role] = Rejection.GOVERNOR_VETO
                continue
            found.append(
                Candidate(
                    role=role,
                    utility=utility,
                    loadout=loadout,
                    cost=loadout_cost(loadout),
                    assignment=assignment,
                ),
            )
        return found

    def admit(self, state: ColonyState) -> Admission:
        """Run one pass over ``state`` and pick at most one request."""
        cache = PassCache(state, self.config)
        admission = Admission()
        ranked = sorted(self.candidates(cache, admission.rejected), key=self.rank_key)
        admission.ranked = ranked

        affordable: list[Candidate] = []
        for candidate in ranked:
            if candidate.cost > state.energy_available:
                admission.rejected[candidate.role] = Rejection.INSUFFICIENT_ENERGY
            else:
                affordable.append(candidate)

        if (
            self.config.hold_for_unaffordable_best
            and ranked
            and ranked[0].cost > state.energy_available
            and state.energy_income > 0
        ):
            for candidate in affordable:
                admission.rejected[candidate.role] = Rejection.HELD_FOR_BETTER
            logger.debug(
                "Holding for %s (%d > %d available)",
                ranked[0].role.name,
                ranked[0].cost,
                state.energy_available,
            )
            return admission

        admission.admitted = affordable
        if affordable:
            admission.request = build_request(affordable[0], self.config)
        return admission
