"""StrategicState — the long-lived colony plan written every refresh.

The economic coordinator produces one of these every strategy interval;
the scorer, governor and executor read the most recent copy, which may
be up to one interval old.  When no usable copy exists every reader
gets :meth:`StrategicState.default`, which neither suppresses renewal nor
delays production, so a missing plan never blocks the colony.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from colonist.colony.roles import Role


class Phase(Enum):
    """Colony development phase."""

    BOOTSTRAP = "bootstrap"
    DEVELOPING = "developing"
    STABLE = "stable"
    EMERGENCY = "emergency"


class Bottleneck(Enum):
    """The single factor most limiting colony progress."""

    INCOME = "income"
    TRANSPORT = "transport"
    CONSUMPTION = "consumption"
    CONSTRUCTION = "construction"
    POPULATION = "population"
    CAPACITY = "capacity"
    COMPUTE = "compute"


@dataclass(frozen=True)
class Allocation:
    """Percentages of income earmarked per purpose; sums to 100."""

    production: float = 20.0
    upgrading: float = 20.0
    building: float = 20.0
    repair: float = 20.0
    reserve: float = 20.0

    @property
    def total(self) -> float:
        return (
            self.production + self.upgrading + self.building + self.repair + self.reserve
        )


PHASE_ALLOCATIONS: dict[Phase, Allocation] = {
    Phase.BOOTSTRAP: Allocation(70, 15, 15, 0, 0),
    Phase.DEVELOPING: Allocation(35, 30, 25, 5, 5),
    Phase.STABLE: Allocation(20, 45, 15, 10, 10),
    Phase.EMERGENCY: Allocation(60, 5, 5, 25, 5),
}


@dataclass(frozen=True)
class EnergyBudget:
    """Income estimate and how it is split across purposes."""

    income_per_tick: float = 0.0
    max_income_per_tick: float = 0.0
    harvest_efficiency: float = 0.0
    allocation: Allocation = field(default_factory=Allocation)


@dataclass(frozen=True)
class WorkforceRequirements:
    """Work-part needs per purpose and the unit counts they imply.

    Attributes:
        harvest_work_parts: WORK parts needed to saturate home sources.
        upgrade_work_parts: WORK parts the upgrading allocation can feed.
        build_work_parts: WORK parts the building allocation can feed.
        carry_throughput: Energy per tick haulers must move.
        targets: Desired units per core role.
        gaps: Target minus current per core role (may be negative).
    """

    harvest_work_parts: int = 0
    upgrade_work_parts: int = 0
    build_work_parts: int = 0
    carry_throughput: float = 0.0
    targets: dict[Role, int] = field(default_factory=dict)
    gaps: dict[Role, int] = field(default_factory=dict)

    @property
    def total_positive_gap(self) -> int:
        return sum(max(0, gap) for gap in self.gaps.values())


@dataclass(frozen=True)
class LevelProgress:
    """Progress toward the next maturity level.

    ``eta_ticks`` is None when the current upgrade rate is zero.
    """

    current: float = 0.0
    total: float = 1.0
    percent: float = 0.0
    eta_ticks: int | None = None


@dataclass(frozen=True)
class CapacityTransition:
    """Whether maximum capacity is growing, and what that implies.

    Attributes:
        in_transition: Capacity-expanding construction is under way.
        current_capacity: Capacity today.
        future_capacity: Capacity once the sites complete; never below
            ``current_capacity``.
        units_building: Capacity-expanding sites in progress.
        eta_ticks: Estimated ticks to completion; None if no builders.
        suppress_renewal: Let cheap expiring units lapse.
        delay_spawning: Defer non-critical production.
    """

    in_transition: bool = False
    current_capacity: int = 0
    future_capacity: int = 0
    units_building: int = 0
    eta_ticks: int | None = None
    suppress_renewal: bool = False
    delay_spawning: bool = False

    def __post_init__(self) -> None:
        if self.future_capacity < self.current_capacity:
            object.__setattr__(self, "future_capacity", self.current_capacity)


@dataclass(frozen=True)
class StrategicState:
    """The coordinator's plan for one colony."""

    phase: Phase = Phase.BOOTSTRAP
    updated_at: int = 0
    budget: EnergyBudget = field(default_factory=EnergyBudget)
    workforce: WorkforceRequirements = field(default_factory=WorkforceRequirements)
    bottleneck: Bottleneck | None = None
    recommendations: tuple[str, ...] = ()
    progress: LevelProgress = field(default_factory=LevelProgress)
    capacity_transition: CapacityTransition = field(
        default_factory=CapacityTransition,
    )
    is_default: bool = False

    @classmethod
    def default(cls) -> StrategicState:
        """Conservative plan used when no stored plan is usable."""
        return cls(is_default=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to plain JSON-compatible types."""
        data = asdict(self)
        data["phase"] = self.phase.value
        data["bottleneck"] = self.bottleneck.value if self.bottleneck else None
        data["recommendations"] = list(self.recommendations)
        workforce = data["workforce"]
        workforce["targets"] = {r.value: n for r, n in self.workforce.targets.items()}
        workforce["gaps"] = {r.value: n for r, n in self.workforce.gaps.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StrategicState:
        """Inverse of :meth:`to_dict`.

        Raises:
            KeyError: If a required section is absent.
            ValueError: If an enum value is unknown.
            TypeError: If a section has the wrong shape.
        """
        budget = dict(data["budget"])
        budget["allocation"] = Allocation(**budget["allocation"])
        workforce = dict(data["workforce"])
        workforce["targets"] = {
            Role(k): int(v) for k, v in workforce.get("targets", {}).items()
        }
        workforce["gaps"] = {Role(k): int(v) for k, v in workforce.get("gaps", {}).items()}
        bottleneck = data.get("bottleneck")
        return cls(
            phase=Phase(data["phase"]),
            updated_at=int(data["updated_at"]),
            budget=EnergyBudget(**budget),
            workforce=WorkforceRequirements(**workforce),
            bottleneck=Bottleneck(bottleneck) if bottleneck else None,
            recommendations=tuple(data.get("recommendations", ())),
            progress=LevelProgress(**data["progress"]),
            capacity_transition=CapacityTransition(**data["capacity_transition"]),
        )
