"""SimulationEngine — the main tick loop.

Owns a single colony's world state and advances it in a fixed tick
order:

1. Raids (arrive, fight defenders, kill units, leave)
2. Energy (home and remote harvest, hauling, facility regeneration)
3. Production progress (a finished unit joins the colony)
4. Observe a :class:`ColonyState` snapshot, with role targets derived
   from the world as a world-state collaborator would
5. Controller (strategic refresh when due, then build and renewal)
6. Construction and upgrading by builders and upgraders
7. Aging and death

The engine is also the controller's action interface: ``produce`` and
``renew`` answer with an :class:`ActionStatus` just as a host would.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from colonist.colony.controller import ColonyController
from colonist.colony.roles import Loadout, Part, Role, count_parts, loadout_cost
from colonist.colony.state import ColonyState, RemoteLocation, UnitSummary
from colonist.colony.store import InMemoryStore
from colonist.simulation.config import SimulationConfig
from colonist.spawning.admission import ProductionRequest
from colonist.spawning.executor import ActionStatus, CycleOutcome
from colonist.spawning.loadout import build_loadout
from colonist.spawning.targets import HOME, Assignment

logger = logging.getLogger(__name__)

MAX_LEVEL = 8

# Capacity structures a colony may build at each level.
EXTENSIONS_ALLOWED: dict[int, int] = {
    1: 0,
    2: 5,
    3: 10,
    4: 20,
    5: 30,
    6: 40,
    7: 50,
    8: 60,
}
STORAGE_LEVEL = 4
STORAGE_CAPACITY = 1_000_000

HAULER_THROUGHPUT = 2.5
REMOTE_THROUGHPUT = 1.25
UNASSISTED_DELIVERY = 0.5
DROPPED_DECAY = 0.01
HOME_MAX_DISTANCE = 5
REMOTE_DISTANCE = 50

HOSTILE_DPS = 30.0
RAID_KILL_CHANCE = 0.005
DEFENDER_ATTACK_PER_KILL = 10

RENEW_COST_DIVISOR = 2.5
RENEW_LIFETIME_BASE = 600


@dataclass
class SimUnit:
    """A living unit in the simulated colony."""

    unit_id: str
    role: Role
    loadout: Loadout
    ticks_to_live: int
    assignment: Assignment = HOME
    distance: int = 0

    def parts(self, kind: Part) -> int:
        return count_parts(self.loadout, kind)

    def summary(self) -> UnitSummary:
        return UnitSummary(
            unit_id=self.unit_id,
            role=self.role,
            loadout=self.loadout,
            ticks_to_live=self.ticks_to_live,
            distance=self.distance,
        )


@dataclass
class Production:
    """The unit currently being produced and the ticks it still needs."""

    unit: SimUnit
    remaining: int


@dataclass
class Raid:
    """Hostiles present at ``target`` ("home" or a remote location)."""

    target: str
    hostiles: int
    ticks_left: int


@dataclass
class SimulationResult:
    """Per-tick population history and the events of one run.

    Attributes:
        ticks: Ticks simulated.
        harvesters: Harvester count at the end of each tick.
        haulers: Hauler count at the end of each tick.
        units: Total unit count at the end of each tick.
        produced: Units produced per role.
        renewals: Successful renewals.
        events: Human-readable event log.
    """

    ticks: int
    harvesters: NDArray[np.int64]
    haulers: NDArray[np.int64]
    units: NDArray[np.int64]
    produced: Counter[Role] = field(default_factory=Counter)
    renewals: int = 0
    events: list[str] = field(default_factory=list)

    @property
    def survived(self) -> bool:
        """True if the colony still had units when the run ended."""
        return bool(self.units.size) and int(self.units[-1]) > 0

    @property
    def first_unit_tick(self) -> int | None:
        present = np.flatnonzero(self.units > 0)
        return int(present[0]) if present.size else None

    @property
    def peak_units(self) -> int:
        return int(self.units.max()) if self.units.size else 0

    @property
    def min_units(self) -> int:
        """Lowest population after the first unit appeared."""
        first = self.first_unit_tick
        if first is None:
            return 0
        return int(self.units[first:].min())

    @property
    def longest_collapse(self) -> int:
        """Longest run of ticks with no harvesters and no haulers at all."""
        collapsed = (self.harvesters == 0) & (self.haulers == 0)
        if not collapsed.any():
            return 0
        padded = np.concatenate(([0], collapsed.astype(np.int8), [0]))
        edges = np.flatnonzero(np.diff(padded))
        return int((edges[1::2] - edges[0::2]).max())

    def summary(self) -> str:
        produced = ", ".join(
            f"{role.value}={n}" for role, n in sorted(
                self.produced.items(),
                key=lambda item: item[0].value,
            )
        )
        lines = [
            f"ticks simulated:   {self.ticks}",
            f"survived:          {'yes' if self.survived else 'no'}",
            f"first unit at:     {self.first_unit_tick}",
            f"peak / min units:  {self.peak_units} / {self.min_units}",
            f"longest collapse:  {self.longest_collapse} ticks",
            f"produced:          {produced or 'nothing'}",
            f"renewals:          {self.renewals}",
        ]
        return "\n".join(lines)


@dataclass
class SimulationEngine:
    """Drives a simulated colony forward tick by tick.

    Attributes:
        config: Loaded simulation configuration.
        rng: Master seeded random generator.
        controller: The production core under test.
        units: Living units.
        production: Unit under production, if any.
        level: Current maturity level.
        energy_available: Spendable energy.
        energy_capacity: Maximum spendable energy.
        energy_stored: Energy in storage.
        dropped_energy: Energy lying around undelivered.
        level_progress: Upgrade progress toward the next level.
        extensions_built: Capacity structures completed.
        construction: Remaining progress per general construction site.
        capacity_construction: Remaining progress per capacity site.
        raid: Active raid, if any.
        income: Energy harvested last tick.
        events: Event log.
        produced: Units produced per role.
        renewals: Successful renewals.
        last_outcome: The controller's most recent cycle outcome.
        tick: Current tick count.
    """

    config: SimulationConfig
    rng: Generator = field(init=False)
    controller: ColonyController = field(init=False)
    units: list[SimUnit] = field(init=False, default_factory=list)
    production: Production | None = field(init=False, default=None)
    level: int = field(init=False)
    energy_available: float = field(init=False)
    energy_capacity: int = field(init=False)
    energy_stored: float = field(init=False)
    dropped_energy: float = field(init=False, default=0.0)
    level_progress: float = field(init=False, default=0.0)
    extensions_built: int = field(init=False)
    construction: list[float] = field(init=False, default_factory=list)
    capacity_construction: list[float] = field(init=False, default_factory=list)
    raid: Raid | None = field(init=False, default=None)
    income: float = field(init=False, default=0.0)
    events: list[str] = field(init=False, default_factory=list)
    produced: Counter[Role] = field(init=False, default_factory=Counter)
    renewals: int = field(init=False, default=0)
    last_outcome: CycleOutcome | None = field(init=False, default=None)
    tick: int = 0
    _next_id: int = field(init=False, default=0, repr=False)
    _history: list[tuple[int, int, int]] = field(
        init=False,
        default_factory=list,
        repr=False,
    )

    def __post_init__(self) -> None:
        """Set up the starting colony, RNG and controller from config."""
        cfg = self.config
        self.rng = np.random.default_rng(cfg.seed)
        self.level = cfg.level
        self.energy_available = float(cfg.energy_available)
        self.energy_capacity = cfg.energy_capacity
        self.energy_stored = float(cfg.energy_stored)
        self.extensions_built = max(
            0,
            (cfg.energy_capacity - 300) // cfg.scheduler.capacity_per_site,
        )
        self.construction = [cfg.site_progress] * cfg.construction_sites
        self.capacity_construction = [cfg.capacity_site_progress] * cfg.capacity_sites
        self.controller = ColonyController(
            actions=self,
            store=InMemoryStore(),
            config=cfg.scheduler,
        )

    @property
    def has_collection_point(self) -> bool:
        return self.config.has_collection_point or self.level >= STORAGE_LEVEL

    def add_unit(
        self,
        role: Role,
        *,
        ticks_to_live: int | None = None,
        loadout: Loadout | None = None,
        assignment: Assignment = HOME,
    ) -> SimUnit:
        """Place a unit directly into the colony (scenario setup).

        Args:
            role: The unit's role.
            ticks_to_live: Remaining lifetime; defaults to a full life.
            loadout: Part composition; defaults to what the scheduler
                would build at current capacity.
            assignment: Remote assignment for targeted roles.
        """
        if loadout is None:
            loadout = build_loadout(
                role,
                energy_available=self.energy_capacity,
                energy_capacity=self.energy_capacity,
                emergency=False,
                config=self.config.scheduler,
            )
        unit = SimUnit(
            unit_id=self._new_id(role),
            role=role,
            loadout=loadout,
            ticks_to_live=ticks_to_live if ticks_to_live is not None else self.config.unit_lifetime,
            assignment=assignment,
            distance=REMOTE_DISTANCE if assignment.target else 0,
        )
        self.units.append(unit)
        return unit

    # -- Action interface ----------------------------------------------

    def produce(self, request: ProductionRequest) -> ActionStatus:
        if self.production is not None:
            return ActionStatus.BUSY
        if not request.loadout:
            return ActionStatus.INVALID
        cost = loadout_cost(request.loadout)
        if cost > self.energy_available:
            return ActionStatus.NOT_ENOUGH_ENERGY
        self.energy_available -= cost
        unit = SimUnit(
            unit_id=self._new_id(request.role),
            role=request.role,
            loadout=request.loadout,
            ticks_to_live=self.config.unit_lifetime,
            assignment=request.assignment,
            distance=REMOTE_DISTANCE if request.assignment.target else 0,
        )
        self.production = Production(
            unit=unit,
            remaining=len(request.loadout) * self.config.ticks_per_part,
        )
        self.produced[request.role] += 1
        return ActionStatus.OK

    def renew(self, unit_id: str) -> ActionStatus:
        if self.production is not None:
            return ActionStatus.BUSY
        unit = next((u for u in self.units if u.unit_id == unit_id), None)
        if unit is None or not unit.loadout:
            return ActionStatus.INVALID
        parts = len(unit.loadout)
        cost = math.ceil(loadout_cost(unit.loadout) / RENEW_COST_DIVISOR / parts)
        if cost > self.energy_available:
            return ActionStatus.NOT_ENOUGH_ENERGY
        self.energy_available -= cost
        unit.ticks_to_live = min(
            self.config.unit_lifetime,
            unit.ticks_to_live + RENEW_LIFETIME_BASE // parts,
        )
        self.renewals += 1
        return ActionStatus.OK

    # -- Tick loop -----------------------------------------------------

    def step(self) -> None:
        """Advance the simulation by one tick."""
        # 1. Raids
        self._update_raid()

        # 2. Energy
        self._harvest()

        # 3. Production progress
        self._advance_production()

        # 4-5. Observe and decide
        self.last_outcome = self.controller.tick(self.observe())

        # 6. Construction and upgrading
        self._build()
        self._upgrade()

        # 7. Aging and death
        self._age()

        self._history.append(
            (
                self._count(Role.HARVESTER),
                self._count(Role.HAULER),
                len(self.units),
            ),
        )
        self.tick += 1

    def run(self, ticks: int) -> SimulationResult:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.

        Returns:
            The history of the whole engine lifetime so far.
        """
        for _ in range(ticks):
            self.step()
        return self.result()

    def result(self) -> SimulationResult:
        history = np.array(self._history, dtype=np.int64).reshape(-1, 3)
        return SimulationResult(
            ticks=self.tick,
            harvesters=history[:, 0],
            haulers=history[:, 1],
            units=history[:, 2],
            produced=Counter(self.produced),
            renewals=self.renewals,
            events=list(self.events),
        )

    # -- Observation ---------------------------------------------------

    def observe(self) -> ColonyState:
        """Snapshot the colony the way a world-state collaborator would."""
        cfg = self.config
        horizon = cfg.scheduler.expiry_horizon
        for unit, distance in zip(
            self.units,
            self.rng.integers(0, HOME_MAX_DISTANCE, size=len(self.units)),
        ):
            unit.distance = REMOTE_DISTANCE if unit.assignment.target else int(distance)

        counts = Counter(u.role for u in self.units)
        if self.production is not None:
            # A unit in production already covers its slot.
            counts[self.production.unit.role] += 1
        expiring = Counter(u.role for u in self.units if u.ticks_to_live < horizon)
        locations = self._remote_locations()
        remote_threats: dict[str, int] = {}
        home_threat = 0
        if self.raid is not None:
            if self.raid.target == "home":
                home_threat = self.raid.hostiles
            else:
                remote_threats[self.raid.target] = self.raid.hostiles
        mined_remote = sum(len(loc.mined_sources) for loc in locations)

        return ColonyState(
            name=cfg.name,
            tick=self.tick,
            level=self.level,
            energy_available=int(self.energy_available),
            energy_capacity=self.energy_capacity,
            energy_stored=int(self.energy_stored),
            energy_income=self.income,
            energy_income_max=float((cfg.sources + mined_remote) * cfg.source_max),
            source_count=cfg.sources,
            counts=counts,
            targets=self._targets(home_threat, remote_threats),
            expiring=expiring,
            home_threat=home_threat,
            hostile_dps=home_threat * HOSTILE_DPS,
            remote_threats=remote_threats,
            construction_sites=len(self.construction) + len(self.capacity_construction),
            remote_locations=locations,
            has_collection_point=self.has_collection_point,
            facility_busy=self.production is not None,
            units=tuple(u.summary() for u in self.units),
            capacity_sites=len(self.capacity_construction),
            capacity_remaining_progress=sum(self.capacity_construction),
            builder_work_parts=self._parts(Role.BUILDER, Part.WORK),
            dropped_energy=self.dropped_energy,
            storage_fill_ratio=(
                self.energy_stored / STORAGE_CAPACITY if self.has_collection_point else 0.0
            ),
            destinations_have_capacity=self.energy_available < self.energy_capacity,
            extensions_built=self.extensions_built,
            extensions_allowed=max(
                EXTENSIONS_ALLOWED[self.level],
                self.extensions_built + len(self.capacity_construction),
            ),
            level_progress=self.level_progress,
            level_progress_total=cfg.level_progress_per_level * self.level,
        )

    def _targets(
        self,
        home_threat: int,
        remote_threats: dict[str, int],
    ) -> dict[Role, int]:
        sources = self.config.sources
        sites = len(self.construction) + len(self.capacity_construction)
        targets = {
            Role.HARVESTER: sources,
            Role.HAULER: max(2, sources) if self.has_collection_point else sources,
            Role.UPGRADER: min(self.level, 3) if self.level < MAX_LEVEL else 1,
            Role.BUILDER: min(math.ceil(sites / 5), min(self.level, 4)),
            Role.DEFENDER: min(home_threat, 3),
        }
        remote = self.config.remote_sources
        if self.level >= 4 and remote:
            total = sum(remote.values())
            targets[Role.REMOTE_MINER] = total
            targets[Role.REMOTE_HAULER] = total
            targets[Role.RESERVER] = len(remote)
            targets[Role.REMOTE_DEFENDER] = min(sum(remote_threats.values()), 3)
            targets[Role.SCOUT] = 1
        if self.level >= 5 and self.has_collection_point and self.energy_stored > 10_000:
            targets[Role.LINK_FILLER] = 1
        return targets

    def _remote_locations(self) -> tuple[RemoteLocation, ...]:
        locations = []
        for name, source_count in self.config.remote_sources.items():
            assigned = [u for u in self.units if u.assignment.target == name]
            miners = [u for u in assigned if u.role is Role.REMOTE_MINER]
            locations.append(
                RemoteLocation(
                    name=name,
                    source_ids=tuple(f"{name}:{i}" for i in range(source_count)),
                    mined_sources=frozenset(
                        u.assignment.source_id for u in miners if u.assignment.source_id
                    ),
                    miners=len(miners),
                    haulers=sum(1 for u in assigned if u.role is Role.REMOTE_HAULER),
                    reserved=any(u.role is Role.RESERVER for u in assigned),
                    reservers=sum(1 for u in assigned if u.role is Role.RESERVER),
                    threat=self.raid.hostiles if self.raid and self.raid.target == name else 0,
                    defenders=sum(1 for u in assigned if u.role is Role.REMOTE_DEFENDER),
                ),
            )
        return tuple(locations)

    # -- World updates -------------------------------------------------

    def _update_raid(self) -> None:
        cfg = self.config
        if self.raid is None:
            if cfg.raid_probability <= 0 or self.rng.random() >= cfg.raid_probability:
                return
            targets = ["home", *cfg.remote_sources]
            target = targets[int(self.rng.integers(0, len(targets)))]
            self.raid = Raid(target=target, hostiles=cfg.raid_size, ticks_left=cfg.raid_duration)
            self._event(f"raid of {cfg.raid_size} at {target}")
            return

        raid = self.raid
        defender_role = Role.DEFENDER if raid.target == "home" else Role.REMOTE_DEFENDER
        present = [
            u for u in self.units
            if (u.assignment.target or "home") == raid.target
        ]
        attack = sum(u.parts(Part.ATTACK) for u in present if u.role is defender_role)
        if attack and self.rng.random() < min(1.0, attack / DEFENDER_ATTACK_PER_KILL):
            raid.hostiles -= 1
        for _ in range(raid.hostiles):
            if present and self.rng.random() < RAID_KILL_CHANCE:
                victim = present.pop(int(self.rng.integers(0, len(present))))
                self.units.remove(victim)
                self._event(f"{victim.unit_id} killed by raiders")
        raid.ticks_left -= 1
        if raid.hostiles <= 0 or raid.ticks_left <= 0:
            self._event(f"raid at {raid.target} over")
            self.raid = None

    def _harvest(self) -> None:
        cfg = self.config
        home_work = self._parts(Role.HARVESTER, Part.WORK)
        harvested = float(min(home_work * cfg.harvest_per_work, cfg.sources * cfg.source_max))

        throughput = self._parts(Role.HAULER, Part.CARRY) * HAULER_THROUGHPUT
        moved = min(harvested, throughput)
        unassisted = (harvested - moved) * UNASSISTED_DELIVERY
        self.dropped_energy += harvested - moved - unassisted
        pickup = min(self.dropped_energy, throughput - moved)
        self.dropped_energy = (self.dropped_energy - pickup) * (1 - DROPPED_DECAY)

        remote = self._remote_income()
        self.income = harvested + remote
        self._deliver(moved + unassisted + pickup + remote)

        if self.energy_available < cfg.facility_regen_below:
            self.energy_available = min(
                self.energy_available + cfg.facility_regen,
                float(self.energy_capacity),
            )

    def _remote_income(self) -> float:
        cfg = self.config
        total = 0.0
        for name in cfg.remote_sources:
            if self.raid is not None and self.raid.target == name:
                continue
            assigned = [u for u in self.units if u.assignment.target == name]
            mined = sum(
                min(u.parts(Part.WORK) * cfg.harvest_per_work, cfg.source_max)
                for u in assigned
                if u.role is Role.REMOTE_MINER
            )
            carry = sum(u.parts(Part.CARRY) for u in assigned if u.role is Role.REMOTE_HAULER)
            total += min(mined, carry * REMOTE_THROUGHPUT)
        return total

    def _deliver(self, amount: float) -> None:
        room = self.energy_capacity - self.energy_available
        into_facility = min(amount, max(0.0, room))
        self.energy_available += into_facility
        self.energy_stored += amount - into_facility

    def _advance_production(self) -> None:
        if self.production is None:
            return
        self.production.remaining -= 1
        if self.production.remaining <= 0:
            unit = self.production.unit
            self.units.append(unit)
            self.production = None
            self._event(f"{unit.unit_id} produced ({len(unit.loadout)} parts)")

    def _build(self) -> None:
        sched = self.config.scheduler
        spend = min(self.energy_stored, float(self._parts(Role.BUILDER, Part.WORK)))
        if spend <= 0 or not (self.construction or self.capacity_construction):
            return
        self.energy_stored -= spend
        progress = spend * sched.build_rate_per_work * sched.build_efficiency
        while progress > 0 and (self.capacity_construction or self.construction):
            queue = self.capacity_construction or self.construction
            used = min(progress, queue[0])
            queue[0] -= used
            progress -= used
            if queue[0] > 0:
                continue
            queue.pop(0)
            if queue is self.capacity_construction:
                self.energy_capacity += sched.capacity_per_site
                self.extensions_built += 1
                self._event(f"capacity now {self.energy_capacity}")
            else:
                self._event("construction site finished")

    def _upgrade(self) -> None:
        spend = min(self.energy_stored, float(self._parts(Role.UPGRADER, Part.WORK)))
        if spend <= 0:
            return
        self.energy_stored -= spend
        self.level_progress += spend
        if self.level >= MAX_LEVEL:
            return
        if self.level_progress < self.config.level_progress_per_level * self.level:
            return
        old = self.level
        self.level += 1
        self.level_progress = 0.0
        added = EXTENSIONS_ALLOWED[self.level] - EXTENSIONS_ALLOWED[old]
        self.capacity_construction.extend([self.config.capacity_site_progress] * added)
        self._event(f"reached level {self.level}")
        logger.info("[%s] Level %d reached at tick %d", self.config.name, self.level, self.tick)

    def _age(self) -> None:
        for unit in self.units:
            unit.ticks_to_live -= 1
        dead = [u for u in self.units if u.ticks_to_live <= 0]
        for unit in dead:
            self._event(f"{unit.unit_id} died of old age")
        self.units = [u for u in self.units if u.ticks_to_live > 0]

    # -- Helpers -------------------------------------------------------

    def _count(self, role: Role) -> int:
        return sum(1 for u in self.units if u.role is role)

    def _parts(self, role: Role, kind: Part) -> int:
        return sum(u.parts(kind) for u in self.units if u.role is role)

    def _new_id(self, role: Role) -> str:
        self._next_id += 1
        return f"{role.value}-{self._next_id}"

    def _event(self, text: str) -> None:
        self.events.append(f"[{self.tick}] {text}")
        logger.debug("[%s] %s", self.config.name, text)
