"""ColonyState — the immutable per-cycle snapshot the scheduler reads.

A fresh snapshot is produced by the world-state collaborator every
cycle.  Nothing in the production core mutates it; role-keyed tables
are exposed as read-only mappings.

Records coming from outside (dicts decoded from a store or a host
process) go through :meth:`ColonyState.from_mapping`, which rejects a
record whose core energy figures are unusable and quietly drops remote
locations it cannot make sense of.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from colonist.colony.roles import Loadout, Part, Role, loadout_cost
from colonist.errors import MalformedSnapshotError

logger = logging.getLogger(__name__)

_REQUIRED = ("level", "energy_available", "energy_capacity")


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    msg = f"expected a boolean, got {value!r}"
    raise ValueError(msg)


# Optional snapshot fields and the conversion each must survive.
_SCALARS: dict[str, Callable[[Any], Any]] = {
    "name": str,
    "tick": int,
    "energy_stored": int,
    "energy_income": float,
    "energy_income_max": float,
    "source_count": int,
    "home_threat": int,
    "hostile_dps": float,
    "construction_sites": int,
    "has_collection_point": _flag,
    "facility_busy": _flag,
    "facility_hits_ratio": float,
    "capacity_sites": int,
    "capacity_remaining_progress": float,
    "builder_work_parts": int,
    "dropped_energy": float,
    "container_energy": float,
    "container_fill_ratio": float,
    "storage_fill_ratio": float,
    "destinations_have_capacity": _flag,
    "extensions_built": int,
    "extensions_allowed": int,
    "sources_without_container": int,
    "compute_bucket": int,
    "level_progress": float,
    "level_progress_total": float,
}


@dataclass(frozen=True)
class RemoteLocation:
    """Summary of one remote location a colony may expand into.

    Attributes:
        name: Location identifier.
        source_ids: Energy sources present there.
        mined_sources: Sources that already have a remote miner assigned.
        miners: Remote miners assigned to the location.
        haulers: Remote haulers assigned to the location.
        reserved: True if our reservation is present and not expiring.
        reservers: Reservers assigned to the location.
        threat: Hostile count last observed there.
        defenders: Remote defenders assigned to the location.
    """

    name: str
    source_ids: tuple[str, ...] = ()
    mined_sources: frozenset[str] = frozenset()
    miners: int = 0
    haulers: int = 0
    reserved: bool = False
    reservers: int = 0
    threat: int = 0
    defenders: int = 0

    @classmethod
    def from_mapping(cls, record: Any) -> RemoteLocation | None:
        """Parse a remote-location record, or return None if malformed."""
        if not isinstance(record, Mapping):
            return None
        name = record.get("name")
        sources = record.get("source_ids", ())
        if not isinstance(name, str) or not name:
            return None
        if not isinstance(sources, (list, tuple)):
            return None
        try:
            return cls(
                name=name,
                source_ids=tuple(str(s) for s in sources),
                mined_sources=frozenset(
                    str(s) for s in record.get("mined_sources", ())
                ),
                miners=int(record.get("miners", 0)),
                haulers=int(record.get("haulers", 0)),
                reserved=bool(record.get("reserved", False)),
                reservers=int(record.get("reservers", 0)),
                threat=int(record.get("threat", 0)),
                defenders=int(record.get("defenders", 0)),
            )
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class UnitSummary:
    """A living unit as seen by the renewal logic.

    Attributes:
        unit_id: Stable identifier used in renew commands.
        role: Role the unit fills.
        loadout: Its part composition.
        ticks_to_live: Remaining lifetime.
        distance: Distance to the production facility.
    """

    unit_id: str
    role: Role
    loadout: Loadout
    ticks_to_live: int
    distance: int = 0

    @property
    def cost(self) -> int:
        """Energy the unit's loadout cost to build."""
        return loadout_cost(self.loadout)

    @property
    def part_count(self) -> int:
        return len(self.loadout)


def _freeze(table: Mapping[Role, int]) -> Mapping[Role, int]:
    return MappingProxyType(dict(table))


@dataclass(frozen=True)
class ColonyState:
    """Everything the scheduler may know about a colony this cycle.

    Attributes:
        name: Colony identifier, used to namespace stored state.
        tick: Cycle number the snapshot was taken at.
        level: Maturity level.
        energy_available: Energy spendable on production right now.
        energy_capacity: Maximum energy the facility network can hold.
        energy_stored: Energy in long-term storage.
        energy_income: Current harvest rate per tick.
        energy_income_max: Theoretical maximum harvest rate per tick.
        source_count: Home energy sources.
        counts: Living units per role.
        targets: Desired units per role.
        expiring: Units per role within the expiry horizon.
        home_threat: Hostile units at home.
        hostile_dps: Estimated damage per tick of those hostiles.
        remote_threats: Hostile count per remote location name.
        construction_sites: Outstanding construction sites (backlog).
        remote_locations: Remote locations in resolution order.
        has_collection_point: True if a storage/collection point exists.
        facility_busy: True if the facility is already producing.
        facility_hits_ratio: Facility health as a fraction of maximum.
        units: Units eligible to be considered for renewal.
        capacity_sites: Capacity-expanding construction sites.
        capacity_remaining_progress: Construction progress still needed
            on those sites.
        builder_work_parts: WORK parts on active builders.
        dropped_energy: Energy lying at collection points.
        container_energy: Energy held in containers.
        container_fill_ratio: Fullest container's fill fraction.
        storage_fill_ratio: Storage fill fraction.
        destinations_have_capacity: True if energy sinks can accept more.
        extensions_built: Capacity structures completed.
        extensions_allowed: Capacity structures allowed at this level.
        sources_without_container: Sources lacking a container.
        compute_bucket: Remaining compute-budget reserve.
        level_progress: Progress toward the next level.
        level_progress_total: Progress needed for the next level.
    """

    level: int
    energy_available: int
    energy_capacity: int
    name: str = "colony"
    tick: int = 0
    energy_stored: int = 0
    energy_income: float = 0.0
    energy_income_max: float = 0.0
    source_count: int = 0
    counts: Mapping[Role, int] = field(default_factory=dict)
    targets: Mapping[Role, int] = field(default_factory=dict)
    expiring: Mapping[Role, int] = field(default_factory=dict)
    home_threat: int = 0
    hostile_dps: float = 0.0
    remote_threats: Mapping[str, int] = field(default_factory=dict)
    construction_sites: int = 0
    remote_locations: tuple[RemoteLocation, ...] = ()
    has_collection_point: bool = False
    facility_busy: bool = False
    facility_hits_ratio: float = 1.0
    units: tuple[UnitSummary, ...] = ()
    capacity_sites: int = 0
    capacity_remaining_progress: float = 0.0
    builder_work_parts: int = 0
    dropped_energy: float = 0.0
    container_energy: float = 0.0
    container_fill_ratio: float = 0.0
    storage_fill_ratio: float = 0.0
    destinations_have_capacity: bool = True
    extensions_built: int = 0
    extensions_allowed: int = 0
    sources_without_container: int = 0
    compute_bucket: int = 10_000
    level_progress: float = 0.0
    level_progress_total: float = 0.0

    def __post_init__(self) -> None:
        """Wrap role tables so the snapshot cannot be mutated."""
        object.__setattr__(self, "counts", _freeze(self.counts))
        object.__setattr__(self, "targets", _freeze(self.targets))
        object.__setattr__(self, "expiring", _freeze(self.expiring))
        object.__setattr__(
            self,
            "remote_threats",
            MappingProxyType(dict(self.remote_threats)),
        )

    def count(self, role: Role) -> int:
        return self.counts.get(role, 0)

    def target(self, role: Role) -> int:
        return self.targets.get(role, 0)

    def effective_count(self, role: Role) -> int:
        """Living units of ``role`` that are not about to expire."""
        return max(0, self.count(role) - self.expiring.get(role, 0))

    def deficit(self, role: Role) -> int:
        """Units of ``role`` still needed, counting expiring ones as gone."""
        return self.target(role) - self.effective_count(role)

    @property
    def income_ratio(self) -> float:
        """Current income as a fraction of the theoretical maximum."""
        return self.energy_income / max(self.energy_income_max, 1.0)

    @property
    def max_remote_threat(self) -> int:
        if not self.remote_threats:
            return 0
        return max(self.remote_threats.values())

    @property
    def is_emergency(self) -> bool:
        """True when the colony has no harvesters or no haulers."""
        return self.count(Role.HARVESTER) == 0 or self.count(Role.HAULER) == 0

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> ColonyState:
        """Build a snapshot from a loosely-typed record.

        Role tables may be keyed by role name or value.  Unknown roles
        and malformed remote locations are skipped.  An optional field
        that fails its type conversion is logged and left at its default.

        Raises:
            MalformedSnapshotError: If a required energy/level field is
                missing or not numeric.
        """
        if not isinstance(record, Mapping):
            msg = f"snapshot must be a mapping, got {type(record).__name__}"
            raise MalformedSnapshotError(msg)
        missing = [key for key in _REQUIRED if key not in record]
        if missing:
            msg = f"snapshot missing required fields: {', '.join(missing)}"
            raise MalformedSnapshotError(msg)
        try:
            core = {key: int(record[key]) for key in _REQUIRED}
        except (TypeError, ValueError) as exc:
            msg = f"snapshot has non-numeric core fields: {exc}"
            raise MalformedSnapshotError(msg) from exc

        locations: list[RemoteLocation] = []
        for item in record.get("remote_locations") or ():
            location = RemoteLocation.from_mapping(item)
            if location is None:
                logger.warning("Dropping malformed remote location: %r", item)
                continue
            locations.append(location)

        units: list[UnitSummary] = []
        for item in record.get("units") or ():
            try:
                units.append(
                    UnitSummary(
                        unit_id=str(item["unit_id"]),
                        role=Role.parse(str(item["role"])),
                        loadout=tuple(Part(p) for p in item["loadout"]),
                        ticks_to_live=int(item["ticks_to_live"]),
                        distance=int(item.get("distance", 0)),
                    ),
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping malformed unit record: %r", item)

        scalars: dict[str, Any] = {}
        for key, convert in _SCALARS.items():
            if key not in record:
                continue
            try:
                scalars[key] = convert(record[key])
            except (TypeError, ValueError, OverflowError):
                logger.warning("Ignoring malformed snapshot field %s=%r", key, record[key])
        return cls(
            **core,
            **scalars,
            counts=_role_table(record.get("counts")),
            targets=_role_table(record.get("targets")),
            expiring=_role_table(record.get("expiring")),
            remote_threats=_threat_table(record.get("remote_threats")),
            remote_locations=tuple(locations),
            units=tuple(units),
        )


def _role_table(raw: Any) -> dict[Role, int]:
    table: dict[Role, int] = {}
    if not isinstance(raw, Mapping):
        return table
    for key, value in raw.items():
        try:
            table[key if isinstance(key, Role) else Role.parse(str(key))] = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring role table entry %r=%r", key, value)
    return table


def _threat_table(raw: Any) -> dict[str, int]:
    table: dict[str, int] = {}
    if not isinstance(raw, Mapping):
        return table
    for key, value in raw.items():
        try:
            table[str(key)] = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring remote threat entry %r=%r", key, value)
    return table
