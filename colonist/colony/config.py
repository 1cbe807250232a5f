"""SchedulerConfig — tunable constants for the production core.

Utility weights, the role priority table, minimum counts, loadout caps,
and the renewal/transition thresholds all live here.  Values load from
the ``scheduler:`` section of a YAML file and fall back to the defaults
below for any key left out.
"""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from colonist.colony.roles import Role

_DEFAULT_WEIGHTS: dict[Role, float] = {
    Role.HARVESTER: 100.0,
    Role.HAULER: 90.0,
    Role.UPGRADER: 20.0,
    Role.BUILDER: 25.0,
    Role.DEFENDER: 50.0,
    Role.REMOTE_MINER: 40.0,
    Role.REMOTE_HAULER: 35.0,
    Role.REMOTE_DEFENDER: 45.0,
    Role.RESERVER: 25.0,
    Role.SCOUT: 5.0,
    Role.LINK_FILLER: 70.0,
}

# Lower value wins a utility tie.
_DEFAULT_PRIORITIES: dict[Role, int] = {
    Role.HARVESTER: 1,
    Role.HAULER: 2,
    Role.UPGRADER: 3,
    Role.BUILDER: 4,
    Role.DEFENDER: 5,
    Role.REMOTE_DEFENDER: 6,
    Role.RESERVER: 7,
    Role.REMOTE_MINER: 8,
    Role.REMOTE_HAULER: 9,
    Role.SCOUT: 10,
    Role.LINK_FILLER: 12,
}

_DEFAULT_MIN_COUNTS: dict[Role, int] = {
    Role.HARVESTER: 2,
    Role.HAULER: 2,
    Role.UPGRADER: 2,
    Role.BUILDER: 2,
    Role.DEFENDER: 0,
    Role.SCOUT: 1,
    Role.REMOTE_MINER: 0,
}

_DEFAULT_MIN_COSTS: dict[Role, int] = {
    Role.HARVESTER: 200,
    Role.HAULER: 100,
    Role.UPGRADER: 200,
    Role.BUILDER: 200,
    Role.DEFENDER: 130,
    Role.REMOTE_MINER: 300,
    Role.REMOTE_HAULER: 200,
    Role.REMOTE_DEFENDER: 230,
    Role.RESERVER: 650,
    Role.SCOUT: 50,
    Role.LINK_FILLER: 150,
}

_ROLE_TABLES = ("weights", "priorities", "min_counts", "min_costs")


@dataclass
class SchedulerConfig:
    """Tuning for scoring, loadouts, admission, renewal and strategy.

    Attributes:
        weights: Base utility weight per role.
        priorities: Tie-break rank per role (lower first).
        min_counts: Counts below which a role is never delayed and its
            renewal never suppressed. Unlisted roles have minimum 0; the
            governor treats any minimum below 1 as 1.
        min_costs: Smallest budget for which a role gets a loadout.
        income_ratio_floor: Lower bound on income/max-income where the
            ratio is a divisor (harvester urgency).
        stored_energy_high_water: Stored energy above which upgrader
            utility gets a 1.5x boost.
        expansion_min_level: Maturity level gating all expansion roles.
        expansion_min_harvesters: Home harvesters needed before expanding.
        expansion_min_haulers: Home haulers needed before expanding.
        link_filler_min_level: Maturity level gating the link filler.
        expiry_horizon: Ticks-to-live under which a unit counts as
            already gone for deficit purposes.
        harvester_work_cap: WORK parts on a harvester (saturates a source).
        upgrader_work_cap: WORK parts on an upgrader.
        hauler_part_cap: Total parts on a (remote) hauler.
        builder_part_cap: Total parts on a builder.
        defender_part_cap: Total parts on a defender.
        link_filler_carry_cap: CARRY parts on a link filler.
        max_parts: Hard cap on parts for any loadout.
        hold_for_unaffordable_best: Produce nothing while the best
            candidate is unaffordable and income is positive.
        renew_ttl_below: Units at or above this ticks-to-live are not
            renewed.
        renew_min_energy_ratio: Fraction of capacity that must be
            available before renewing.
        renew_undersized_ratio: Units cheaper than this fraction of
            current capacity are always left to expire.
        renew_value_ratio: During a transition, units cheaper than this
            fraction of future capacity are left to expire.
        renew_max_distance: Units further than this from the facility
            are not renewed.
        capacity_per_site: Capacity each capacity-expanding site adds.
        build_rate_per_work: Construction progress per WORK part per tick.
        build_efficiency: Derating applied to builder throughput.
        suppress_growth_ratio: Future/current capacity ratio at which
            renewal is suppressed.
        suppress_eta: Transition ETA under which renewal is suppressed.
        delay_eta: Transition ETA under which non-critical production
            is delayed.
        strategy_interval: Ticks between strategic refreshes; also the
            maximum age a stored strategic state may have.
    """

    weights: dict[Role, float] = field(
        default_factory=lambda: dict(_DEFAULT_WEIGHTS),
    )
    priorities: dict[Role, int] = field(
        default_factory=lambda: dict(_DEFAULT_PRIORITIES),
    )
    min_counts: dict[Role, int] = field(
        default_factory=lambda: dict(_DEFAULT_MIN_COUNTS),
    )
    min_costs: dict[Role, int] = field(
        default_factory=lambda: dict(_DEFAULT_MIN_COSTS),
    )

    # Scoring
    income_ratio_floor: float = 0.01
    stored_energy_high_water: int = 100_000
    expansion_min_level: int = 4
    expansion_min_harvesters: int = 2
    expansion_min_haulers: int = 1
    link_filler_min_level: int = 5
    expiry_horizon: int = 100

    # Loadouts
    harvester_work_cap: int = 5
    upgrader_work_cap: int = 15
    hauler_part_cap: int = 32
    builder_part_cap: int = 30
    defender_part_cap: int = 25
    link_filler_carry_cap: int = 6
    max_parts: int = 50

    # Admission
    hold_for_unaffordable_best: bool = True

    # Renewal
    renew_ttl_below: int = 300
    renew_min_energy_ratio: float = 0.5
    renew_undersized_ratio: float = 0.5
    renew_value_ratio: float = 0.7
    renew_max_distance: int = 1

    # Capacity transition
    capacity_per_site: int = 50
    build_rate_per_work: float = 5.0
    build_efficiency: float = 0.4
    suppress_growth_ratio: float = 1.3
    suppress_eta: int = 500
    delay_eta: int = 300

    strategy_interval: int = 100

    def weight(self, role: Role) -> float:
        """Return the base utility weight for ``role``."""
        return self.weights.get(role, 0.0)

    def priority(self, role: Role) -> int:
        """Return the tie-break rank for ``role``; unranked roles sort last."""
        return self.priorities.get(role, 99)

    def min_count(self, role: Role) -> int:
        """Return the configured minimum count for ``role``."""
        return self.min_counts.get(role, 0)

    def min_cost(self, role: Role) -> int:
        """Return the smallest budget that yields a loadout for ``role``."""
        return self.min_costs.get(role, 200)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchedulerConfig:
        """Build a config from a plain mapping, defaulting missing keys.

        Role tables are merged over the defaults, so a file may override
        a single role's weight without restating the others.

        Raises:
            ValueError: If a role table names an unknown role.
        """
        config = cls()
        for name in _ROLE_TABLES:
            overrides = data.get(name) or {}
            table = getattr(config, name)
            for key, value in overrides.items():
                table[Role.parse(str(key))] = value
        for f in fields(cls):
            if f.name in _ROLE_TABLES or f.name not in data:
                continue
            if f.default is MISSING:
                continue
            setattr(config, f.name, type(f.default)(data[f.name]))
        return config

    @classmethod
    def from_yaml(cls, path: str | Path) -> SchedulerConfig:
        """Load the ``scheduler:`` section of a YAML file.

        Raises:
            FileNotFoundError: If the config file does not exist.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("scheduler") or {})
