"""UtilityScorer — how badly the colony wants one more unit of each role.

Each role's utility is a continuous function of the colony snapshot.
Every formula starts from the role's deficit and is shaped by the
economy:

- **Harvester** utility grows as income collapses: the scarcity
  multiplier ``1 / max(incomeRatio, floor)`` makes the first harvester
  of a dead colony dominate everything else.
- **Hauler** utility is zero with no harvesters to haul for, and jumps
  tenfold when energy is being produced but nobody is moving it.
- **Upgrader** and **builder** are sinks: they scale *down* with the
  income ratio so a struggling economy feeds itself first.
- **Defender** utility follows home threat and is shared across the
  defenders already out.
- **Expansion roles** are gated by maturity level and a working home
  economy, then scale by the income ratio.

A uniform guard applies before any formula: a role whose deficit is
not positive scores exactly zero.
"""

from __future__ import annotations

from collections.abc import Callable

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import EXPANSION_ROLES, Role
from colonist.colony.state import ColonyState

RoleScorer = Callable[[ColonyState, SchedulerConfig, int], float]

_HAULER_STARVED_BOOST = 10.0
_UPGRADER_STORED_BOOST = 1.5
_BUILDER_BACKLOG_DIVISOR = 5.0
_BUILDER_BACKLOG_CAP = 2.0


def _harvester(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    scarcity = 1.0 / max(state.income_ratio, config.income_ratio_floor)
    return deficit * config.weight(Role.HARVESTER) * scarcity


def _hauler(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    if state.count(Role.HARVESTER) == 0:
        return 0.0
    utility = deficit * config.weight(Role.HAULER)
    if state.count(Role.HAULER) == 0 and state.energy_income > 0:
        return utility * _HAULER_STARVED_BOOST
    return utility * (1.0 + state.income_ratio)


def _upgrader(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    utility = deficit * config.weight(Role.UPGRADER) * state.income_ratio
    if state.energy_stored > config.stored_energy_high_water:
        utility *= _UPGRADER_STORED_BOOST
    return utility


def _builder(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    if state.construction_sites <= 0:
        return 0.0
    backlog = min(state.construction_sites / _BUILDER_BACKLOG_DIVISOR, _BUILDER_BACKLOG_CAP)
    return deficit * config.weight(Role.BUILDER) * state.income_ratio * backlog


def _defender(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    if state.home_threat <= 0:
        return 0.0
    defenders = state.count(Role.DEFENDER)
    return state.home_threat * config.weight(Role.DEFENDER) / (defenders + 1)


def _remote_miner(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    if not state.remote_locations:
        return 0.0
    return deficit * config.weight(Role.REMOTE_MINER) * state.income_ratio


def _remote_hauler(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    if state.count(Role.REMOTE_MINER) == 0:
        return 0.0
    return deficit * config.weight(Role.REMOTE_HAULER) * state.income_ratio


def _remote_defender(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    threat = state.max_remote_threat
    if threat <= 0:
        return 0.0
    return threat * config.weight(Role.REMOTE_DEFENDER) * state.income_ratio


def _reserver(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    if not state.remote_locations or state.count(Role.REMOTE_MINER) == 0:
        return 0.0
    return deficit * config.weight(Role.RESERVER) * state.income_ratio


def _scout(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    return deficit * config.weight(Role.SCOUT) * state.income_ratio


def _link_filler(state: ColonyState, config: SchedulerConfig, deficit: int) -> float:
    if state.level < config.link_filler_min_level or not state.has_collection_point:
        return 0.0
    return deficit * config.weight(Role.LINK_FILLER) * state.income_ratio


_SCORERS: dict[Role, RoleScorer] = {
    Role.HARVESTER: _harvester,
    Role.HAULER: _hauler,
    Role.UPGRADER: _upgrader,
    Role.BUILDER: _builder,
    Role.DEFENDER: _defender,
    Role.REMOTE_MINER: _remote_miner,
    Role.REMOTE_HAULER: _remote_hauler,
    Role.REMOTE_DEFENDER: _remote_defender,
    Role.RESERVER: _reserver,
    Role.SCOUT: _scout,
    Role.LINK_FILLER: _link_filler,
}

_unscored = set(Role) - set(_SCORERS)
if _unscored:
    msg = f"roles without a scorer: {sorted(r.name for r in _unscored)}"
    raise RuntimeError(msg)


def expansion_allowed(state: ColonyState, config: SchedulerConfig) -> bool:
    """True once the home colony is mature and staffed enough to expand."""
    return (
        state.level >= config.expansion_min_level
        and state.count(Role.HARVESTER) >= config.expansion_min_harvesters
        and state.count(Role.HAULER) >= config.expansion_min_haulers
    )


def score(role: Role, state: ColonyState, config: SchedulerConfig) -> float:
    """Return the non-negative production utility of ``role``.

    Args:
        role: Role to score.
        state: This cycle's colony snapshot.
        config: Scheduler tuning.

    Returns:
        0.0 whenever the role's deficit is not positive or the role is
        gated off; otherwise the role formula's value.
    """
    deficit = state.deficit(role)
    if deficit <= 0:
        return 0.0
    if role in EXPANSION_ROLES and not expansion_allowed(state, config):
        return 0.0
    return max(0.0, _SCORERS[role](state, config, deficit))


def score_all(state: ColonyState, config: SchedulerConfig) -> dict[Role, float]:
    """Score every role, in enum order."""
    return {role: score(role, state, config) for role in Role}
