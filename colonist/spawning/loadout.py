"""LoadoutBuilder — turn a role and an energy budget into a part list.

Loadouts are pure functions of ``(role, budget)``; the emergency flag
only decides which budget applies.  In an emergency (no harvesters or no
haulers) the colony builds with what it has *now*; otherwise it builds
for full capacity, since the facility refills long before the unit
would matter.

Four construction patterns are used:

- capped incremental stacking (harvester, upgrader, link filler): stack
  the primary part up to a cap, add a support part, then one MOVE per
  two other parts;
- paired or grouped repetition (haulers, builders, defenders) until a
  part cap or the budget runs out;
- discrete tiers picked by budget threshold (remote miner, remote
  defender, reserver);
- a minimum-viable fallback whenever the computed loadout comes out
  smaller than the role's minimum part count.
"""

from __future__ import annotations

import math
from collections.abc import Callable

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import PART_COST, Loadout, Part, Role, count_parts

LoadoutFn = Callable[[int, SchedulerConfig], Loadout]

W, C, M = Part.WORK, Part.CARRY, Part.MOVE
A, T, CL = Part.ATTACK, Part.TOUGH, Part.CLAIM


def _add_moves(parts: list[Part], remaining: int, config: SchedulerConfig) -> int:
    """Append one MOVE per two non-MOVE parts while affordable."""
    needed = math.ceil(len(parts) / 2)
    while (
        remaining >= PART_COST[M]
        and count_parts(parts, M) < needed
        and len(parts) < config.max_parts
    ):
        parts.append(M)
        remaining -= PART_COST[M]
    return remaining


def _harvester(energy: int, config: SchedulerConfig) -> Loadout:
    if energy < 300:
        return (W, C, M)
    parts: list[Part] = []
    remaining = energy
    # Keep enough back for the CARRY and first MOVE.
    reserve = PART_COST[C] + PART_COST[M]
    while (
        remaining >= PART_COST[W] + reserve
        and count_parts(parts, W) < config.harvester_work_cap
    ):
        parts.append(W)
        remaining -= PART_COST[W]
    if remaining >= PART_COST[C]:
        parts.append(C)
        remaining -= PART_COST[C]
    _add_moves(parts, remaining, config)
    return tuple(parts) if len(parts) >= 3 else (W, C, M)


def _upgrader(energy: int, config: SchedulerConfig) -> Loadout:
    if energy < 200:
        return (W, C, M)
    # The CARRY and first MOVE are paid for up front.
    remaining = energy - PART_COST[C] - PART_COST[M]
    works = min(remaining // PART_COST[W], config.upgrader_work_cap)
    parts = [W] * works + [C, M]
    remaining -= works * PART_COST[W]
    _add_moves(parts, remaining, config)
    return tuple(parts)


def _paired_carry(energy: int, cap: int) -> list[Part]:
    parts: list[Part] = []
    remaining = energy
    while remaining >= PART_COST[C] + PART_COST[M] and len(parts) + 2 <= cap:
        parts += [C, M]
        remaining -= PART_COST[C] + PART_COST[M]
    return parts


def _hauler(energy: int, config: SchedulerConfig) -> Loadout:
    parts = _paired_carry(energy, min(config.hauler_part_cap, config.max_parts))
    return tuple(parts) if len(parts) >= 2 else (C, M)


def _remote_hauler(energy: int, config: SchedulerConfig) -> Loadout:
    parts = _paired_carry(energy, min(config.hauler_part_cap, config.max_parts))
    return tuple(parts) if len(parts) >= 4 else (C, C, M, M)


def _builder(energy: int, config: SchedulerConfig) -> Loadout:
    group_cost = PART_COST[W] + PART_COST[C] + PART_COST[M]
    cap = min(config.builder_part_cap, config.max_parts)
    parts: list[Part] = []
    remaining = energy
    while remaining >= group_cost and len(parts) + 3 <= cap:
        parts += [W, C, M]
        remaining -= group_cost
    return tuple(parts) if len(parts) >= 3 else (W, C, M)


def _defender(energy: int, config: SchedulerConfig) -> Loadout:
    pair_cost = PART_COST[A] + PART_COST[M]
    cap = min(config.defender_part_cap, config.max_parts)
    parts: list[Part] = []
    remaining = energy
    while remaining >= PART_COST[T] + pair_cost and count_parts(parts, T) < 3:
        parts.append(T)
        remaining -= PART_COST[T]
    while remaining >= pair_cost and len(parts) + 2 <= cap:
        parts += [A, M]
        remaining -= pair_cost
    return tuple(parts) if A in parts else (A, M)


def _remote_miner(energy: int, config: SchedulerConfig) -> Loadout:
    if energy >= 700:
        return (W, W, W, W, W, C, M, M, M)
    if energy >= 550:
        return (W, W, W, W, C, M, M)
    if energy >= 450:
        return (W, W, W, C, M, M)
    return (W, W, C, M)


def _remote_defender(energy: int, config: SchedulerConfig) -> Loadout:
    if energy >= 650:
        return (T, T, A, A, A, M, M, M, M, M)
    if energy >= 320:
        return (T, A, A, M, M, M)
    return (T, A, M, M)


def _reserver(energy: int, config: SchedulerConfig) -> Loadout:
    if energy >= 1300:
        return (CL, CL, M, M)
    return (CL, M)


def _scout(energy: int, config: SchedulerConfig) -> Loadout:
    return (M,)


def _link_filler(energy: int, config: SchedulerConfig) -> Loadout:
    parts: list[Part] = []
    remaining = energy
    while remaining >= 100 and count_parts(parts, C) < config.link_filler_carry_cap:
        parts.append(C)
        remaining -= PART_COST[C]
        if count_parts(parts, C) % 2 == 0 and remaining >= PART_COST[M]:
            parts.append(M)
            remaining -= PART_COST[M]
    return tuple(parts) if len(parts) >= 3 else (C, C, M)


_BUILDERS: dict[Role, LoadoutFn] = {
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

_unbuilt = set(Role) - set(_BUILDERS)
if _unbuilt:
    msg = f"roles without a loadout builder: {sorted(r.name for r in _unbuilt)}"
    raise RuntimeError(msg)


def build_loadout(
    role: Role,
    *,
    energy_available: int,
    energy_capacity: int,
    emergency: bool,
    config: SchedulerConfig,
) -> Loadout:
    """Compose the loadout for ``role``.

    Args:
        role: Role to build for.
        energy_available: Energy spendable right now.
        energy_capacity: Energy the facility network holds when full.
        emergency: Whether the colony has no harvesters or no haulers.
            Emergencies size the loadout to available energy, otherwise
            to capacity.
        config: Scheduler tuning (caps and minimum costs).

    Returns:
        An ordered part tuple, or an empty tuple when the budget is below
        the role's minimum cost.
    """
    budget = energy_available if emergency else energy_capacity
    if budget < config.min_cost(role):
        return ()
    parts = _BUILDERS[role](budget, config)
    return parts[: config.max_parts]
