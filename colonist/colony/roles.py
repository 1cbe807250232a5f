"""Roles and parts — the closed vocabularies the scheduler works over.

Every unit a colony can produce fills exactly one :class:`Role` and is
assembled from :class:`Part` values, each with a fixed energy cost.
Role groupings (critical, expansion, target-requiring) live here so the
scorer, governor, and resolver all agree on them.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class Role(Enum):
    """Unit roles the production facility can build."""

    HARVESTER = "harvester"
    HAULER = "hauler"
    UPGRADER = "upgrader"
    BUILDER = "builder"
    DEFENDER = "defender"
    REMOTE_MINER = "remote_miner"
    REMOTE_HAULER = "remote_hauler"
    REMOTE_DEFENDER = "remote_defender"
    RESERVER = "reserver"
    SCOUT = "scout"
    LINK_FILLER = "link_filler"

    @classmethod
    def parse(cls, name: str) -> Role:
        """Look a role up by value or member name, case-insensitively.

        Raises:
            ValueError: If ``name`` matches no role.
        """
        key = name.strip().lower()
        for role in cls:
            if role.value == key or role.name.lower() == key:
                return role
        msg = f"unknown role: {name!r}"
        raise ValueError(msg)


class Part(Enum):
    """Capability parts a loadout is composed of."""

    MOVE = "move"
    WORK = "work"
    CARRY = "carry"
    ATTACK = "attack"
    RANGED_ATTACK = "ranged_attack"
    HEAL = "heal"
    CLAIM = "claim"
    TOUGH = "tough"


PART_COST: dict[Part, int] = {
    Part.MOVE: 50,
    Part.WORK: 100,
    Part.CARRY: 50,
    Part.ATTACK: 80,
    Part.RANGED_ATTACK: 150,
    Part.HEAL: 250,
    Part.CLAIM: 600,
    Part.TOUGH: 10,
}

Loadout = tuple[Part, ...]

# Economy cannot run without these; never delayed by a capacity transition.
CRITICAL_ROLES: frozenset[Role] = frozenset(
    {Role.HARVESTER, Role.HAULER, Role.UPGRADER},
)

# Renewal of these is kept while the role sits at its minimum count.
RENEWAL_PROTECTED_ROLES: frozenset[Role] = frozenset({Role.HARVESTER, Role.HAULER})

EXPANSION_ROLES: frozenset[Role] = frozenset(
    {
        Role.REMOTE_MINER,
        Role.REMOTE_HAULER,
        Role.REMOTE_DEFENDER,
        Role.RESERVER,
        Role.SCOUT,
    },
)

TARGETED_ROLES: frozenset[Role] = frozenset(
    {
        Role.REMOTE_MINER,
        Role.REMOTE_HAULER,
        Role.REMOTE_DEFENDER,
        Role.RESERVER,
    },
)


def loadout_cost(parts: Iterable[Part]) -> int:
    """Return the total energy cost of a part composition."""
    return sum(PART_COST[part] for part in parts)


def count_parts(parts: Iterable[Part], kind: Part) -> int:
    """Return how many parts of ``kind`` a composition holds."""
    return sum(1 for part in parts if part is kind)
