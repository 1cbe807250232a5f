"""TargetResolver — pick a remote location for roles that need one.

Locations are scanned in the order the snapshot lists them and the
first one whose coverage for the role is below need wins.  There is no
global optimisation and no reassignment of units already out: a badly
placed unit is corrected by the next production pass choosing a
different location for its replacement.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from colonist.colony.roles import TARGETED_ROLES, Role
from colonist.colony.state import ColonyState, RemoteLocation

HAULERS_PER_MINER = 1.5


@dataclass(frozen=True)
class Assignment:
    """Where a new unit should work.

    Attributes:
        target: Remote location name, or None for home roles.
        source_id: Specific source for remote miners.
    """

    target: str | None = None
    source_id: str | None = None


HOME = Assignment()

LocationMatcher = Callable[[RemoteLocation, ColonyState], Assignment | None]


def _needs_miner(location: RemoteLocation, state: ColonyState) -> Assignment | None:
    for source_id in location.source_ids:
        if source_id not in location.mined_sources:
            return Assignment(location.name, source_id)
    return None


def _needs_hauler(location: RemoteLocation, state: ColonyState) -> Assignment | None:
    if location.miners <= 0:
        return None
    ceiling = math.ceil(location.miners * HAULERS_PER_MINER)
    if location.haulers < ceiling:
        return Assignment(location.name)
    return None


def _needs_reserver(location: RemoteLocation, state: ColonyState) -> Assignment | None:
    if location.reserved or location.reservers > 0:
        return None
    return Assignment(location.name)


def _needs_defender(location: RemoteLocation, state: ColonyState) -> Assignment | None:
    threat = max(location.threat, state.remote_threats.get(location.name, 0))
    if threat > 0 and location.defenders < threat:
        return Assignment(location.name)
    return None


_MATCHERS: dict[Role, LocationMatcher] = {
    Role.REMOTE_MINER: _needs_miner,
    Role.REMOTE_HAULER: _needs_hauler,
    Role.RESERVER: _needs_reserver,
    Role.REMOTE_DEFENDER: _needs_defender,
}


def requires_target(role: Role) -> bool:
    """True if ``role`` works a remote location rather than home."""
    return role in TARGETED_ROLES


def resolve_target(role: Role, state: ColonyState) -> Assignment | None:
    """Return the assignment for a new unit of ``role``.

    Home roles always get :data:`HOME`.  Targeted roles get the first
    location needing them, or None when no location does (the caller
    then drops the candidate).
    """
    if not requires_target(role):
        return HOME
    matcher = _MATCHERS[role]
    for location in state.remote_locations:
        assignment = matcher(location, state)
        if assignment is not None:
            return assignment
    return None
