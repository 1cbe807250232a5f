"""Tests for colonist.spawning.targets - remote target resolution."""

from collections.abc import Callable

import pytest

from colonist.colony.roles import Role
from colonist.colony.state import ColonyState, RemoteLocation
from colonist.spawning.targets import HOME, Assignment, requires_target, resolve_target

StateFactory = Callable[..., ColonyState]


class TestHomeRoles:
    """Roles that work at home never need a target."""

    def test_home_assignment(self, make_state: StateFactory) -> None:
        state = make_state()
        for role in (Role.HARVESTER, Role.HAULER, Role.UPGRADER, Role.SCOUT):
            assert not requires_target(role)
            assert resolve_target(role, state) == HOME

    @pytest.mark.parametrize("role", list(Role))
    def test_targeted_roles_never_default_home(
        self,
        role: Role,
        make_state: StateFactory,
    ) -> None:
        """Without remote locations only home roles resolve at all."""
        assignment = resolve_target(role, make_state())
        if requires_target(role):
            assert assignment is None
        else:
            assert assignment == HOME


class TestRemoteMiner:
    """The first unmined source wins."""

    def test_first_unmined_source(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(
                RemoteLocation("north", ("n1", "n2"), mined_sources=frozenset({"n1"})),
                RemoteLocation("east", ("e1",)),
            ),
        )
        assert resolve_target(Role.REMOTE_MINER, state) == Assignment("north", "n2")

    def test_skips_fully_mined_location(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(
                RemoteLocation("north", ("n1",), mined_sources=frozenset({"n1"})),
                RemoteLocation("east", ("e1",)),
            ),
        )
        assert resolve_target(Role.REMOTE_MINER, state) == Assignment("east", "e1")

    def test_none_when_everything_mined(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(
                RemoteLocation("north", ("n1",), mined_sources=frozenset({"n1"})),
            ),
        )
        assert resolve_target(Role.REMOTE_MINER, state) is None

    def test_none_without_locations(self, make_state: StateFactory) -> None:
        assert resolve_target(Role.REMOTE_MINER, make_state()) is None


class TestRemoteSupport:
    """Haulers, reservers and defenders follow coverage rules."""

    def test_hauler_needs_miners(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(
                RemoteLocation("north", ("n1",), miners=0),
                RemoteLocation("east", ("e1",), miners=2, haulers=2),
            ),
        )
        # ceil(2 * 1.5) = 3 haulers allowed at east.
        assert resolve_target(Role.REMOTE_HAULER, state) == Assignment("east")

    def test_hauler_ceiling(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(RemoteLocation("north", ("n1",), miners=1, haulers=2),),
        )
        assert resolve_target(Role.REMOTE_HAULER, state) is None

    def test_reserver(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(
                RemoteLocation("north", ("n1",), reserved=True),
                RemoteLocation("east", ("e1",), reservers=1),
                RemoteLocation("west", ("w1",)),
            ),
        )
        assert resolve_target(Role.RESERVER, state) == Assignment("west")

    def test_defender_uses_reported_threat(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(
                RemoteLocation("north", ("n1",)),
                RemoteLocation("east", ("e1",), defenders=1),
            ),
            remote_threats={"east": 2},
        )
        assert resolve_target(Role.REMOTE_DEFENDER, state) == Assignment("east")

    def test_defender_covered(self, make_state: StateFactory) -> None:
        state = make_state(
            remote_locations=(RemoteLocation("north", ("n1",), threat=1, defenders=1),),
        )
        assert resolve_target(Role.REMOTE_DEFENDER, state) is None
