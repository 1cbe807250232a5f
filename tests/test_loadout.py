"""Tests for colonist.spawning.loadout - role loadout construction."""

import pytest

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import Part, Role, count_parts, loadout_cost
from colonist.spawning.loadout import build_loadout

W, C, M = Part.WORK, Part.CARRY, Part.MOVE
A, T = Part.ATTACK, Part.TOUGH


def _build(role: Role, energy: int, config: SchedulerConfig, *, emergency: bool = False):
    return build_loadout(
        role,
        energy_available=energy,
        energy_capacity=energy,
        emergency=emergency,
        config=config,
    )


class TestHarvester:
    """Capped WORK stacking with room kept for CARRY and MOVE."""

    def test_emergency_300(self, config: SchedulerConfig) -> None:
        assert _build(Role.HARVESTER, 300, config) == (W, W, C, M)

    def test_700_saturates_source(self, config: SchedulerConfig) -> None:
        parts = _build(Role.HARVESTER, 700, config)
        assert count_parts(parts, W) == 5
        assert count_parts(parts, C) == 1
        assert count_parts(parts, M) == 3
        assert loadout_cost(parts) == 700

    def test_work_cap(self, config: SchedulerConfig) -> None:
        parts = _build(Role.HARVESTER, 5000, config)
        assert count_parts(parts, W) == config.harvester_work_cap

    def test_minimum_fallback(self, config: SchedulerConfig) -> None:
        assert _build(Role.HARVESTER, 200, config) == (W, C, M)


class TestOtherRoles:
    """Stacking, repetition, tiers and fallbacks for the remaining roles."""

    def test_hauler_pairs(self, config: SchedulerConfig) -> None:
        assert _build(Role.HAULER, 200, config) == (C, M, C, M)

    def test_hauler_part_cap(self, config: SchedulerConfig) -> None:
        parts = _build(Role.HAULER, 10_000, config)
        assert len(parts) == config.hauler_part_cap

    def test_hauler_fallback(self, config: SchedulerConfig) -> None:
        assert _build(Role.HAULER, 100, config) == (C, M)

    def test_upgrader_always_carries(self, config: SchedulerConfig) -> None:
        for energy in (200, 350, 550, 800, 1300):
            assert C in _build(Role.UPGRADER, energy, config)

    def test_builder_groups(self, config: SchedulerConfig) -> None:
        assert _build(Role.BUILDER, 400, config) == (W, C, M, W, C, M)

    def test_defender_fallback(self, config: SchedulerConfig) -> None:
        assert _build(Role.DEFENDER, 130, config) == (A, M)

    def test_defender_tough_only_with_room(self, config: SchedulerConfig) -> None:
        parts = _build(Role.DEFENDER, 300, config)
        assert A in parts
        assert count_parts(parts, T) <= 3

    def test_remote_miner_tiers(self, config: SchedulerConfig) -> None:
        assert count_parts(_build(Role.REMOTE_MINER, 300, config), W) == 2
        assert count_parts(_build(Role.REMOTE_MINER, 450, config), W) == 3
        assert count_parts(_build(Role.REMOTE_MINER, 550, config), W) == 4
        assert count_parts(_build(Role.REMOTE_MINER, 700, config), W) == 5

    def test_remote_defender_tiers(self, config: SchedulerConfig) -> None:
        assert _build(Role.REMOTE_DEFENDER, 230, config) == (T, A, M, M)
        assert _build(Role.REMOTE_DEFENDER, 320, config) == (T, A, A, M, M, M)
        assert len(_build(Role.REMOTE_DEFENDER, 650, config)) == 10

    def test_reserver_tiers(self, config: SchedulerConfig) -> None:
        assert count_parts(_build(Role.RESERVER, 650, config), Part.CLAIM) == 1
        assert count_parts(_build(Role.RESERVER, 1300, config), Part.CLAIM) == 2

    def test_scout(self, config: SchedulerConfig) -> None:
        assert _build(Role.SCOUT, 1000, config) == (M,)

    def test_link_filler(self, config: SchedulerConfig) -> None:
        parts = _build(Role.LINK_FILLER, 1000, config)
        assert count_parts(parts, C) == config.link_filler_carry_cap
        assert count_parts(parts, M) == config.link_filler_carry_cap // 2


class TestBudget:
    """Budget selection, minimum cost and the affordability bound."""

    def test_below_min_cost_is_empty(self, config: SchedulerConfig) -> None:
        assert _build(Role.HARVESTER, 199, config) == ()
        assert _build(Role.RESERVER, 649, config) == ()

    def test_emergency_sizes_to_available(self, config: SchedulerConfig) -> None:
        calm = build_loadout(
            Role.HAULER,
            energy_available=200,
            energy_capacity=800,
            emergency=False,
            config=config,
        )
        urgent = build_loadout(
            Role.HAULER,
            energy_available=200,
            energy_capacity=800,
            emergency=True,
            config=config,
        )
        assert loadout_cost(calm) == 800
        assert loadout_cost(urgent) == 200

    @pytest.mark.parametrize("role", list(Role))
    def test_never_exceeds_budget(self, role: Role, config: SchedulerConfig) -> None:
        for energy in range(config.min_cost(role), 3001, 50):
            parts = _build(role, energy, config)
            assert parts
            assert loadout_cost(parts) <= energy
            assert len(parts) <= config.max_parts

    @pytest.mark.parametrize("role", list(Role))
    def test_deterministic(self, role: Role, config: SchedulerConfig) -> None:
        assert _build(role, 1234, config) == _build(role, 1234, config)
