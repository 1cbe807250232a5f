"""Named starting positions for the simulation harness.

Each scenario takes a base :class:`SimulationConfig`, adjusts the
starting colony and returns a ready-to-run engine.  They cover the
situations the production core must recover from or sustain.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

from colonist.colony.roles import Role
from colonist.simulation.config import SimulationConfig
from colonist.simulation.engine import SimulationEngine
from colonist.spawning.targets import Assignment


@dataclass(frozen=True)
class Scenario:
    """A named scenario and how to set it up."""

    name: str
    description: str
    setup: Callable[[SimulationConfig], SimulationEngine]


def _full_wipe(config: SimulationConfig) -> SimulationEngine:
    return SimulationEngine(config=replace(config, energy_available=300, energy_capacity=300))


def _full_wipe_low_energy(config: SimulationConfig) -> SimulationEngine:
    return SimulationEngine(config=replace(config, energy_available=200, energy_capacity=300))


def _zero_harvesters(config: SimulationConfig) -> SimulationEngine:
    engine = SimulationEngine(
        config=replace(config, level=2, energy_available=300, energy_capacity=550),
    )
    engine.add_unit(Role.HAULER)
    engine.add_unit(Role.HAULER)
    engine.add_unit(Role.UPGRADER)
    return engine


def _zero_haulers(config: SimulationConfig) -> SimulationEngine:
    engine = SimulationEngine(
        config=replace(config, level=2, energy_available=200, energy_capacity=550),
    )
    engine.add_unit(Role.HARVESTER)
    engine.add_unit(Role.HARVESTER)
    return engine


def _all_dying(config: SimulationConfig) -> SimulationEngine:
    engine = SimulationEngine(
        config=replace(
            config,
            level=3,
            energy_available=800,
            energy_capacity=800,
            energy_stored=5000,
        ),
    )
    for ttl, role in enumerate(
        (Role.HARVESTER, Role.HARVESTER, Role.HAULER, Role.HAULER, Role.UPGRADER),
    ):
        engine.add_unit(role, ticks_to_live=50 + ttl * 10)
    return engine


def _bootstrap(config: SimulationConfig) -> SimulationEngine:
    return SimulationEngine(
        config=replace(config, level=1, energy_available=0, energy_capacity=300),
    )


def _stable(config: SimulationConfig) -> SimulationEngine:
    engine = SimulationEngine(
        config=replace(
            config,
            level=5,
            energy_available=1800,
            energy_capacity=1800,
            energy_stored=50_000,
            has_collection_point=True,
            construction_sites=3,
        ),
    )
    for role in (
        Role.HARVESTER,
        Role.HARVESTER,
        Role.HAULER,
        Role.HAULER,
        Role.UPGRADER,
        Role.UPGRADER,
        Role.UPGRADER,
        Role.BUILDER,
    ):
        engine.add_unit(role)
    return engine


def _capacity_transition(config: SimulationConfig) -> SimulationEngine:
    engine = SimulationEngine(
        config=replace(
            config,
            level=3,
            energy_available=550,
            energy_capacity=550,
            energy_stored=20_000,
            capacity_sites=5,
        ),
    )
    for role in (
        Role.HARVESTER,
        Role.HARVESTER,
        Role.HAULER,
        Role.HAULER,
        Role.UPGRADER,
        Role.BUILDER,
        Role.BUILDER,
    ):
        engine.add_unit(role)
    return engine


def _remote_expansion(config: SimulationConfig) -> SimulationEngine:
    engine = SimulationEngine(
        config=replace(
            config,
            level=4,
            energy_available=1300,
            energy_capacity=1300,
            energy_stored=20_000,
            has_collection_point=True,
            remote_sources={"north": 2, "east": 1},
        ),
    )
    for role in (
        Role.HARVESTER,
        Role.HARVESTER,
        Role.HAULER,
        Role.HAULER,
        Role.UPGRADER,
        Role.UPGRADER,
    ):
        engine.add_unit(role)
    engine.add_unit(Role.REMOTE_MINER, assignment=Assignment("north", "north:0"))
    return engine


SCENARIOS: dict[str, Scenario] = {
    s.name: s
    for s in (
        Scenario("full-wipe", "No units, 300 energy", _full_wipe),
        Scenario("full-wipe-low", "No units, 200 energy", _full_wipe_low_energy),
        Scenario("zero-harvesters", "Haulers and an upgrader, no harvesters", _zero_harvesters),
        Scenario("zero-haulers", "Two harvesters, no haulers", _zero_haulers),
        Scenario("all-dying", "Every unit within 100 ticks of expiry", _all_dying),
        Scenario("bootstrap", "Level 1, no units, no energy", _bootstrap),
        Scenario("stable", "Level 5 economy with storage", _stable),
        Scenario("capacity-transition", "Five capacity sites under construction", _capacity_transition),
        Scenario("remote-expansion", "Level 4 with two remote locations", _remote_expansion),
    )
}


def build_scenario(name: str, config: SimulationConfig | None = None) -> SimulationEngine:
    """Return an engine set up for scenario ``name``.

    Raises:
        KeyError: If no scenario has that name.
    """
    try:
        scenario = SCENARIOS[name]
    except KeyError:
        msg = f"unknown scenario {name!r}; choose from {', '.join(SCENARIOS)}"
        raise KeyError(msg) from None
    return scenario.setup(config or SimulationConfig())
