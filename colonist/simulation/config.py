"""Config — load simulation harness parameters from YAML files.

World constants (unit lifetime, harvest rates, facility regeneration,
raid odds) and the colony's starting position live in YAML and are
parsed into typed dataclasses here.  The ``scheduler:`` section is
handed to :class:`SchedulerConfig` so one file tunes both the harness
and the production core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from colonist.colony.config import SchedulerConfig


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        ticks: Default run length.
        name: Colony name used in logs and store keys.
        level: Starting maturity level.
        energy_available: Starting spendable energy.
        energy_capacity: Starting maximum spendable energy.
        energy_stored: Starting energy in storage.
        sources: Home energy sources.
        has_collection_point: Whether a storage structure exists.
        unit_lifetime: Ticks a freshly produced unit lives.
        ticks_per_part: Production time per loadout part.
        harvest_per_work: Energy a WORK part harvests per tick.
        source_max: Energy a single source yields per tick at most.
        facility_regen: Energy the facility regenerates per tick while
            below ``facility_regen_below``.
        facility_regen_below: Level under which regeneration applies.
        construction_sites: Starting general construction backlog.
        site_progress: Progress each general site needs.
        capacity_sites: Starting capacity-expanding sites.
        capacity_site_progress: Progress each capacity site needs.
        level_progress_per_level: Upgrade progress needed per level,
            multiplied by the current level.
        raid_probability: Chance per tick that a raid arrives.
        raid_size: Hostiles per raid.
        raid_duration: Ticks a raid lingers if not cleared.
        remote_sources: Remote location name to its source count.
        scheduler: Production-core tuning.
    """

    seed: int = 42
    ticks: int = 1500
    name: str = "sim"

    # Starting colony
    level: int = 1
    energy_available: int = 300
    energy_capacity: int = 300
    energy_stored: int = 0
    sources: int = 2
    has_collection_point: bool = False

    # World rules
    unit_lifetime: int = 1500
    ticks_per_part: int = 3
    harvest_per_work: int = 2
    source_max: int = 10
    facility_regen: int = 1
    facility_regen_below: int = 300

    # Construction and upgrading
    construction_sites: int = 0
    site_progress: float = 1000.0
    capacity_sites: int = 0
    capacity_site_progress: float = 3000.0
    level_progress_per_level: float = 20000.0

    # Threats
    raid_probability: float = 0.0
    raid_size: int = 2
    raid_duration: int = 50

    remote_sources: dict[str, int] = field(default_factory=dict)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            seed=data.get("seed", cls.seed),
            ticks=data.get("ticks", cls.ticks),
            name=data.get("name", cls.name),
            level=data.get("level", cls.level),
            energy_available=data.get("energy_available", cls.energy_available),
            energy_capacity=data.get("energy_capacity", cls.energy_capacity),
            energy_stored=data.get("energy_stored", cls.energy_stored),
            sources=data.get("sources", cls.sources),
            has_collection_point=data.get(
                "has_collection_point",
                cls.has_collection_point,
            ),
            unit_lifetime=data.get("unit_lifetime", cls.unit_lifetime),
            ticks_per_part=data.get("ticks_per_part", cls.ticks_per_part),
            harvest_per_work=data.get("harvest_per_work", cls.harvest_per_work),
            source_max=data.get("source_max", cls.source_max),
            facility_regen=data.get("facility_regen", cls.facility_regen),
            facility_regen_below=data.get(
                "facility_regen_below",
                cls.facility_regen_below,
            ),
            construction_sites=data.get(
                "construction_sites",
                cls.construction_sites,
            ),
            site_progress=data.get("site_progress", cls.site_progress),
            capacity_sites=data.get("capacity_sites", cls.capacity_sites),
            capacity_site_progress=data.get(
                "capacity_site_progress",
                cls.capacity_site_progress,
            ),
            level_progress_per_level=data.get(
                "level_progress_per_level",
                cls.level_progress_per_level,
            ),
            raid_probability=data.get("raid_probability", cls.raid_probability),
            raid_size=data.get("raid_size", cls.raid_size),
            raid_duration=data.get("raid_duration", cls.raid_duration),
            remote_sources=dict(data.get("remote_sources") or {}),
            scheduler=SchedulerConfig.from_dict(data.get("scheduler") or {}),
        )
