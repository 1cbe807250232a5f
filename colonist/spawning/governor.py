"""TransitionGovernor — anti-thrashing rules around capacity growth.

While capacity-expanding construction is close to finishing, units
built now would be undersized a few hundred ticks later.  The governor
therefore:

- delays non-critical production when the transition ETA is short;
- lets cheap near-expiry units lapse instead of renewing them, so their
  replacements are sized for the larger capacity.

Two guards hold regardless of transition state: a role below its
configured minimum count (treated as at least one, so a role with no
units is always below it) is never delayed and its units are never
suppressed, and a unit costing less than half of current capacity is
never renewed.
"""

from __future__ import annotations

import logging
import math

from colonist.colony.config import SchedulerConfig
from colonist.colony.roles import CRITICAL_ROLES, RENEWAL_PROTECTED_ROLES, Role
from colonist.colony.state import ColonyState, UnitSummary
from colonist.colony.strategic import CapacityTransition

logger = logging.getLogger(__name__)


def detect_transition(state: ColonyState, config: SchedulerConfig) -> CapacityTransition:
    """Work out whether capacity is growing and how soon it lands.

    ETA is the remaining construction progress divided by builder
    throughput (WORK parts x build rate x efficiency derating); it is
    None when nobody is building.
    """
    current = state.energy_capacity
    sites = max(0, state.capacity_sites)
    future = current + sites * config.capacity_per_site
    in_transition = sites > 0

    rate = state.builder_work_parts * config.build_rate_per_work * config.build_efficiency
    eta = math.ceil(state.capacity_remaining_progress / rate) if rate > 0 else None

    growth = future / max(current, 1)
    suppress = (
        in_transition
        and eta is not None
        and growth >= config.suppress_growth_ratio
        and eta < config.suppress_eta
    )
    delay = in_transition and eta is not None and eta < config.delay_eta
    return CapacityTransition(
        in_transition=in_transition,
        current_capacity=current,
        future_capacity=future,
        units_building=sites,
        eta_ticks=eta,
        suppress_renewal=suppress,
        delay_spawning=delay,
    )


class TransitionGovernor:
    """Applies a capacity transition's verdicts to roles and units.

    Args:
        transition: The transition recorded in the current strategic
            state (possibly stale; the default means no transition).
        config: Scheduler tuning.
    """

    def __init__(self, transition: CapacityTransition, config: SchedulerConfig) -> None:
        self.transition = transition
        self.config = config

    def minimum(self, role: Role) -> int:
        """Count below which ``role`` is never held back; at least one."""
        return self.config.min_count(role) or 1

    def delays(self, role: Role, state: ColonyState) -> bool:
        """True if producing ``role`` should wait for the larger capacity."""
        if not (self.transition.in_transition and self.transition.delay_spawning):
            return False
        if role in CRITICAL_ROLES:
            return False
        if state.count(role) < self.minimum(role):
            return False
        logger.debug(
            "Delaying %s: capacity lands in ~%s ticks",
            role.name,
            self.transition.eta_ticks,
        )
        return True

    def suppresses_renewal(self, unit: UnitSummary, state: ColonyState) -> bool:
        """True if ``unit`` should be left to expire rather than renewed."""
        threshold = state.energy_capacity * self.config.renew_undersized_ratio
        if unit.cost < threshold:
            logger.debug(
                "Not renewing undersized %s (%d < %.0f)",
                unit.unit_id,
                unit.cost,
                threshold,
            )
            return True
        if not (self.transition.in_transition and self.transition.suppress_renewal):
            return False

        count = state.count(unit.role)
        minimum = self.minimum(unit.role)
        if count < minimum:
            return False
        if unit.role in RENEWAL_PROTECTED_ROLES and count <= minimum:
            return False

        value_threshold = self.transition.future_capacity * self.config.renew_value_ratio
        if unit.cost < value_threshold:
            logger.debug(
                "Not renewing %s ahead of capacity growth (%d < %.0f)",
                unit.unit_id,
                unit.cost,
                value_threshold,
            )
            return True
        return False
