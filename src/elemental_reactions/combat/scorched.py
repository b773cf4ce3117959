from __future__ import annotations

import logging
import random
from typing import Optional

from ..elements import Element
from ..events import SCORCHED_APPLIED, THERMAL_SHOCK, ObservabilitySink
from .entity import Combatant, DamageKind
from .stats import ElementalStatQuery, ElementalStatTotals, dominant_element, protection_levels
from .status import TICKS_PER_SECOND

logger = logging.getLogger(__name__)

# Protection levels beyond this count no further toward reduction.
PROTECTION_LEVEL_CAP = 16
# Thermal shock bursts at or below this amount are dropped.
THERMAL_SHOCK_MINIMUM = 0.5


class ScorchedSystem:
    """Burn status with its own damage channel, independent of wetness but extinguished by submersion."""

    def __init__(self, provider, world, stats: ElementalStatQuery, sink: ObservabilitySink, rng: random.Random) -> None:
        self.provider = provider
        self.world = world
        self.stats = stats
        self.sink = sink
        self.rng = rng

    @property
    def settings(self):
        return self.provider.config.scorched

    def is_scorched(self, entity: Combatant) -> bool:
        status = self.world.statuses.peek(entity.entity_id)
        return status is not None and status.scorched

    def apply(self, entity: Combatant, strength: int, duration_ticks: int, now: int) -> bool:
        """Start the status. No-op for blacklisted targets or while the cooldown runs."""
        s = self.settings
        if entity.type_id in s.blacklist:
            return False
        status = self.world.statuses.get(entity.entity_id)
        if now < status.scorched_cooldown_until:
            logger.debug("%s scorched cooldown active until %d", entity.entity_id, status.scorched_cooldown_until)
            return False
        duration_ticks = max(0, int(duration_ticks))
        status.scorched_ticks_remaining = duration_ticks
        status.scorched_strength = max(0, int(strength))
        status.scorched_cooldown_until = now + duration_ticks + s.cooldown_ticks
        status.wetness_display_ticks = 0
        self.sink.trace(
            SCORCHED_APPLIED,
            lambda: {
                "tick": now,
                "actor": entity.entity_id,
                "action": "scorched",
                "target": entity.entity_id,
                "value": float(status.scorched_strength),
                "tags": ("status", "fire"),
                "duration": duration_ticks,
            },
        )
        return True

    def damage_per_second(self, entity: Combatant, strength: int) -> float:
        s = self.settings
        if self.stats.resistance(entity, Element.FIRE) >= s.immunity_threshold:
            return 0.0
        damage = s.base_damage + (max(0, strength) / max(1, s.scaling_step)) * 0.5
        if entity.fire_immune:
            damage *= s.fire_immune_modifier
        if dominant_element(entity) is Element.NATURE:
            damage *= s.nature_multiplier
        prot = protection_levels(entity)
        fire_ratio = min(prot["fire"], PROTECTION_LEVEL_CAP) / PROTECTION_LEVEL_CAP
        general_ratio = min(prot["general"], PROTECTION_LEVEL_CAP) / PROTECTION_LEVEL_CAP
        damage *= 1.0 - fire_ratio * s.fire_protection_reduction
        damage *= 1.0 - general_ratio * s.general_protection_reduction
        return max(0.0, damage)

    def tick(self, entity: Combatant, now: int) -> None:
        status = self.world.statuses.peek(entity.entity_id)
        if status is None:
            return
        if status.scorched_ticks_remaining <= 0:
            if status.scorched_strength:
                status.clear_scorched()
            return

        env = entity.environment
        if env.in_water and env.eyes_in_water:
            self._thermal_shock(entity, status, now)
            return

        status.scorched_ticks_remaining -= 1
        if status.scorched_ticks_remaining % TICKS_PER_SECOND == 0:
            damage = self.damage_per_second(entity, status.scorched_strength)
            if damage > 0:
                entity.hurt(damage, DamageKind.SCORCHED)
        if status.scorched_ticks_remaining <= 0:
            status.clear_scorched()

    def _thermal_shock(self, entity: Combatant, status, now: int) -> None:
        remaining_seconds = status.scorched_ticks_remaining / TICKS_PER_SECOND
        burst = remaining_seconds * self.damage_per_second(entity, status.scorched_strength) * 0.5
        status.clear_scorched()
        if burst <= THERMAL_SHOCK_MINIMUM:
            return
        dealt = entity.hurt(burst, DamageKind.THERMAL_SHOCK)
        logger.debug("%s thermal shock for %.2f", entity.entity_id, dealt)
        self.sink.trace(
            THERMAL_SHOCK,
            lambda: {
                "tick": now,
                "actor": entity.entity_id,
                "action": "thermal_shock",
                "target": entity.entity_id,
                "value": dealt,
                "tags": ("damage", "fire"),
            },
        )

    def suppresses(self, entity: Combatant, kind: DamageKind) -> bool:
        """Ordinary fire damage is cancelled while scorched; the scorched channel itself is not."""
        return kind is DamageKind.FIRE and self.is_scorched(entity)

    def trigger_chance(self, fire_power: int) -> float:
        s = self.settings
        return min(1.0, s.base_chance + fire_power * s.chance_per_point)

    def roll_trigger(
        self,
        attacker: Combatant,
        target: Combatant,
        attacker_totals: ElementalStatTotals,
        target_totals: ElementalStatTotals,
        element: Optional[Element],
    ) -> Optional[int]:
        """Decide whether a hot hit ignites the target. Returns the scorched strength, or None."""
        if element is not Element.FIRE:
            return None
        power = attacker_totals.enhancement_of(Element.FIRE)
        if power < self.settings.trigger_threshold:
            return None
        attacker_status = self.world.statuses.peek(attacker.entity_id)
        target_status = self.world.statuses.peek(target.entity_id)
        if attacker_status is not None and attacker_status.wet:
            return None
        if target_status is not None and (target_status.wet or target_status.scorched):
            return None
        if target_totals.aligned_with(Element.FROST):
            return None
        if self.rng.random() >= self.trigger_chance(power):
            return None
        return power
