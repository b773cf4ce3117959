from __future__ import annotations

import logging
import math
import random
from typing import List, Optional

from ..elements import Element
from ..events import SPORE_REACTION, ObservabilitySink
from .entity import Combatant, DamageKind
from .scorched import ScorchedSystem
from .stats import ElementalStatQuery, ElementalStatTotals, protection_levels
from .status import TICKS_PER_SECOND
from .wetness import WetnessSystem

logger = logging.getLogger(__name__)

PROTECTION_LEVEL_CAP = 16
# Stack count at which spores turn contagious and fire turns them into a full blast.
CRITICAL_STACKS = 3


class SporeSystem:
    """Flammable spore stacks and the nature/fire reactions built on them.

    Stacks are a status with a duration of ``stacks * duration_per_stack``. While
    active they tick poison damage, make the host more vulnerable to fire and
    sturdier against physical blows, and spread once they reach three stacks.
    """

    def __init__(
        self,
        provider,
        world,
        stats: ElementalStatQuery,
        wetness: WetnessSystem,
        scorched: ScorchedSystem,
        sink: ObservabilitySink,
        rng: random.Random,
    ) -> None:
        self.provider = provider
        self.world = world
        self.stats = stats
        self.wetness = wetness
        self.scorched = scorched
        self.sink = sink
        self.rng = rng

    @property
    def settings(self):
        return self.provider.config.spores

    def stacks(self, entity: Combatant) -> int:
        status = self.world.statuses.peek(entity.entity_id)
        if status is None or not status.has_spores:
            return 0
        return status.spore_stacks

    def _trace(self, now: int, action: str, actor: str, target: Optional[str], value: float, **details) -> None:
        self.sink.trace(
            SPORE_REACTION,
            lambda: dict(
                tick=now,
                actor=actor,
                action=action,
                target=target,
                value=float(value),
                tags=("spores", "nature"),
                **details,
            ),
        )

    def stack(self, target: Combatant, layers: int) -> int:
        """Add spore layers and refresh the duration. Returns the new stack count.

        Thunder-aligned hosts gain layers faster; fire-aligned hosts keep them for a shorter time.
        A host already at the cap only has its duration refreshed.
        """
        s = self.settings
        status = self.world.statuses.get(target.entity_id)
        current = status.spore_stacks if status.has_spores else 0
        if current >= s.max_stacks:
            current = s.max_stacks
            layers = 0
        totals = self.stats.totals(target)
        if totals.aligned_with(Element.THUNDER):
            layers = int(layers * s.thunder_multiplier)
        new_stacks = min(s.max_stacks, current + max(0, layers))
        if new_stacks <= 0:
            return 0
        duration = new_stacks * s.duration_per_stack_seconds * TICKS_PER_SECOND
        if totals.aligned_with(Element.FIRE):
            duration = int(duration * s.fire_duration_reduction)
        status.spore_stacks = new_stacks
        status.spore_ticks_remaining = duration
        logger.debug("%s spores -> %d stacks (%d ticks)", target.entity_id, new_stacks, duration)
        return new_stacks

    def incoming_multiplier(self, entity: Combatant, kind: DamageKind) -> float:
        stacks = self.stacks(entity)
        if stacks <= 0:
            return 1.0
        s = self.settings
        if kind.is_fire:
            return 1.0 + stacks * s.fire_vulnerability_per_stack
        if kind is DamageKind.PHYSICAL:
            return 1.0 - min(s.physical_resist_cap, stacks * s.physical_resist_per_stack)
        return 1.0

    def tick(self, entity: Combatant, now: int) -> None:
        status = self.world.statuses.peek(entity.entity_id)
        if status is None or status.spore_stacks <= 0:
            return
        if status.spore_ticks_remaining <= 0:
            status.clear_spores()
            return
        s = self.settings
        status.spore_ticks_remaining -= 1
        if status.spore_ticks_remaining % TICKS_PER_SECOND == 0 and s.poison_damage > 0:
            entity.hurt(s.poison_damage * status.spore_stacks, DamageKind.POISON)
        self._grow_in_condensation(entity, status, now)
        if now % s.contagion_check_interval == 0 and status.spore_stacks >= CRITICAL_STACKS:
            self.contagion(entity, now)
        if status.spore_ticks_remaining <= 0:
            status.clear_spores()

    def _grow_in_condensation(self, entity: Combatant, status, now: int) -> None:
        steam = self.provider.config.steam
        inside_low_heat = any(
            not c.high_heat for c in self.world.clouds.containing(entity, steam.cloud_ceiling, now)
        )
        if not inside_low_heat:
            status.spore_growth_ticks = 0
            return
        status.spore_growth_ticks += 1
        if status.spore_growth_ticks >= steam.spore_growth_ticks:
            status.spore_growth_ticks = 0
            self.stack(entity, 1)

    # -- reactions -----------------------------------------------------------

    def parasite_chance(self, attacker: Combatant, nature_power: int) -> float:
        s = self.settings
        if nature_power < s.parasite_base_threshold:
            return 0.0
        step = max(1, s.parasite_scaling_step)
        if nature_power < step:
            chance = s.parasite_base_chance
        else:
            steps = (nature_power - step) // step
            chance = s.parasite_base_chance + (steps + 1) * s.parasite_scaling_chance
        chance += self.wetness.level(attacker) * s.parasite_wetness_bonus
        return chance

    def roll_parasite(self, attacker: Combatant, nature_power: int) -> bool:
        chance = self.parasite_chance(attacker, nature_power)
        return chance > 0 and self.rng.random() < chance

    def can_drain(self, attacker: Combatant, target: Combatant, nature_power: int, now: int) -> bool:
        status = self.world.statuses.peek(attacker.entity_id)
        if status is not None and now < status.drain_cooldown_until:
            return False
        return self.wetness.level(target) > 0 and nature_power >= self.settings.siphon_threshold

    def drain(self, attacker: Combatant, target: Combatant, nature_power: int, now: int) -> int:
        """Siphon target wetness into the attacker, healing it and seeding spores on the target."""
        s = self.settings
        if not self.can_drain(attacker, target, nature_power, now):
            return 0
        capacity = max(1, int(math.floor(nature_power / max(1, s.drain_power_step))))
        drained = self.wetness.remove_levels(target, capacity)
        if drained <= 0:
            return 0
        self.wetness.add_levels(attacker, drained)
        self.stack(target, drained)
        healed = attacker.heal(drained * s.siphon_heal)
        self.world.statuses.get(attacker.entity_id).drain_cooldown_until = now + s.drain_cooldown_ticks
        self._trace(now, "parasitic_drain", attacker.entity_id, target.entity_id, drained, healed=healed)
        return drained

    def blast_mitigation(self, entity: Combatant) -> float:
        s = self.settings
        prot = protection_levels(entity)
        blast = min(prot["blast"] * s.blast_protection_cap / PROTECTION_LEVEL_CAP, s.blast_protection_cap)
        general = min(prot["general"] * s.blast_general_protection_cap / PROTECTION_LEVEL_CAP, s.blast_general_protection_cap)
        return min(1.0, blast + general)

    def toxic_blast(self, attacker: Combatant, target: Combatant, fire_power: int, now: int) -> List[str]:
        """Consume the target's spores. Returns the ids of entities damaged by a full blast."""
        s = self.settings
        stacks = self.stacks(target)
        if stacks <= 0:
            return []
        self.world.statuses.get(target.entity_id).clear_spores()
        if stacks < CRITICAL_STACKS:
            duration = int(s.blast_scorch_base_seconds * TICKS_PER_SECOND)
            self.scorched.apply(target, int(fire_power * s.blast_weak_ignite_multiplier), duration, now)
            self._trace(now, "weak_ignite", attacker.entity_id, target.entity_id, stacks)
            return []

        extra = stacks - CRITICAL_STACKS
        base_damage = s.blast_base_damage + extra * s.blast_growth_damage
        radius = s.blast_base_range + extra * s.blast_growth_range
        duration = int((s.blast_base_scorch_seconds + extra * s.blast_growth_scorch_seconds) * TICKS_PER_SECOND)
        victims = [target] + self.world.nearby(target, radius)
        hit: List[str] = []
        for entity in victims:
            if entity is attacker:
                continue
            entity.hurt(base_damage * (1.0 - self.blast_mitigation(entity)), DamageKind.EXPLOSION)
            self.scorched.apply(entity, fire_power, duration, now)
            hit.append(entity.entity_id)
        self._trace(now, "toxic_blast", attacker.entity_id, target.entity_id, stacks, radius=radius, affected=len(hit))
        return hit

    def can_wildfire(self, victim: Combatant, victim_totals: ElementalStatTotals, now: int) -> bool:
        status = self.world.statuses.peek(victim.entity_id)
        if status is not None and now < status.wildfire_cooldown_until:
            return False
        return victim_totals.enhancement_of(Element.NATURE) >= self.settings.wildfire_trigger_threshold

    def wildfire(self, victim: Combatant, attacker: Optional[Combatant], now: int) -> int:
        """Shed the victim's burn and seed spores on hostile neighbours. Returns neighbours affected."""
        s = self.settings
        status = self.world.statuses.get(victim.entity_id)
        if now < status.wildfire_cooldown_until:
            return 0
        status.clear_scorched()
        affected = 0
        for enemy in self.world.nearby(victim, s.wildfire_radius):
            if enemy is not attacker and not enemy.hostile:
                continue
            self.stack(enemy, s.wildfire_spore_amount)
            affected += 1
        status.wildfire_cooldown_until = now + s.wildfire_cooldown_ticks
        self._trace(now, "wildfire", victim.entity_id, attacker.entity_id if attacker else None, affected)
        return affected

    def contagion(self, source: Combatant, now: int) -> int:
        """Spread a share of the source's stacks to neighbours once per infection chain."""
        s = self.settings
        status = self.world.statuses.get(source.entity_id)
        if status.spread or status.infected:
            return 0
        status.spread = True
        stacks = status.spore_stacks
        radius = s.contagion_base_radius + (stacks - CRITICAL_STACKS) * s.contagion_radius_per_stack
        transfer = max(1, int(math.floor(stacks * s.contagion_intensity_ratio)))
        count = 0
        for target in self.world.nearby(source, radius):
            self.world.statuses.get(target.entity_id).infected = True
            wetness = self.wetness.level(target)
            bonus = 0
            if wetness > s.contagion_wetness_threshold:
                bonus = int(math.floor((wetness - s.contagion_wetness_threshold) * s.contagion_wetness_conversion_ratio))
                bonus = min(bonus, s.contagion_wetness_max_bonus)
            if bonus > 0 and s.contagion_consumes_wetness:
                self.wetness.strip(target)
            self.stack(target, transfer + bonus)
            count += 1
        self._trace(now, "contagion", source.entity_id, None, count, radius=radius)
        return count
