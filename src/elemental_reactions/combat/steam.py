from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..elements import Element
from ..events import SELF_DRYING, STEAM_TRIGGERED, ObservabilitySink
from .clouds import SteamCloud, clamp_cloud_level
from .entity import Combatant, DamageKind
from .stats import ElementalStatQuery, ElementalStatTotals, dominant_element, protection_levels
from .status import TICKS_PER_SECOND
from .wetness import WetnessSystem

logger = logging.getLogger(__name__)

# Linear enchantment protection model: each protection factor point removes 4%, up to 20 points.
EPF_PER_POINT = 0.04
EPF_CAP = 20
FIRE_PROTECTION_EPF_PER_LEVEL = 2
PROTECTION_EPF_PER_LEVEL = 1
PROTECTION_LEVEL_CAP = 16


class SteamOutcome(str, Enum):
    NONE = "none"
    SELF_DRY = "self_dry"
    HIGH_HEAT = "high_heat"
    LOW_HEAT = "low_heat"
    STRIP = "strip"


@dataclass(frozen=True)
class SteamTrigger:
    outcome: SteamOutcome = SteamOutcome.NONE
    level: int = 0
    layers: int = 0
    damage_multiplier: float = 1.0


NO_TRIGGER = SteamTrigger()


def apply_self_drying_penalty(damage: float, penalty_ratio: float) -> float:
    return damage * (1.0 - penalty_ratio)


def reconstruct_raw_damage(amount: float, epf: int) -> float:
    """Undo a host's linear enchantment reduction to estimate the pre-enchantment damage."""
    if epf <= 0:
        return amount
    factor = 1.0 - min(epf, EPF_CAP) * EPF_PER_POINT
    if factor <= 0:
        return amount
    return amount / factor


class SteamReactionSystem:
    """Steam trigger evaluation, cloud spawning, in-cloud effects and scald defense."""

    def __init__(self, provider, world, stats: ElementalStatQuery, wetness: WetnessSystem, sink: ObservabilitySink) -> None:
        self.provider = provider
        self.world = world
        self.stats = stats
        self.wetness = wetness
        self.sink = sink

    @property
    def settings(self):
        return self.provider.config.steam

    # -- trigger -----------------------------------------------------------

    def _in_cloud(self, entity: Combatant, now: int) -> bool:
        return bool(self.world.clouds.containing(entity, self.settings.cloud_ceiling, now))

    def _can_spawn_at(self, target: Combatant, now: int) -> bool:
        status = self.world.statuses.peek(target.entity_id)
        if status is not None and now < status.steam_cooldown_until:
            return False
        return not self._in_cloud(target, now)

    def evaluate(
        self,
        attacker: Combatant,
        target: Combatant,
        attacker_totals: ElementalStatTotals,
        target_totals: ElementalStatTotals,
        element: Optional[Element],
        now: int,
    ) -> SteamTrigger:
        """Decide which steam reaction, if any, this hit causes. Does not mutate state."""
        s = self.settings
        if not s.enabled or element is None:
            return NO_TRIGGER

        if element.is_hot:
            fire_power = attacker_totals.enhancement_of(Element.FIRE)
            if self.wetness.level(attacker) > 0:
                layers = 1 + fire_power // max(1, s.self_drying_threshold)
                return SteamTrigger(
                    SteamOutcome.SELF_DRY,
                    layers=layers,
                    damage_multiplier=apply_self_drying_penalty(1.0, s.self_drying_penalty),
                )
            target_wetness = self.wetness.level(target)
            if target_wetness <= 0 and dominant_element(target) is not Element.FROST:
                return NO_TRIGGER
            if fire_power >= s.fire_trigger_threshold and self._can_spawn_at(target, now):
                if target_wetness > 0:
                    fuel = target_wetness
                else:
                    cold_power = max(target_totals.enhancement_of(Element.FROST), target_totals.resistance_of(Element.FROST))
                    fuel = 1 + cold_power // max(1, s.condensation_step_frost)
                return SteamTrigger(SteamOutcome.HIGH_HEAT, level=clamp_cloud_level(fuel))
            if target_wetness > 0:
                return SteamTrigger(SteamOutcome.STRIP)
            return NO_TRIGGER

        if element.is_cold:
            if dominant_element(target) is not Element.FIRE:
                return NO_TRIGGER
            if target.dimension in s.low_heat_excluded_dimensions:
                return NO_TRIGGER
            frost_power = attacker_totals.enhancement_of(Element.FROST)
            if frost_power < s.frost_trigger_threshold or not self._can_spawn_at(target, now):
                return NO_TRIGGER
            hot_power = max(target_totals.enhancement_of(Element.FIRE), target_totals.resistance_of(Element.FIRE))
            fuel = 1 + hot_power // max(1, s.condensation_step_fire)
            return SteamTrigger(SteamOutcome.LOW_HEAT, level=clamp_cloud_level(fuel))

        return NO_TRIGGER

    # -- side effects --------------------------------------------------------

    def self_dry(self, attacker: Combatant, layers: int, now: int) -> int:
        """Remove wetness layers from a hot attacker, at most once per tick. Returns layers removed."""
        status = self.world.statuses.get(attacker.entity_id)
        if status.last_self_dry_tick == now:
            return 0
        status.last_self_dry_tick = now
        removed = self.wetness.remove_levels(attacker, max(1, layers))
        self.sink.trace(
            SELF_DRYING,
            lambda: {
                "tick": now,
                "actor": attacker.entity_id,
                "action": "self_drying",
                "target": attacker.entity_id,
                "value": float(removed),
                "tags": ("steam", "wetness"),
                "penalty": self.settings.self_drying_penalty,
            },
        )
        return removed

    def radius_for(self, high_heat: bool, level: int) -> float:
        s = self.settings
        if high_heat:
            return s.high_heat_base_radius + (clamp_cloud_level(level) - 1) * s.high_heat_radius_per_level
        return s.low_heat_radius

    def duration_for(self, high_heat: bool, level: int) -> int:
        s = self.settings
        level = clamp_cloud_level(level)
        if high_heat:
            return s.high_heat_base_duration + level * s.high_heat_duration_per_level
        return s.low_heat_base_duration + level * s.low_heat_duration_per_level

    def spawn(self, trigger: SteamTrigger, attacker: Optional[Combatant], target: Combatant, now: int) -> Optional[SteamCloud]:
        """Spawn the cloud a trigger asked for, re-checking the cooldown so repeated hits spawn once."""
        if trigger.outcome not in (SteamOutcome.HIGH_HEAT, SteamOutcome.LOW_HEAT):
            return None
        if not self._can_spawn_at(target, now):
            return None
        high_heat = trigger.outcome is SteamOutcome.HIGH_HEAT
        status = self.world.statuses.get(target.entity_id)
        status.steam_cooldown_until = now + self.settings.trigger_cooldown_ticks
        if high_heat:
            self.wetness.strip(target)
        cloud = self.world.clouds.spawn(
            position=target.position,
            radius=self.radius_for(high_heat, trigger.level),
            high_heat=high_heat,
            level=trigger.level,
            now=now,
            duration=self.duration_for(high_heat, trigger.level),
            dimension=target.dimension,
            owner_id=attacker.entity_id if attacker is not None else None,
        )
        self.sink.trace(
            STEAM_TRIGGERED,
            lambda: {
                "tick": now,
                "actor": cloud.owner_id or target.entity_id,
                "action": trigger.outcome.value,
                "target": target.entity_id,
                "value": float(cloud.level),
                "tags": ("steam",),
                "radius": cloud.radius,
                "expires_at_tick": cloud.expires_at_tick,
            },
        )
        return cloud

    # -- persistent effects ----------------------------------------------------

    def scald_damage(self, entity: Combatant, level: int) -> float:
        s = self.settings
        damage = s.scald_base_damage * (1.0 + clamp_cloud_level(level) * s.scald_scale_per_level)
        if dominant_element(entity) in (Element.FROST, Element.NATURE):
            damage *= s.scald_weakness_multiplier
        status = self.world.statuses.peek(entity.entity_id)
        if status is not None and status.has_spores:
            damage *= s.scald_spore_multiplier
        return damage

    def is_scald_immune(self, entity: Combatant) -> bool:
        s = self.settings
        if entity.fire_immune or entity.fire_resistant or entity.type_id in s.blacklist:
            return True
        return self.stats.resistance(entity, Element.FIRE) >= s.immunity_threshold

    def scald_defense(self, entity: Combatant, amount: float, host_reduced: bool = False) -> float:
        """Final scalding damage after immunity, protection reductions and the weakness floor.

        ``host_reduced`` marks an amount that already went through the host's linear
        enchantment reduction; it is scaled back up before the reductions apply.
        """
        if self.is_scald_immune(entity):
            return 0.0
        s = self.settings
        prot = protection_levels(entity)
        raw = amount
        if host_reduced:
            epf = prot["fire"] * FIRE_PROTECTION_EPF_PER_LEVEL + prot["general"] * PROTECTION_EPF_PER_LEVEL
            raw = reconstruct_raw_damage(amount, epf)
        fire_reduction = min(prot["fire"] * s.fire_protection_cap / PROTECTION_LEVEL_CAP, s.fire_protection_cap)
        general_reduction = min(prot["general"] * s.general_protection_cap / PROTECTION_LEVEL_CAP, s.general_protection_cap)
        reduction = min(1.0, fire_reduction + general_reduction)
        final = raw * (1.0 - reduction)
        if dominant_element(entity) in (Element.FROST, Element.NATURE):
            final = max(final, raw * s.damage_floor_ratio)
        return max(0.0, final)

    def tick(self, entity: Combatant, now: int) -> None:
        s = self.settings
        interval = max(1, s.effect_interval_ticks)
        if now % interval != 0:
            return
        clouds = self.world.clouds.containing(entity, s.cloud_ceiling, now)
        status = self.world.statuses.peek(entity.entity_id)
        if not clouds:
            if status is not None:
                status.condensation_ticks = 0
            return
        status = self.world.statuses.get(entity.entity_id)
        hot = [c for c in clouds if c.high_heat]
        if hot:
            status.condensation_ticks = 0
            if now >= status.next_scald_tick:
                status.next_scald_tick = now + TICKS_PER_SECOND
                level = max(c.level for c in hot)
                damage = self.scald_defense(entity, self.scald_damage(entity, level))
                if damage > 0:
                    entity.hurt(damage, DamageKind.SCALD)
                self.wetness.strip(entity)
            return
        status.condensation_ticks += interval
        if status.condensation_ticks >= max(interval, s.condensation_delay_ticks):
            status.condensation_ticks = 0
            self.wetness.add_levels(entity, 1)
