from __future__ import annotations

import logging
import math
from typing import Optional

from ..elements import Element
from .damage import wetness_multiplier
from .entity import Combatant, DamageKind
from .status import TICKS_PER_SECOND, CombatantStatus

logger = logging.getLogger(__name__)

_KIND_ELEMENT = {
    DamageKind.FIRE: Element.FIRE,
    DamageKind.LIGHTNING: Element.THUNDER,
    DamageKind.FREEZE: Element.FROST,
}


class WetnessSystem:
    """Wetness accumulation and decay, sampled once per interval per entity.

    Transition order on each sample: immunity, heat drying, standing in fire,
    liquid, precipitation, natural decay.
    """

    def __init__(self, provider, world) -> None:
        self.provider = provider
        self.world = world

    @property
    def settings(self):
        return self.provider.config.wetness

    def is_immune(self, entity: Combatant) -> bool:
        s = self.settings
        if s.water_native_immune and entity.water_native:
            return True
        if entity.dimension in s.immune_dimensions:
            return True
        return entity.type_id in s.blacklist

    def level(self, entity: Combatant) -> int:
        status = self.world.statuses.peek(entity.entity_id)
        return status.wetness_level if status is not None else 0

    def tick(self, entity: Combatant, now: int) -> None:
        interval = max(1, self.settings.sample_interval_ticks)
        if now % interval == 0:
            self.sample(entity)

    def sample(self, entity: Combatant) -> None:
        s = self.settings
        interval = max(1, s.sample_interval_ticks)
        env = entity.environment

        if self.is_immune(entity):
            status = self.world.statuses.peek(entity.entity_id)
            if status is not None and (status.wet or status.wetness_rain_timer or status.wetness_decay_timer):
                status.clear_wetness()
                logger.debug("%s is wetness-immune; cleared", entity.entity_id)
            return

        status = self.world.statuses.get(entity.entity_id)

        if env.in_lava or env.near_heat_source:
            if status.wet:
                logger.debug("%s dried by heat", entity.entity_id)
            status.clear_wetness()
            return

        if env.standing_in_fire and status.wet:
            status.wetness_fire_timer += interval
            if status.wetness_fire_timer >= s.fire_drying_seconds * TICKS_PER_SECOND:
                logger.debug("%s dried by standing in fire", entity.entity_id)
                status.clear_wetness()
                return
        else:
            status.wetness_fire_timer = 0

        if env.in_water:
            target = s.max_level
            if env.fluid_height < entity.height:
                target = max(1, int(math.floor(s.max_level * s.shallow_water_ratio)))
            if status.wetness_level < target:
                status.wetness_level = target
            status.wetness_rain_timer = 0
            status.wetness_decay_timer = 0
            self._sync_display(status, paused=True)
            return

        if env.in_precipitation:
            status.wetness_rain_timer += interval
            if status.wetness_rain_timer >= s.rain_gain_interval_seconds * TICKS_PER_SECOND:
                status.wetness_level = min(s.max_level, status.wetness_level + 1)
                status.wetness_rain_timer = 0
            status.wetness_decay_timer = 0
            self._sync_display(status, paused=True)
            return

        status.wetness_rain_timer = 0
        if status.wetness_level <= 0:
            status.wetness_decay_timer = 0
            status.wetness_display_ticks = 0
            return
        status.wetness_decay_timer += interval
        if status.wetness_decay_timer >= status.wetness_level * s.decay_base_seconds * TICKS_PER_SECOND:
            status.wetness_level -= 1
            status.wetness_decay_timer = 0
            logger.debug("%s wetness decayed to %d", entity.entity_id, status.wetness_level)
        self._sync_display(status, paused=False)

    def _sync_display(self, status: CombatantStatus, paused: bool) -> None:
        if status.wetness_level <= 0 or status.scorched:
            status.wetness_display_ticks = 0
            return
        full = status.wetness_level * self.settings.decay_base_seconds * TICKS_PER_SECOND
        status.wetness_display_ticks = full if paused else max(0, full - status.wetness_decay_timer)

    def add_levels(self, entity: Combatant, levels: int) -> int:
        """Add wetness levels (capped) and restart the decay timer. Returns the new level."""
        if levels <= 0 or self.is_immune(entity):
            return self.level(entity)
        status = self.world.statuses.get(entity.entity_id)
        status.wetness_level = min(self.settings.max_level, status.wetness_level + levels)
        status.wetness_decay_timer = 0
        self._sync_display(status, paused=False)
        return status.wetness_level

    def splash(self, entity: Combatant) -> int:
        """A splash impact: instant fixed increment, independent of sampling."""
        return self.add_levels(entity, self.settings.splash_add_level)

    def remove_levels(self, entity: Combatant, levels: int) -> int:
        """Remove up to ``levels`` layers. Returns how many were removed."""
        status = self.world.statuses.peek(entity.entity_id)
        if status is None or levels <= 0 or not status.wet:
            return 0
        removed = min(levels, status.wetness_level)
        status.wetness_level -= removed
        status.wetness_decay_timer = 0
        if status.wetness_level <= 0:
            status.clear_wetness()
        else:
            self._sync_display(status, paused=False)
        return removed

    def strip(self, entity: Combatant) -> int:
        status = self.world.statuses.peek(entity.entity_id)
        if status is None or not status.wet:
            return 0
        removed = status.wetness_level
        status.clear_wetness()
        return removed

    def incoming_multiplier(self, entity: Combatant, kind: DamageKind) -> float:
        """Multiplier for damage that arrives without an elemental attacker (fire, lightning, freezing)."""
        element: Optional[Element] = _KIND_ELEMENT.get(kind)
        return wetness_multiplier(element, self.level(entity), self.settings)
