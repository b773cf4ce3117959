from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

TICKS_PER_SECOND = 20


@dataclass
class CombatantStatus:
    """Per-entity reaction state. Cooldowns are absolute tick numbers; timers count ticks."""

    wetness_level: int = 0
    wetness_rain_timer: int = 0
    wetness_decay_timer: int = 0
    wetness_fire_timer: int = 0
    wetness_display_ticks: int = 0

    scorched_ticks_remaining: int = 0
    scorched_strength: int = 0
    scorched_cooldown_until: int = 0

    steam_cooldown_until: int = 0
    condensation_ticks: int = 0
    next_scald_tick: int = 0
    last_self_dry_tick: int = -1

    spore_stacks: int = 0
    spore_ticks_remaining: int = 0
    spore_growth_ticks: int = 0
    spread: bool = False
    infected: bool = False
    drain_cooldown_until: int = 0
    wildfire_cooldown_until: int = 0

    @property
    def wet(self) -> bool:
        return self.wetness_level > 0

    @property
    def scorched(self) -> bool:
        return self.scorched_ticks_remaining > 0

    @property
    def has_spores(self) -> bool:
        return self.spore_stacks > 0 and self.spore_ticks_remaining > 0

    def clear_wetness(self) -> None:
        self.wetness_level = 0
        self.wetness_rain_timer = 0
        self.wetness_decay_timer = 0
        self.wetness_fire_timer = 0
        self.wetness_display_ticks = 0

    def clear_scorched(self) -> None:
        self.scorched_ticks_remaining = 0
        self.scorched_strength = 0

    def clear_spores(self) -> None:
        self.spore_stacks = 0
        self.spore_ticks_remaining = 0
        self.spore_growth_ticks = 0


class StatusStore:
    """Owns every entity's CombatantStatus, keyed by entity id."""

    def __init__(self) -> None:
        self._statuses: Dict[str, CombatantStatus] = {}

    def get(self, entity_id: str) -> CombatantStatus:
        """Return the entity's status, creating it on first access."""
        status = self._statuses.get(entity_id)
        if status is None:
            status = CombatantStatus()
            self._statuses[entity_id] = status
        return status

    def peek(self, entity_id: str) -> Optional[CombatantStatus]:
        return self._statuses.get(entity_id)

    def discard(self, entity_id: str) -> None:
        if self._statuses.pop(entity_id, None) is not None:
            logger.debug("Discarded status for %s", entity_id)

    def clear(self) -> None:
        self._statuses.clear()

    def items(self) -> Iterator[Tuple[str, CombatantStatus]]:
        return iter(list(self._statuses.items()))

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._statuses

    def __len__(self) -> int:
        return len(self._statuses)
