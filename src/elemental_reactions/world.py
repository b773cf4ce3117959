from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from .combat.clouds import CloudRegistry
from .combat.entity import Combatant
from .combat.status import StatusStore

logger = logging.getLogger(__name__)


class World:
    """Registry of live combatants and steam clouds plus the absolute tick counter."""

    def __init__(self, statuses: Optional[StatusStore] = None) -> None:
        self.tick = 0
        self.statuses = statuses if statuses is not None else StatusStore()
        self.clouds = CloudRegistry()
        self._entities: Dict[str, Combatant] = {}

    def add(self, entity: Combatant) -> Combatant:
        self._entities[entity.entity_id] = entity
        logger.debug("Added entity %s (%s)", entity.entity_id, entity.type_id)
        return entity

    def remove(self, entity_id: str) -> None:
        """Remove an entity; its status is destroyed with it."""
        if self._entities.pop(entity_id, None) is not None:
            self.statuses.discard(entity_id)
            logger.debug("Removed entity %s", entity_id)

    def get(self, entity_id: Optional[str]) -> Optional[Combatant]:
        if entity_id is None:
            return None
        return self._entities.get(entity_id)

    def living(self) -> List[Combatant]:
        return [e for e in self._entities.values() if e.alive]

    def nearby(self, center: Combatant, radius: float) -> List[Combatant]:
        """Living entities whose box overlaps ``center``'s box inflated by ``radius``, excluding center."""
        cx, cy, cz = center.position
        found: List[Combatant] = []
        for other in self._entities.values():
            if other is center or not other.alive or other.dimension != center.dimension:
                continue
            ox, oy, oz = other.position
            half = (center.width + other.width) / 2.0 + radius
            if abs(ox - cx) > half or abs(oz - cz) > half:
                continue
            if oy > cy + center.height + radius or oy + other.height < cy - radius:
                continue
            found.append(other)
        return found

    def __iter__(self) -> Iterator[Combatant]:
        return iter(list(self._entities.values()))

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)
