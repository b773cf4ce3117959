from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .entity import Combatant, Position

logger = logging.getLogger(__name__)

MIN_CLOUD_LEVEL = 1
MAX_CLOUD_LEVEL = 5
# Entities whose feet sit slightly below the cloud origin still count as inside.
CLOUD_FLOOR_TOLERANCE = 0.5


def clamp_cloud_level(fuel: int) -> int:
    return max(MIN_CLOUD_LEVEL, min(MAX_CLOUD_LEVEL, int(fuel)))


@dataclass(frozen=True)
class SteamCloud:
    """Ephemeral area effect. Written once at spawn, read-only afterwards."""

    cloud_id: int
    position: Position
    radius: float
    high_heat: bool
    level: int
    spawn_tick: int
    expires_at_tick: int
    dimension: str = "overworld"
    owner_id: Optional[str] = None

    def duration_remaining(self, now: int) -> int:
        return max(0, self.expires_at_tick - now)

    def expired(self, now: int) -> bool:
        return now >= self.expires_at_tick

    def contains(self, entity: Combatant, ceiling: float) -> bool:
        """Cylinder test widened by half the entity's width."""
        if entity.dimension != self.dimension:
            return False
        reach = self.radius + entity.width / 2.0
        if entity.horizontal_distance_sq(self.position[0], self.position[2]) > reach * reach:
            return False
        dy = entity.position[1] - self.position[1]
        return -CLOUD_FLOOR_TOLERANCE <= dy <= ceiling


class CloudRegistry:
    """Clouds alive in the world. Entities query proximity; clouds never track membership."""

    def __init__(self) -> None:
        self._clouds: Dict[int, SteamCloud] = {}
        self._ids = itertools.count(1)

    def spawn(
        self,
        *,
        position: Position,
        radius: float,
        high_heat: bool,
        level: int,
        now: int,
        duration: int,
        dimension: str = "overworld",
        owner_id: Optional[str] = None,
    ) -> SteamCloud:
        cloud = SteamCloud(
            cloud_id=next(self._ids),
            position=position,
            radius=float(radius),
            high_heat=high_heat,
            level=clamp_cloud_level(level),
            spawn_tick=now,
            expires_at_tick=now + max(0, int(duration)),
            dimension=dimension,
            owner_id=owner_id,
        )
        self._clouds[cloud.cloud_id] = cloud
        logger.info(
            "Spawned %s steam cloud #%d level=%d radius=%.2f at %s (expires tick %d)",
            "high-heat" if high_heat else "low-heat",
            cloud.cloud_id,
            cloud.level,
            cloud.radius,
            position,
            cloud.expires_at_tick,
        )
        return cloud

    def expire(self, now: int) -> List[SteamCloud]:
        expired = [c for c in self._clouds.values() if c.expired(now)]
        for cloud in expired:
            del self._clouds[cloud.cloud_id]
            logger.debug("Steam cloud #%d expired at tick %d", cloud.cloud_id, now)
        return expired

    def active(self) -> List[SteamCloud]:
        return list(self._clouds.values())

    def containing(self, entity: Combatant, ceiling: float, now: int) -> List[SteamCloud]:
        return [c for c in self._clouds.values() if not c.expired(now) and c.contains(entity, ceiling)]

    def clear(self) -> None:
        self._clouds.clear()

    def __iter__(self) -> Iterator[SteamCloud]:
        return iter(list(self._clouds.values()))

    def __len__(self) -> int:
        return len(self._clouds)
