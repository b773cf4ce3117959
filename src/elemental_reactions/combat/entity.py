from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from ..elements import Element

logger = logging.getLogger(__name__)

Position = Tuple[float, float, float]


class Slot(str, Enum):
    MAINHAND = "mainhand"
    OFFHAND = "offhand"
    FEET = "feet"
    LEGS = "legs"
    CHEST = "chest"
    HEAD = "head"


# Scan order for element queries: weapons first, then armour from the feet up.
SCAN_ORDER = (Slot.MAINHAND, Slot.OFFHAND, Slot.FEET, Slot.LEGS, Slot.CHEST, Slot.HEAD)
WEAPON_SLOTS = (Slot.MAINHAND, Slot.OFFHAND)
ARMOR_SLOTS = (Slot.FEET, Slot.LEGS, Slot.CHEST, Slot.HEAD)


class DamageKind(str, Enum):
    PHYSICAL = "physical"
    FIRE = "fire"
    LIGHTNING = "lightning"
    FREEZE = "freeze"
    EXPLOSION = "explosion"
    SCORCHED = "scorched"
    SCALD = "scald"
    POISON = "poison"
    THERMAL_SHOCK = "thermal_shock"

    @property
    def is_fire(self) -> bool:
        return self in (DamageKind.FIRE, DamageKind.SCORCHED, DamageKind.SCALD)


@dataclass
class EquippedItem:
    """An equipped item's elemental enchantments.

    Levels are raw enchantment levels; point values come from the stat query.
    """

    item_id: str = ""
    attack_element: Optional[Element] = None
    enhancement: Dict[Element, int] = field(default_factory=dict)
    resistance: Dict[Element, int] = field(default_factory=dict)
    fire_protection: int = 0
    protection: int = 0
    blast_protection: int = 0

    def enhancement_level(self, element: Element) -> int:
        return max(0, int(self.enhancement.get(element, 0)))

    def resistance_level(self, element: Element) -> int:
        return max(0, int(self.resistance.get(element, 0)))


@dataclass
class Environment:
    """Host-supplied snapshot of an entity's surroundings, refreshed before each tick."""

    in_water: bool = False
    fluid_height: float = 0.0
    eyes_in_water: bool = False
    in_lava: bool = False
    near_heat_source: bool = False
    standing_in_fire: bool = False
    raining: bool = False
    snowing: bool = False

    @property
    def in_precipitation(self) -> bool:
        return self.raining or self.snowing


@dataclass
class Combatant:
    entity_id: str
    type_id: str = "generic"
    position: Position = (0.0, 0.0, 0.0)
    height: float = 1.8
    width: float = 0.6
    max_health: float = 20.0
    health: float = 20.0
    fire_immune: bool = False
    fire_resistant: bool = False
    water_native: bool = False
    hostile: bool = False
    dimension: str = "overworld"
    equipment: Dict[Slot, EquippedItem] = field(default_factory=dict)
    environment: Environment = field(default_factory=Environment)
    damage_log: List[Tuple[DamageKind, float]] = field(default_factory=list, repr=False)

    @property
    def alive(self) -> bool:
        return self.health > 0

    def item(self, slot: Slot) -> Optional[EquippedItem]:
        return self.equipment.get(slot)

    def equip(self, slot: Slot, item: EquippedItem) -> None:
        self.equipment[slot] = item

    def scan_items(self) -> Iterator[EquippedItem]:
        for slot in SCAN_ORDER:
            item = self.equipment.get(slot)
            if item is not None:
                yield item

    def armor(self) -> Iterator[EquippedItem]:
        for slot in ARMOR_SLOTS:
            item = self.equipment.get(slot)
            if item is not None:
                yield item

    def hurt(self, amount: float, kind: DamageKind = DamageKind.PHYSICAL) -> float:
        """Apply damage and return how much health was actually lost."""
        amount = max(0.0, float(amount))
        if amount <= 0 or not self.alive:
            return 0.0
        old = self.health
        self.health = max(0.0, self.health - amount)
        dealt = old - self.health
        self.damage_log.append((kind, dealt))
        logger.debug("%s took %.2f %s damage (hp %.2f -> %.2f)", self.entity_id, dealt, kind.value, old, self.health)
        return dealt

    def heal(self, amount: float) -> float:
        amount = max(0.0, float(amount))
        if amount <= 0 or not self.alive:
            return 0.0
        old = self.health
        self.health = min(self.max_health, self.health + amount)
        return self.health - old

    def horizontal_distance_sq(self, x: float, z: float) -> float:
        dx = self.position[0] - x
        dz = self.position[2] - z
        return dx * dx + dz * dz

    def distance_to(self, other: "Combatant") -> float:
        return math.dist(self.position, other.position)
