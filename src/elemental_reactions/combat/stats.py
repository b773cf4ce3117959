from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from ..elements import Element
from .entity import WEAPON_SLOTS, Combatant, Slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementalStatTotals:
    """Per-element enhancement and resistance point sums for one entity."""

    enhancement: Mapping[Element, int] = field(default_factory=dict)
    resistance: Mapping[Element, int] = field(default_factory=dict)

    def enhancement_of(self, element: Optional[Element]) -> int:
        if element is None:
            return 0
        return int(self.enhancement.get(element, 0))

    def resistance_of(self, element: Optional[Element]) -> int:
        if element is None:
            return 0
        return int(self.resistance.get(element, 0))

    def aligned_with(self, element: Element) -> bool:
        return self.enhancement_of(element) > 0 or self.resistance_of(element) > 0


class ElementalStatQuery:
    """Aggregates equipment into elemental point totals.

    Enhancement counts the main hand plus armour; resistance counts armour only.
    Each item contributes ``level * per_level`` with no per-item cap.
    """

    def __init__(self, provider) -> None:
        self.provider = provider

    def totals(self, entity: Combatant) -> ElementalStatTotals:
        settings = self.provider.config.stats
        strength = max(1, settings.strength_per_level)
        resist = max(1, settings.resist_per_level)
        enhancement: Dict[Element, int] = {}
        resistance: Dict[Element, int] = {}
        mainhand = entity.item(Slot.MAINHAND)
        enhancing = ([mainhand] if mainhand is not None else []) + list(entity.armor())
        for item in enhancing:
            for element in Element:
                level = item.enhancement_level(element)
                if level:
                    enhancement[element] = enhancement.get(element, 0) + level * strength
        for item in entity.armor():
            for element in Element:
                level = item.resistance_level(element)
                if level:
                    resistance[element] = resistance.get(element, 0) + level * resist
        return ElementalStatTotals(enhancement=enhancement, resistance=resistance)

    def enhancement(self, entity: Combatant, element: Element) -> int:
        return self.totals(entity).enhancement_of(element)

    def resistance(self, entity: Combatant, element: Element) -> int:
        return self.totals(entity).resistance_of(element)


def dominant_element(entity: Combatant) -> Optional[Element]:
    """First element found scanning items in slot order; attack > enhancement > resistance per item."""
    for item in entity.scan_items():
        if item.attack_element is not None:
            return item.attack_element
        for element in Element:
            if item.enhancement_level(element) > 0:
                return element
        for element in Element:
            if item.resistance_level(element) > 0:
                return element
    return None


def attack_element(entity: Combatant, totals: ElementalStatTotals) -> Optional[Element]:
    """The weapon's attack element, but only when the wielder carries enhancement for it."""
    for slot in WEAPON_SLOTS:
        item = entity.item(slot)
        if item is None or item.attack_element is None:
            continue
        if totals.enhancement_of(item.attack_element) > 0:
            return item.attack_element
    return None


def protection_levels(entity: Combatant) -> Dict[str, int]:
    """Summed protection enchantment levels over armour."""
    fire = general = blast = 0
    for item in entity.armor():
        fire += max(0, item.fire_protection)
        general += max(0, item.protection)
        blast += max(0, item.blast_protection)
    return {"fire": fire, "general": general, "blast": blast}
