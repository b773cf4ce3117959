from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from ..elements import Element, Restraint, RestraintTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DamageInputs:
    physical: float
    enhancement: int
    resistance: int
    wetness_level: int
    attack_element: Optional[Element]
    target_element: Optional[Element]


@dataclass(frozen=True)
class DamageBreakdown:
    """Every intermediate value of one pipeline evaluation, kept for tracing and tests."""

    physical: float
    pre_resist: float
    reduction: float
    elemental_base: float
    wetness_multiplier: float
    restraint: Restraint
    restraint_multiplier: float
    final_elemental: float
    floored: bool
    total: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data["restraint"] = self.restraint.value
        return data


def wetness_multiplier(element: Optional[Element], level: int, wetness) -> float:
    """Multiplier wetness applies to damage of ``element``.

    Hot damage loses ``level * fire_reduction_per_level`` (capped); cold and charged
    damage gains ``level * resist_bonus_per_level`` (capped). Anything else is 1.0.
    """
    level = max(0, int(level))
    if element is None or level == 0:
        return 1.0
    if element.is_hot:
        return 1.0 - min(wetness.fire_reduction_cap, level * wetness.fire_reduction_per_level)
    if element.is_cold_or_charged:
        return 1.0 + min(wetness.resist_bonus_cap, level * wetness.resist_bonus_per_level)
    return 1.0


def compute_damage(inputs: DamageInputs, damage, wetness, restraints: RestraintTable) -> DamageBreakdown:
    """Turn a raw hit plus elemental stats into final damage.

    ``damage`` and ``wetness`` are the DamageSettings and WetnessSettings sections.
    Without an attack element the hit is purely physical.
    """
    physical = max(0.0, float(inputs.physical))
    if inputs.attack_element is None:
        return DamageBreakdown(
            physical=physical,
            pre_resist=0.0,
            reduction=0.0,
            elemental_base=0.0,
            wetness_multiplier=1.0,
            restraint=Restraint.NEUTRAL,
            restraint_multiplier=1.0,
            final_elemental=0.0,
            floored=False,
            total=physical,
        )

    pre_resist = (max(0, inputs.enhancement) / max(1, damage.strength_per_half_damage)) * 0.5
    reduction = (max(0, inputs.resistance) / max(1, damage.resist_per_half_reduction)) * 0.5 * damage.resistance_multiplier
    elemental_base = max(0.0, pre_resist - reduction) * damage.damage_multiplier
    wet_mult = wetness_multiplier(inputs.attack_element, inputs.wetness_level, wetness)
    elemental = elemental_base * wet_mult

    restraint = restraints.lookup(inputs.attack_element, inputs.target_element)
    restraint_mult = restraints.multiplier(inputs.attack_element, inputs.target_element)
    final_elemental = elemental * restraint_mult

    floored = False
    if restraint_mult > 1.0:
        min_retained = pre_resist * damage.restraint_floor_ratio
        if final_elemental < min_retained:
            final_elemental = min_retained
            floored = True

    breakdown = DamageBreakdown(
        physical=physical,
        pre_resist=pre_resist,
        reduction=reduction,
        elemental_base=elemental_base,
        wetness_multiplier=wet_mult,
        restraint=restraint,
        restraint_multiplier=restraint_mult,
        final_elemental=final_elemental,
        floored=floored,
        total=physical + final_elemental,
    )
    logger.debug("Damage pipeline %s -> %s", inputs, breakdown)
    return breakdown
