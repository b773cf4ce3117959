from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from .elements import Element

logger = logging.getLogger(__name__)

TIER_COUNT = 5


@dataclass(frozen=True)
class Fixed:
    value: int


@dataclass(frozen=True)
class Range:
    minimum: int
    maximum: int

    def normalized(self) -> Tuple[int, int]:
        if self.minimum > self.maximum:
            return self.maximum, self.minimum
        return self.minimum, self.maximum


PointsSpec = Union[Fixed, Range, None]


class Anchor(str, Enum):
    """Which value domain the five probability bands are laid over.

    CAP: bands cover [0, global cap] and the chosen band is clamped into the range.
    RANGE: bands cover the configured [min, max] range directly.
    """

    CAP = "cap"
    RANGE = "range"


def _tier_weights(tiers: Sequence[float]) -> Tuple[float, ...]:
    weights = [max(0.0, float(t)) for t in list(tiers)[:TIER_COUNT]]
    while len(weights) < TIER_COUNT:
        weights.append(0.0)
    return tuple(weights)


def pick_tier(tiers: Sequence[float], rng: random.Random) -> int:
    """Pick a band index in [0, 4] using cumulative tier weights.

    Weights summing below 1 leave the remainder to the top band; weights summing
    above 1 are scaled down proportionally. All-zero weights pick uniformly.
    """
    weights = _tier_weights(tiers)
    total = sum(weights)
    if total <= 0:
        return rng.randrange(TIER_COUNT)
    roll = rng.random() * max(1.0, total)
    cumulative = 0.0
    for index, weight in enumerate(weights):
        cumulative += weight
        if roll < cumulative:
            return index
    return TIER_COUNT - 1


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _snap_to_step(value: float, step: int, lo: int, hi: int) -> int:
    """Round to the nearest multiple of step, keeping the result inside [lo, hi] when possible."""
    snapped = int(math.floor(value / step + 0.5)) * step
    if snapped > hi:
        snapped = (hi // step) * step
    if snapped < lo:
        snapped = -((-lo) // step) * step
    if snapped > hi:
        # No multiple of step exists inside the range.
        return lo
    return snapped


def resolve(
    spec: PointsSpec,
    step: int,
    tiers: Sequence[float],
    *,
    cap: int,
    rng: random.Random,
    anchor: Anchor = Anchor.RANGE,
) -> int:
    """Turn a points spec into a concrete, step-rounded integer.

    None resolves to 0. Fixed values are floored to the step and clamped to [0, cap]
    without touching the random source. Ranges sample one of five weighted bands.
    """
    step = max(1, int(step))
    cap = max(0, int(cap))
    if spec is None:
        return 0
    if isinstance(spec, Fixed):
        floored = (max(0, int(spec.value)) // step) * step
        return int(_clamp(floored, 0, cap))

    lo, hi = spec.normalized()
    lo = max(0, lo)
    hi = max(0, hi)
    if lo == hi:
        return lo

    band = pick_tier(tiers, rng)
    if anchor is Anchor.CAP:
        domain_lo, domain_hi = 0.0, float(cap)
    else:
        domain_lo, domain_hi = float(lo), float(hi)
    width = (domain_hi - domain_lo) / TIER_COUNT
    band_lo = _clamp(domain_lo + width * band, lo, hi)
    band_hi = _clamp(domain_lo + width * (band + 1), lo, hi)
    value = rng.uniform(band_lo, band_hi)
    result = _snap_to_step(value, step, lo, hi)
    logger.debug(
        "Resolved %s (anchor=%s, band=%d, sub-band=[%.1f, %.1f]) -> %d",
        spec,
        anchor.value,
        band,
        band_lo,
        band_hi,
        result,
    )
    return result


def roll_generated_points(cap: int, tiers: Sequence[float], rng: random.Random) -> int:
    """Roll a point total for a procedurally generated combatant.

    Bands are fifths of ``cap`` with inclusive integer bounds; the result is never below 1.
    """
    cap = max(1, int(cap))
    band = pick_tier(tiers, rng)
    lower = int(cap * band / TIER_COUNT) + 1
    upper = max(lower, int(cap * (band + 1) / TIER_COUNT))
    return max(1, rng.randint(lower, upper))


@dataclass(frozen=True)
class ForcedAttributeSpec:
    """Configured attribute allocation for one entity type or item id.

    Kept unresolved: every application resolves the points afresh so ranges re-roll.
    """

    attack_element: Optional[Element] = None
    enhance_element: Optional[Element] = None
    enhance_points: PointsSpec = None
    resist_element: Optional[Element] = None
    resist_points: PointsSpec = None


@dataclass(frozen=True)
class ResolvedAttributes:
    attack_element: Optional[Element]
    enhance_element: Optional[Element]
    enhance_points: int
    resist_element: Optional[Element]
    resist_points: int

    def enhance_level(self, points_per_level: int) -> int:
        return self.enhance_points // max(1, int(points_per_level))

    def resist_level(self, points_per_level: int) -> int:
        return self.resist_points // max(1, int(points_per_level))


class ForcedAttributeResolver:
    """Resolves forced attribute specs against the current resolver settings.

    ``provider`` is the config provider; settings are read on every call so that a
    reload takes effect immediately.
    """

    def __init__(self, provider, rng: random.Random) -> None:
        self.provider = provider
        self.rng = rng

    def resolve_spec(self, spec: ForcedAttributeSpec, anchor: Anchor) -> ResolvedAttributes:
        settings = self.provider.config.resolver
        enhance = 0
        resist = 0
        if spec.enhance_element is not None:
            enhance = resolve(
                spec.enhance_points,
                settings.points_step,
                settings.tier_probabilities,
                cap=settings.max_stat_cap,
                rng=self.rng,
                anchor=anchor,
            )
        if spec.resist_element is not None:
            resist = resolve(
                spec.resist_points,
                settings.points_step,
                settings.tier_probabilities,
                cap=settings.max_stat_cap,
                rng=self.rng,
                anchor=anchor,
            )
        return ResolvedAttributes(
            attack_element=spec.attack_element,
            enhance_element=spec.enhance_element,
            enhance_points=enhance,
            resist_element=spec.resist_element,
            resist_points=resist,
        )

    def for_entity(self, type_id: str) -> Optional[ResolvedAttributes]:
        """Forced entity specs lay the bands over the configured range."""
        spec = self.provider.forced_entity_spec(type_id)
        if spec is None:
            return None
        return self.resolve_spec(spec, Anchor.RANGE)

    def for_weapon(self, item_id: str) -> Optional[ResolvedAttributes]:
        spec = self.provider.forced_weapon_spec(item_id)
        if spec is None:
            return None
        return self.resolve_spec(spec, Anchor.CAP)

    def for_armor(self, item_id: str) -> Optional[ResolvedAttributes]:
        """Forced item specs lay the bands over the global cap, then clamp into the range."""
        spec = self.provider.forced_armor_spec(item_id)
        if spec is None:
            return None
        return self.resolve_spec(spec, Anchor.CAP)

    def generated_points(self) -> int:
        settings = self.provider.config.resolver
        cap = settings.max_stat_cap * settings.generated_cap_multiplier
        return roll_generated_points(cap, settings.tier_probabilities, self.rng)
