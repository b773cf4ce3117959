"""Parsers for the string-valued config entries.

Malformed entries are logged and dropped (or resolved to None) so that the
engine only ever sees well-typed values.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..elements import Element, RestraintTable
from ..resolver import Fixed, ForcedAttributeSpec, PointsSpec, Range

logger = logging.getLogger(__name__)


def parse_points_spec(text: Optional[str]) -> PointsSpec:
    """Parse "", "0", "n" or "a-b" into None, Fixed(n) or Range(a, b)."""
    if text is None:
        return None
    raw = str(text).strip()
    if not raw or raw == "0":
        return None
    if "-" in raw:
        lo_text, _, hi_text = raw.partition("-")
        try:
            lo, hi = int(lo_text.strip()), int(hi_text.strip())
        except ValueError:
            logger.warning("Malformed points range %r; treating as unset", text)
            return None
        if lo < 0 or hi < 0:
            logger.warning("Negative points range %r; treating as unset", text)
            return None
        return Range(lo, hi)
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Malformed points value %r; treating as unset", text)
        return None
    if value <= 0:
        return None
    return Fixed(value)


def parse_restraint_line(line: str) -> Optional[Tuple[Element, Element]]:
    attacker_text, sep, defender_text = str(line).partition("->")
    if not sep:
        logger.warning("Restraint entry %r is not of the form 'a->b'; skipped", line)
        return None
    attacker = Element.parse(attacker_text)
    defender = Element.parse(defender_text)
    if attacker is None or defender is None:
        logger.warning("Restraint entry %r names an unknown element; skipped", line)
        return None
    return attacker, defender


def build_restraint_table(lines: Iterable[str], strong_multiplier: float, weak_multiplier: float) -> RestraintTable:
    pairs = [pair for pair in (parse_restraint_line(line) for line in lines) if pair is not None]
    table = RestraintTable.from_pairs(pairs, strong_multiplier=strong_multiplier, weak_multiplier=weak_multiplier)
    logger.debug("Restraint table built from %d pairs", len(pairs))
    return table


def _fields(line: str, expected: int) -> Optional[List[str]]:
    parts = [p.strip() for p in str(line).split(",")]
    if len(parts) < expected or not parts[0]:
        logger.warning("Forced entry %r needs %d comma-separated fields; skipped", line, expected)
        return None
    return parts[:expected]


def parse_forced_entity_line(line: str) -> Optional[Tuple[str, ForcedAttributeSpec]]:
    """``entity_id,attack,enhance,points,resist,points``."""
    parts = _fields(line, 6)
    if parts is None:
        return None
    entity_id, attack, enhance, enhance_points, resist, resist_points = parts
    spec = ForcedAttributeSpec(
        attack_element=Element.parse(attack),
        enhance_element=Element.parse(enhance),
        enhance_points=parse_points_spec(enhance_points),
        resist_element=Element.parse(resist),
        resist_points=parse_points_spec(resist_points),
    )
    return entity_id, spec


def parse_forced_weapon_line(line: str) -> Optional[Tuple[str, ForcedAttributeSpec]]:
    """``item_id,attack``."""
    parts = _fields(line, 2)
    if parts is None:
        return None
    item_id, attack = parts
    return item_id, ForcedAttributeSpec(attack_element=Element.parse(attack))


def parse_forced_armor_line(line: str) -> Optional[Tuple[str, ForcedAttributeSpec]]:
    """``item_id,enhance,points,resist,points``."""
    parts = _fields(line, 5)
    if parts is None:
        return None
    item_id, enhance, enhance_points, resist, resist_points = parts
    spec = ForcedAttributeSpec(
        enhance_element=Element.parse(enhance),
        enhance_points=parse_points_spec(enhance_points),
        resist_element=Element.parse(resist),
        resist_points=parse_points_spec(resist_points),
    )
    return item_id, spec


def parse_forced_lines(lines: Iterable[str], parser) -> Dict[str, ForcedAttributeSpec]:
    specs: Dict[str, ForcedAttributeSpec] = {}
    for line in lines:
        parsed = parser(line)
        if parsed is None:
            continue
        key, spec = parsed
        if key in specs:
            logger.warning("Duplicate forced entry for %r; later entry wins", key)
        specs[key] = spec
    return specs
