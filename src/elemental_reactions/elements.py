from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .exceptions import UnknownElementError

logger = logging.getLogger(__name__)


class Element(str, Enum):
    """The four combat elements. Declaration order is the scan order used by item queries."""

    NATURE = "nature"
    THUNDER = "thunder"
    FROST = "frost"
    FIRE = "fire"

    @property
    def is_hot(self) -> bool:
        return self is Element.FIRE

    @property
    def is_cold(self) -> bool:
        return self is Element.FROST

    @property
    def is_cold_or_charged(self) -> bool:
        return self in (Element.FROST, Element.THUNDER)

    @classmethod
    def parse(cls, name: Optional[str], strict: bool = False) -> Optional["Element"]:
        """Look up an element by its id, case-insensitively.

        Blank names and "none" resolve to None. Unknown names resolve to None
        unless ``strict`` is set, in which case UnknownElementError is raised.
        """
        if name is None:
            return None
        key = str(name).strip().lower()
        if not key or key == "none":
            return None
        for element in cls:
            if element.value == key:
                return element
        if strict:
            raise UnknownElementError(f"Unknown element: {name!r}")
        logger.warning("Ignoring unknown element name %r", name)
        return None


class Restraint(str, Enum):
    STRONG = "strong"
    WEAK = "weak"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class RestraintTable:
    """Immutable mapping of ordered (attacker, defender) element pairs to a restraint relation."""

    relations: Mapping[Tuple[Element, Element], Restraint] = field(default_factory=dict)
    strong_multiplier: float = 1.5
    weak_multiplier: float = 0.5

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[Tuple[Element, Element]],
        strong_multiplier: float = 1.5,
        weak_multiplier: float = 0.5,
    ) -> "RestraintTable":
        """Build a table from (strong, weak) pairs.

        Each pair marks attacker->defender as Strong and the reverse as Weak,
        unless the reverse is itself declared Strong.
        """
        strong = set(pairs)
        relations: Dict[Tuple[Element, Element], Restraint] = {}
        for attacker, defender in strong:
            relations[(attacker, defender)] = Restraint.STRONG
            reverse = (defender, attacker)
            if reverse not in strong:
                relations[reverse] = Restraint.WEAK
        return cls(relations=relations, strong_multiplier=strong_multiplier, weak_multiplier=weak_multiplier)

    def lookup(self, attacker: Optional[Element], defender: Optional[Element]) -> Restraint:
        if attacker is None or defender is None:
            return Restraint.NEUTRAL
        return self.relations.get((attacker, defender), Restraint.NEUTRAL)

    def multiplier(self, attacker: Optional[Element], defender: Optional[Element]) -> float:
        relation = self.lookup(attacker, defender)
        if relation is Restraint.STRONG:
            return self.strong_multiplier
        if relation is Restraint.WEAK:
            return self.weak_multiplier
        return 1.0
