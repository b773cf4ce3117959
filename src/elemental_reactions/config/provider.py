from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from ..elements import RestraintTable
from ..resolver import ForcedAttributeSpec
from .loader import load_config
from .models import ReactionConfig
from .parsing import (
    build_restraint_table,
    parse_forced_armor_line,
    parse_forced_entity_line,
    parse_forced_lines,
    parse_forced_weapon_line,
)

logger = logging.getLogger(__name__)

ReloadListener = Callable[[ReactionConfig], None]

CATEGORY_ENTITY = "entity"
CATEGORY_WEAPON = "weapon"
CATEGORY_ARMOR = "armor"


class SpecCache:
    """Parsed forced-spec tables, keyed by category.

    Holds parsed specs only, never resolved values. Owned by one ConfigProvider
    and dropped wholesale on reload.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, ForcedAttributeSpec]] = {}

    def table(self, category: str, build: Callable[[], Dict[str, ForcedAttributeSpec]]) -> Dict[str, ForcedAttributeSpec]:
        table = self._tables.get(category)
        if table is None:
            table = build()
            self._tables[category] = table
            logger.debug("Cached %d forced %s specs", len(table), category)
        return table

    def invalidate(self) -> None:
        self._tables.clear()

    def __len__(self) -> int:
        return len(self._tables)


class ConfigProvider:
    """Read access to the current configuration plus the immutable objects derived from it."""

    def __init__(self, config: Optional[ReactionConfig] = None, path: Optional[Union[str, Path]] = None) -> None:
        self._path = path
        self._config = config if config is not None else load_config(path)
        self._restraints: Optional[RestraintTable] = None
        self.spec_cache = SpecCache()
        self._listeners: List[ReloadListener] = []

    @property
    def config(self) -> ReactionConfig:
        return self._config

    @property
    def restraints(self) -> RestraintTable:
        if self._restraints is None:
            damage = self._config.damage
            self._restraints = build_restraint_table(damage.restraints, damage.restraint_multiplier, damage.weak_multiplier)
        return self._restraints

    def forced_entity_spec(self, type_id: str) -> Optional[ForcedAttributeSpec]:
        table = self.spec_cache.table(
            CATEGORY_ENTITY, lambda: parse_forced_lines(self._config.forced.entities, parse_forced_entity_line)
        )
        return table.get(type_id)

    def forced_weapon_spec(self, item_id: str) -> Optional[ForcedAttributeSpec]:
        table = self.spec_cache.table(
            CATEGORY_WEAPON, lambda: parse_forced_lines(self._config.forced.weapons, parse_forced_weapon_line)
        )
        return table.get(item_id)

    def forced_armor_spec(self, item_id: str) -> Optional[ForcedAttributeSpec]:
        table = self.spec_cache.table(
            CATEGORY_ARMOR, lambda: parse_forced_lines(self._config.forced.armor, parse_forced_armor_line)
        )
        return table.get(item_id)

    def add_reload_listener(self, listener: ReloadListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_reload_listener(self, listener: ReloadListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def reload(self, config: Optional[ReactionConfig] = None) -> ReactionConfig:
        """Swap in a new configuration and drop every derived object.

        Without an explicit ``config`` the provider re-reads its source file.
        """
        self._config = config if config is not None else load_config(self._path)
        self._restraints = None
        self.spec_cache.invalidate()
        logger.info("Configuration reloaded")
        for listener in list(self._listeners):
            listener(self._config)
        return self._config
