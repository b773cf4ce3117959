from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ..combat.log import ReactionLog
from ..combat.scorched import ScorchedSystem
from ..combat.spores import SporeSystem
from ..combat.stats import ElementalStatQuery
from ..combat.steam import SteamReactionSystem
from ..combat.wetness import WetnessSystem
from ..config.models import ReactionConfig
from ..config.provider import ConfigProvider
from ..events import ObservabilitySink
from ..resolver import ForcedAttributeResolver
from ..rng import DOMAIN_FORCED_POINTS, DOMAIN_SCORCHED_TRIGGER, DOMAIN_SPORES, RNGManager
from ..world import World
from .deferred import DeferredActionQueue

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """Everything one reaction engine instance owns. No state is shared between contexts."""

    provider: ConfigProvider
    world: World
    sink: ObservabilitySink
    rngs: RNGManager
    stats: ElementalStatQuery
    wetness: WetnessSystem
    scorched: ScorchedSystem
    steam: SteamReactionSystem
    spores: SporeSystem
    forced: ForcedAttributeResolver
    deferred: DeferredActionQueue

    @property
    def now(self) -> int:
        return self.world.tick

    @classmethod
    def create(
        cls,
        config: Optional[ReactionConfig] = None,
        seed: Union[int, str, bytes, None] = None,
        provider: Optional[ConfigProvider] = None,
        sink: Optional[ObservabilitySink] = None,
    ) -> "EngineContext":
        provider = provider or ConfigProvider(config or ReactionConfig())
        world = World()
        sink = sink or ObservabilitySink()
        rngs = RNGManager(seed)
        stats = ElementalStatQuery(provider)
        wetness = WetnessSystem(provider, world)
        scorched = ScorchedSystem(provider, world, stats, sink, rngs.stream(DOMAIN_SCORCHED_TRIGGER))
        steam = SteamReactionSystem(provider, world, stats, wetness, sink)
        spores = SporeSystem(provider, world, stats, wetness, scorched, sink, rngs.stream(DOMAIN_SPORES))
        forced = ForcedAttributeResolver(provider, rngs.stream(DOMAIN_FORCED_POINTS))
        logger.debug("Engine context created (seed=%s)", rngs.get_master_seed_hex())
        return cls(
            provider=provider,
            world=world,
            sink=sink,
            rngs=rngs,
            stats=stats,
            wetness=wetness,
            scorched=scorched,
            steam=steam,
            spores=spores,
            forced=forced,
            deferred=DeferredActionQueue(),
        )

    def attach_log(self, capacity: Optional[int] = None) -> ReactionLog:
        """Create a reaction log that records every trace channel of this context."""
        log = ReactionLog(capacity or self.provider.config.loop.log_capacity)
        log.attach(self.sink)
        return log
