from __future__ import annotations

import logging
import time
from typing import Optional

from ..config.models import LoopSettings
from ..events import CLOUD_EXPIRED
from .context import EngineContext
from .dispatcher import HitDispatcher, HitEvent, HitResolution

logger = logging.getLogger(__name__)


class ReactionLoop:
    """Fixed-rate tick loop driving every per-entity reaction system.

    ``world.tick`` is the open tick. Hits delivered through ``hit`` resolve against it;
    ``step`` then closes it: scorched, wetness, steam and spore systems run for every
    living entity, expired clouds are removed, the deferred-action queue is drained,
    and only then does the clock advance.
    """

    def __init__(self, ctx: EngineContext, settings: Optional[LoopSettings] = None) -> None:
        self.ctx = ctx
        self.settings = settings or ctx.provider.config.loop
        self.dispatcher = HitDispatcher(ctx)
        self._running: bool = False
        self._steps: int = 0
        self._last_time: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def tick(self) -> int:
        return self.ctx.world.tick

    def hit(self, event: HitEvent) -> HitResolution:
        return self.dispatcher.dispatch(event)

    def start(self) -> None:
        """Start the loop state. Calling it again while running is a no-op."""
        if self._running:
            logger.debug("ReactionLoop.start() called while already running")
            return
        self._running = True
        self._steps = 0
        self._last_time = time.perf_counter()
        logger.info("ReactionLoop started (tick_rate=%s, max_steps=%s)", self.settings.tick_rate, self.settings.max_steps)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("ReactionLoop stopped at tick=%d", self.ctx.world.tick)

    def step(self) -> None:
        """Close the current tick and advance the clock, whether or not the loop is running."""
        ctx = self.ctx
        now = ctx.world.tick
        for entity in ctx.world.living():
            ctx.scorched.tick(entity, now)
            ctx.wetness.tick(entity, now)
            ctx.steam.tick(entity, now)
            ctx.spores.tick(entity, now)
        for cloud in ctx.world.clouds.expire(now):
            ctx.sink.trace(
                CLOUD_EXPIRED,
                lambda cloud=cloud: {
                    "tick": now,
                    "actor": cloud.owner_id or "world",
                    "action": "cloud_expired",
                    "target": None,
                    "value": float(cloud.level),
                    "tags": ("steam",),
                    "cloud_id": cloud.cloud_id,
                    "high_heat": cloud.high_heat,
                },
            )
        ran = ctx.deferred.drain()
        if ran:
            logger.debug("Tick %d drained %d deferred actions", now, ran)
        ctx.world.tick += 1

    def update(self, dt: float) -> None:
        """Run one tick of the started loop.

        Args:
            dt: Seconds since the previous update.
        """
        if not self._running:
            logger.debug("update() called while not running; ignored")
            return
        self.step()
        self._steps += 1
        logger.debug("Tick #%d (dt=%.4f)", self.ctx.world.tick, dt)
        if self.settings.max_steps is not None and self._steps >= self.settings.max_steps:
            self.stop()

    def run(self) -> None:
        """Blocking headless loop until stopped or max_steps is reached, throttled to tick_rate."""
        self.start()
        target_dt = 0.0
        if self.settings.tick_rate and self.settings.tick_rate > 0:
            target_dt = 1.0 / float(self.settings.tick_rate)

        while self._running:
            now = time.perf_counter()
            dt = 0.0 if self._last_time is None else now - self._last_time
            self._last_time = now

            self.update(dt)

            if target_dt > 0:
                remaining = target_dt - (time.perf_counter() - now)
                if remaining > 0:
                    time.sleep(remaining)

        logger.info("Loop complete (steps=%d)", self._steps)
