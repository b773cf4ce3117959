from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Trace channels emitted by the engine.
HIT_RESOLVED = "hit_resolved"
SELF_DRYING = "self_drying"
STEAM_TRIGGERED = "steam_triggered"
CLOUD_EXPIRED = "cloud_expired"
SCORCHED_APPLIED = "scorched_applied"
THERMAL_SHOCK = "thermal_shock"
SPORE_REACTION = "spore_reaction"

ALL_CHANNELS = (
    HIT_RESOLVED,
    SELF_DRYING,
    STEAM_TRIGGERED,
    CLOUD_EXPIRED,
    SCORCHED_APPLIED,
    THERMAL_SHOCK,
    SPORE_REACTION,
)


class EventBus:
    """Lightweight publish/subscribe bus. Handlers are called synchronously in subscription order."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Callable[..., Any]]] = {}
        self._lock = RLock()

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            self._handlers.setdefault(event, [])
            if handler not in self._handlers[event]:
                self._handlers[event].append(handler)
                logger.debug("Subscribed handler %s to event '%s'", handler, event)

    def unsubscribe(self, event: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            handlers = self._handlers.get(event)
            if not handlers:
                return
            if handler in handlers:
                handlers.remove(handler)
                logger.debug("Unsubscribed handler %s from event '%s'", handler, event)
            if not handlers:
                del self._handlers[event]

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def has_subscribers(self) -> bool:
        with self._lock:
            return any(self._handlers.values())

    def emit(self, event: str, **kwargs: Any) -> List[Any]:
        """Emit a payload to every handler of ``event`` and return their results.

        A failing handler is logged and does not stop the remaining handlers.
        """
        with self._lock:
            handlers = list(self._handlers.get(event, []))
        if not handlers:
            return []
        results: List[Any] = []
        for handler in handlers:
            try:
                results.append(handler(**kwargs))
            except Exception as exc:
                logger.exception("Error in handler %s for event '%s': %s", handler, event, exc)
        return results


class ObservabilitySink:
    """Structured trace output gated by a single "any observer active" flag.

    Payloads are passed as zero-argument builders so that nothing is formatted
    while no observer is listening.
    """

    def __init__(self, bus: Optional[EventBus] = None) -> None:
        self.bus = bus or EventBus()
        self.force_active = False

    @property
    def active(self) -> bool:
        return self.force_active or self.bus.has_subscribers()

    def trace(self, channel: str, build: Callable[[], Dict[str, Any]]) -> None:
        if not self.active:
            return
        payload = build()
        logger.debug("trace %s: %s", channel, payload)
        self.bus.emit(channel, channel=channel, **payload)
