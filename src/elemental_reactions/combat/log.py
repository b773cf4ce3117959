from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..events import ALL_CHANNELS, ObservabilitySink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReactionEvent:
    """One structured trace record.

    Attributes:
        tick: Absolute world tick the event happened on.
        channel: Trace channel it was emitted on (e.g. "hit_resolved").
        actor: Entity id that caused the event.
        action: Short action name ("hit", "self_drying", "high_heat", ...).
        target: Entity id affected, if any.
        value: Main numeric outcome (damage, level, layers removed).
        tags: Semantic tags, e.g. ("steam",) or ("damage", "floored").
        details: Remaining payload fields.
        message: Human-readable summary; synthesized when empty.
        timestamp: Monotonic time the event was recorded.
    """

    tick: int
    channel: str
    actor: str
    action: str
    target: Optional[str] = None
    value: Optional[float] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)
    details: Dict[str, Any] = field(default_factory=dict)
    message: str = ""
    timestamp: float = field(default_factory=time.monotonic)


class ReactionLog:
    """Bounded in-memory record of reaction traces.

    Attach it to an ObservabilitySink to start recording; attaching is what
    turns the sink's "any observer active" flag on.
    """

    def __init__(self, capacity: int = 1000) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._events: List[ReactionEvent] = []
        logger.debug("ReactionLog initialized with capacity=%d", capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def attach(self, sink: ObservabilitySink, channels: Iterable[str] = ALL_CHANNELS) -> None:
        for channel in channels:
            sink.bus.subscribe(channel, self.record)

    def detach(self, sink: ObservabilitySink, channels: Iterable[str] = ALL_CHANNELS) -> None:
        for channel in channels:
            sink.bus.unsubscribe(channel, self.record)

    def record(
        self,
        *,
        channel: str,
        tick: int,
        actor: str,
        action: str,
        target: Optional[str] = None,
        value: Optional[float] = None,
        tags: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
        **details: Any,
    ) -> ReactionEvent:
        ev = ReactionEvent(
            tick=tick,
            channel=channel,
            actor=actor,
            action=action,
            target=target,
            value=value,
            tags=tuple(tags or ()),
            details=dict(details),
            message=message or "",
        )
        if not ev.message:
            ev = ReactionEvent(**{**asdict(ev), "message": self._synthesize_message(ev)})
        self._events.append(ev)
        if len(self._events) > self._capacity:
            dropped = len(self._events) - self._capacity
            del self._events[0:dropped]
            logger.debug("ReactionLog capacity exceeded, dropped=%d old events", dropped)
        return ev

    @staticmethod
    def _synthesize_message(ev: ReactionEvent) -> str:
        amount = "?" if ev.value is None else f"{ev.value:g}"
        if ev.target and ev.target != ev.actor:
            base = f"[{ev.tick}] {ev.actor} {ev.action} -> {ev.target}: {amount}"
        else:
            base = f"[{ev.tick}] {ev.actor} {ev.action}: {amount}"
        if "floored" in ev.tags:
            base += " (floored)"
        return base

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def events(self, channel: Optional[str] = None) -> List[ReactionEvent]:
        if channel is None:
            return list(self._events)
        return [e for e in self._events if e.channel == channel]

    def get_recent(self, n: int) -> List[ReactionEvent]:
        if n <= 0:
            return []
        return self._events[-n:]

    def to_dict(self) -> dict:
        return {
            "capacity": self._capacity,
            "events": [asdict(e) for e in self._events],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReactionLog":
        log = cls(capacity=int(data.get("capacity", 1000)))
        for item in data.get("events", []):
            log._events.append(
                ReactionEvent(
                    tick=int(item["tick"]),
                    channel=item["channel"],
                    actor=item["actor"],
                    action=item["action"],
                    target=item.get("target"),
                    value=item.get("value"),
                    tags=tuple(item.get("tags", ()) or ()),
                    details=dict(item.get("details", {}) or {}),
                    message=item.get("message", ""),
                    timestamp=float(item.get("timestamp", time.monotonic())),
                )
            )
        return log
