from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeferredAction:
    label: str
    callback: Callable[..., Any]
    args: Tuple[Any, ...] = ()


class DeferredActionQueue:
    """FIFO of state mutations that run at the end of the current tick.

    Actions enqueued while the queue is draining wait for the next drain.
    """

    def __init__(self) -> None:
        self._pending: Deque[DeferredAction] = deque()

    def defer(self, label: str, callback: Callable[..., Any], *args: Any) -> None:
        self._pending.append(DeferredAction(label, callback, args))
        logger.debug("Deferred %s (pending=%d)", label, len(self._pending))

    def drain(self) -> int:
        """Run every action queued before this call, in order. Returns how many ran."""
        batch = self._pending
        self._pending = deque()
        ran = 0
        while batch:
            action = batch.popleft()
            try:
                action.callback(*action.args)
            except Exception:
                logger.exception("Deferred action %s failed", action.label)
            ran += 1
        return ran

    def clear(self) -> None:
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)
