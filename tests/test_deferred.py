from __future__ import annotations

import logging

from elemental_reactions.engine.deferred import DeferredActionQueue
from elemental_reactions.events import EventBus


def test_actions_queued_during_drain_wait_for_next_drain():
    q = DeferredActionQueue()
    seen = []

    def first():
        seen.append("first")
        q.defer("late", seen.append, "late")

    q.defer("first", first)
    assert q.drain() == 1
    assert seen == ["first"]
    assert len(q) == 1
    q.drain()
    assert seen == ["first", "late"]


def test_failing_action_does_not_block_the_rest(caplog):
    q = DeferredActionQueue()
    seen = []

    def boom():
        raise RuntimeError("boom")

    q.defer("boom", boom)
    q.defer("ok", seen.append, 1)
    with caplog.at_level(logging.ERROR):
        assert q.drain() == 2
    assert seen == [1]
    assert "boom" in caplog.text


def test_event_bus_isolates_failing_handlers():
    bus = EventBus()
    calls = []

    def bad(**kwargs):
        raise ValueError("bad")

    bus.subscribe("x", bad)
    bus.subscribe("x", lambda **kw: calls.append(kw) or "ok")
    assert bus.emit("x", value=1) == ["ok"]
    assert calls == [{"value": 1}]
    bus.unsubscribe("x", bad)
    bus.clear()
    assert not bus.has_subscribers()
