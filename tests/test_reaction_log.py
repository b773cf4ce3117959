from __future__ import annotations

import pytest

from elemental_reactions.combat.log import ReactionLog
from elemental_reactions.events import HIT_RESOLVED, STEAM_TRIGGERED, EventBus, ObservabilitySink


def test_log_capacity_and_recent():
    log = ReactionLog(capacity=5)
    for i in range(10):
        log.record(channel=HIT_RESOLVED, tick=i, actor="A", action="hit", target="B", value=float(i))
    assert len(log) == 5
    assert [e.value for e in log.get_recent(3)] == [7.0, 8.0, 9.0]
    assert log.get_recent(0) == []


def test_messages_are_synthesized():
    log = ReactionLog()
    hit = log.record(channel=HIT_RESOLVED, tick=4, actor="mage", action="hit", target="wolf", value=3.5, tags=["damage", "floored"])
    dry = log.record(channel="self_drying", tick=5, actor="mage", action="self_drying", target="mage", value=2.0)
    assert hit.message == "[4] mage hit -> wolf: 3.5 (floored)"
    assert dry.message == "[5] mage self_drying: 2"
    custom = log.record(channel=HIT_RESOLVED, tick=6, actor="a", action="hit", message="custom")
    assert custom.message == "custom"


def test_attach_filters_channels_and_detach_stops_recording():
    sink = ObservabilitySink(EventBus())
    log = ReactionLog()
    assert not sink.active
    log.attach(sink, [STEAM_TRIGGERED])
    assert sink.active
    sink.trace(HIT_RESOLVED, lambda: {"tick": 0, "actor": "a", "action": "hit"})
    sink.trace(STEAM_TRIGGERED, lambda: {"tick": 0, "actor": "a", "action": "high_heat", "radius": 3.0})
    assert len(log) == 1
    event = log.events()[0]
    assert event.channel == STEAM_TRIGGERED
    assert event.details == {"radius": 3.0}
    log.detach(sink, [STEAM_TRIGGERED])
    assert not sink.active


def test_serialization_keeps_events():
    log = ReactionLog(capacity=10)
    e = log.record(channel=HIT_RESOLVED, tick=1, actor="mage", action="hit", target="wolf", value=4.0, tags=["damage"], dealt=4.0)
    loaded = ReactionLog.from_dict(log.to_dict())
    assert loaded.capacity == 10
    assert len(loaded) == 1
    ev = loaded.events()[0]
    assert ev.message == e.message
    assert ev.tags == ("damage",)
    assert ev.details == {"dealt": 4.0}


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ReactionLog(capacity=0)
