from __future__ import annotations

import pytest

from elemental_reactions.combat.entity import Combatant, DamageKind, EquippedItem, Slot
from elemental_reactions.elements import Element
from elemental_reactions.engine.context import EngineContext


def make_ctx():
    return EngineContext.create(seed=7)


def test_damage_per_second_scales_with_strength():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    assert ctx.scorched.damage_per_second(e, 0) == pytest.approx(1.0)
    assert ctx.scorched.damage_per_second(e, 60) == pytest.approx(2.5)


def test_damage_modifiers():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e", fire_immune=True))
    assert ctx.scorched.damage_per_second(e, 60) == pytest.approx(1.25)
    treant = ctx.world.add(Combatant("treant"))
    treant.equip(Slot.HEAD, EquippedItem("bark", resistance={Element.NATURE: 1}))
    assert ctx.scorched.damage_per_second(treant, 60) == pytest.approx(3.75)
    guard = ctx.world.add(Combatant("guard"))
    guard.equip(Slot.CHEST, EquippedItem("plate", fire_protection=16))
    assert ctx.scorched.damage_per_second(guard, 60) == pytest.approx(1.25)


@pytest.mark.parametrize("strength", [0, 1, 50, 100, 10000])
def test_high_fire_resistance_negates_burn(strength):
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    e.equip(Slot.CHEST, EquippedItem("salamander", resistance={Element.FIRE: 16}))
    assert ctx.scorched.damage_per_second(e, strength) == 0.0


def test_burn_ticks_once_per_second_then_ends():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    assert ctx.scorched.apply(e, 60, 40, now=0)
    for now in range(20):
        ctx.scorched.tick(e, now)
    assert e.health == pytest.approx(17.5)
    for now in range(20, 40):
        ctx.scorched.tick(e, now)
    assert e.health == pytest.approx(15.0)
    assert not ctx.scorched.is_scorched(e)
    assert all(kind is DamageKind.SCORCHED for kind, _ in e.damage_log)


def test_cooldown_blocks_reapplication():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    assert ctx.scorched.apply(e, 10, 100, now=0)
    assert not ctx.scorched.apply(e, 10, 100, now=150)
    assert ctx.scorched.apply(e, 10, 100, now=200)


def test_blacklisted_entities_are_never_scorched():
    from elemental_reactions.config import ReactionConfig

    ctx = EngineContext.create(ReactionConfig.model_validate({"scorched": {"blacklist": ["magma_cube"]}}), seed=1)
    cube = ctx.world.add(Combatant("c", type_id="magma_cube"))
    assert not ctx.scorched.apply(cube, 50, 100, now=0)


def test_submersion_converts_remaining_burn_into_thermal_shock():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    ctx.scorched.apply(e, 60, 40, now=0)
    e.environment.in_water = True
    e.environment.eyes_in_water = True
    ctx.scorched.tick(e, 0)
    # 2 s remaining * 2.5 dps * 0.5
    assert e.health == pytest.approx(17.5)
    assert e.damage_log == [(DamageKind.THERMAL_SHOCK, pytest.approx(2.5))]
    assert not ctx.scorched.is_scorched(e)


def test_eyes_under_without_standing_in_water_keeps_burning():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    ctx.scorched.apply(e, 60, 40, now=0)
    e.environment.eyes_in_water = True
    for now in range(20):
        ctx.scorched.tick(e, now)
    assert ctx.scorched.is_scorched(e)
    assert e.damage_log == [(DamageKind.SCORCHED, pytest.approx(2.5))]


def test_tiny_thermal_shock_is_dropped():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    ctx.scorched.apply(e, 0, 10, now=0)
    e.environment.in_water = True
    e.environment.eyes_in_water = True
    ctx.scorched.tick(e, 0)
    assert e.health == 20.0
    assert not ctx.scorched.is_scorched(e)


def test_scorched_suppresses_plain_fire_only():
    ctx = make_ctx()
    e = ctx.world.add(Combatant("e"))
    assert not ctx.scorched.suppresses(e, DamageKind.FIRE)
    ctx.scorched.apply(e, 10, 100, now=0)
    assert ctx.scorched.suppresses(e, DamageKind.FIRE)
    assert not ctx.scorched.suppresses(e, DamageKind.SCORCHED)


def pyromancer(ctx, levels: int = 90) -> Combatant:
    p = ctx.world.add(Combatant("pyro"))
    p.equip(Slot.MAINHAND, EquippedItem("wand", attack_element=Element.FIRE, enhancement={Element.FIRE: levels}))
    return p


def test_roll_trigger_conditions():
    ctx = make_ctx()
    attacker = pyromancer(ctx)
    target = ctx.world.add(Combatant("t"))
    a_totals = ctx.stats.totals(attacker)
    t_totals = ctx.stats.totals(target)
    # 450 fire power makes the chance 100%
    assert ctx.scorched.trigger_chance(450) == 1.0
    assert ctx.scorched.roll_trigger(attacker, target, a_totals, t_totals, Element.FIRE) == 450
    assert ctx.scorched.roll_trigger(attacker, target, a_totals, t_totals, Element.FROST) is None

    ctx.wetness.add_levels(target, 1)
    assert ctx.scorched.roll_trigger(attacker, target, a_totals, t_totals, Element.FIRE) is None
    ctx.wetness.strip(target)

    target.equip(Slot.FEET, EquippedItem("ice_boots", resistance={Element.FROST: 1}))
    assert ctx.scorched.roll_trigger(attacker, target, a_totals, ctx.stats.totals(target), Element.FIRE) is None


def test_weak_fire_power_never_triggers():
    ctx = make_ctx()
    attacker = pyromancer(ctx, levels=9)
    target = ctx.world.add(Combatant("t"))
    totals = ctx.stats.totals(attacker)
    assert all(
        ctx.scorched.roll_trigger(attacker, target, totals, ctx.stats.totals(target), Element.FIRE) is None
        for _ in range(50)
    )
