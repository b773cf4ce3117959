from __future__ import annotations

import pytest

from elemental_reactions.combat.clouds import clamp_cloud_level
from elemental_reactions.combat.entity import Combatant, DamageKind, EquippedItem, Slot
from elemental_reactions.combat.steam import SteamOutcome, SteamTrigger, reconstruct_raw_damage
from elemental_reactions.elements import Element
from elemental_reactions.engine.context import EngineContext


def armed(ctx, entity_id: str, element: Element, levels: int) -> Combatant:
    e = ctx.world.add(Combatant(entity_id))
    e.equip(Slot.MAINHAND, EquippedItem(f"{element.value}_blade", attack_element=element, enhancement={element: levels}))
    return e


def evaluate(ctx, attacker, target, element):
    return ctx.steam.evaluate(
        attacker, target, ctx.stats.totals(attacker), ctx.stats.totals(target), element, ctx.now
    )


def test_cloud_level_is_clamped():
    assert clamp_cloud_level(999) == 5
    assert clamp_cloud_level(0) == 1


def test_wet_hot_attacker_dries_itself_instead():
    ctx = EngineContext.create(seed=1)
    attacker = armed(ctx, "a", Element.FIRE, 10)
    target = ctx.world.add(Combatant("t"))
    ctx.wetness.add_levels(attacker, 1)
    ctx.wetness.add_levels(target, 3)
    trigger = evaluate(ctx, attacker, target, Element.FIRE)
    assert trigger.outcome is SteamOutcome.SELF_DRY
    # 1 + 50 // 20
    assert trigger.layers == 3
    assert trigger.damage_multiplier == pytest.approx(0.7)


def test_self_drying_runs_once_per_tick():
    ctx = EngineContext.create(seed=1)
    attacker = armed(ctx, "a", Element.FIRE, 10)
    ctx.wetness.add_levels(attacker, 5)
    assert ctx.steam.self_dry(attacker, 2, now=4) == 2
    assert ctx.steam.self_dry(attacker, 2, now=4) == 0
    assert ctx.wetness.level(attacker) == 3
    assert ctx.steam.self_dry(attacker, 2, now=5) == 2


def test_hot_hit_on_wet_target_makes_high_heat_steam():
    ctx = EngineContext.create(seed=1)
    attacker = armed(ctx, "a", Element.FIRE, 10)
    target = ctx.world.add(Combatant("t"))
    ctx.wetness.add_levels(target, 3)
    trigger = evaluate(ctx, attacker, target, Element.FIRE)
    assert trigger == SteamTrigger(SteamOutcome.HIGH_HEAT, level=3)


def test_frost_aligned_target_fuels_steam_from_its_cold_power():
    ctx = EngineContext.create(seed=1)
    attacker = armed(ctx, "a", Element.FIRE, 10)
    target = ctx.world.add(Combatant("t"))
    target.equip(Slot.CHEST, EquippedItem("rime", resistance={Element.FROST: 8}))
    trigger = evaluate(ctx, attacker, target, Element.FIRE)
    # 1 + 40 // 20
    assert trigger.outcome is SteamOutcome.HIGH_HEAT
    assert trigger.level == 3


def test_weak_heat_only_strips_wetness():
    ctx = EngineContext.create(seed=1)
    attacker = armed(ctx, "a", Element.FIRE, 2)
    target = ctx.world.add(Combatant("t"))
    ctx.wetness.add_levels(target, 2)
    assert evaluate(ctx, attacker, target, Element.FIRE).outcome is SteamOutcome.STRIP
    ctx.wetness.strip(target)
    assert evaluate(ctx, attacker, target, Element.FIRE).outcome is SteamOutcome.NONE


def test_cold_hit_on_fire_aligned_target_makes_low_heat_steam():
    ctx = EngineContext.create(seed=1)
    attacker = armed(ctx, "a", Element.FROST, 10)
    target = ctx.world.add(Combatant("t"))
    target.equip(Slot.HEAD, EquippedItem("ember_crown", resistance={Element.FIRE: 4}))
    trigger = evaluate(ctx, attacker, target, Element.FROST)
    assert trigger == SteamTrigger(SteamOutcome.LOW_HEAT, level=2)

    target.dimension = "the_nether"
    assert evaluate(ctx, attacker, target, Element.FROST).outcome is SteamOutcome.NONE


def test_configured_dimensions_block_low_heat_steam():
    from elemental_reactions.config import ReactionConfig

    cfg = ReactionConfig.model_validate({"steam": {"low_heat_excluded_dimensions": ["ashlands"]}})
    ctx = EngineContext.create(cfg, seed=1)
    attacker = armed(ctx, "a", Element.FROST, 10)
    target = ctx.world.add(Combatant("t", dimension="ashlands"))
    target.equip(Slot.HEAD, EquippedItem("ember_crown", resistance={Element.FIRE: 4}))
    assert evaluate(ctx, attacker, target, Element.FROST).outcome is SteamOutcome.NONE

    target.dimension = "the_nether"
    assert evaluate(ctx, attacker, target, Element.FROST).outcome is SteamOutcome.LOW_HEAT


def test_disabled_steam_never_triggers():
    from elemental_reactions.config import ReactionConfig

    ctx = EngineContext.create(ReactionConfig.model_validate({"steam": {"enabled": False}}), seed=1)
    attacker = armed(ctx, "a", Element.FIRE, 10)
    target = ctx.world.add(Combatant("t"))
    ctx.wetness.add_levels(target, 3)
    assert evaluate(ctx, attacker, target, Element.FIRE).outcome is SteamOutcome.NONE


def test_radius_and_duration_grow_with_level():
    ctx = EngineContext.create(seed=1)
    assert ctx.steam.radius_for(True, 3) == pytest.approx(3.0)
    assert ctx.steam.duration_for(True, 3) == 160
    assert ctx.steam.radius_for(False, 5) == pytest.approx(2.5)
    assert ctx.steam.duration_for(False, 1) == 120


def test_spawn_respects_cooldown_and_strips_target():
    ctx = EngineContext.create(seed=1)
    attacker = armed(ctx, "a", Element.FIRE, 10)
    target = ctx.world.add(Combatant("t", position=(4.0, 64.0, 4.0)))
    ctx.wetness.add_levels(target, 3)
    trigger = SteamTrigger(SteamOutcome.HIGH_HEAT, level=3)

    cloud = ctx.steam.spawn(trigger, attacker, target, now=0)
    assert cloud is not None
    assert cloud.position == (4.0, 64.0, 4.0)
    assert cloud.expires_at_tick == 160
    assert cloud.owner_id == "a"
    assert ctx.wetness.level(target) == 0
    assert ctx.steam.spawn(trigger, attacker, target, now=0) is None
    assert len(ctx.world.clouds) == 1


def test_scald_defense_reductions_and_floor():
    ctx = EngineContext.create(seed=1)
    plain = ctx.world.add(Combatant("plain"))
    plain.equip(Slot.CHEST, EquippedItem("plate", fire_protection=16, protection=16))
    assert ctx.steam.scald_defense(plain, 4.0) == pytest.approx(1.0)

    frosty = ctx.world.add(Combatant("frosty"))
    frosty.equip(Slot.CHEST, EquippedItem("plate", fire_protection=16, protection=16, resistance={Element.FROST: 1}))
    # Weak-to-steam elements keep at least half
    assert ctx.steam.scald_defense(frosty, 4.0) == pytest.approx(2.0)

    immune = ctx.world.add(Combatant("imp", fire_immune=True))
    assert ctx.steam.scald_defense(immune, 4.0) == 0.0


def test_fire_resistant_entities_ignore_scalding():
    ctx = EngineContext.create(seed=1)
    e = ctx.world.add(Combatant("e", fire_resistant=True))
    assert ctx.steam.scald_defense(e, 4.0) == 0.0
    assert ctx.steam.scald_defense(e, 4.0, host_reduced=True) == 0.0


def test_blacklisted_types_ignore_scalding():
    from elemental_reactions.config import ReactionConfig

    ctx = EngineContext.create(ReactionConfig.model_validate({"steam": {"blacklist": ["blaze"]}}), seed=1)
    blaze = ctx.world.add(Combatant("b", type_id="blaze"))
    assert ctx.steam.scald_defense(blaze, 4.0) == 0.0
    zombie = ctx.world.add(Combatant("z", type_id="zombie"))
    assert ctx.steam.scald_defense(zombie, 4.0) == pytest.approx(4.0)


@pytest.mark.parametrize("levels, immune", [(15, False), (16, True), (40, True)])
def test_fire_resistance_threshold_grants_scald_immunity(levels, immune):
    ctx = EngineContext.create(seed=1)
    e = ctx.world.add(Combatant("e"))
    e.equip(Slot.CHEST, EquippedItem("salamander", resistance={Element.FIRE: levels}))
    # each resistance level is worth 5 points against the threshold of 80
    assert ctx.steam.is_scald_immune(e) is immune
    if immune:
        assert ctx.steam.scald_defense(e, 4.0) == 0.0
    else:
        assert ctx.steam.scald_defense(e, 4.0) > 0.0


def test_host_reduced_scald_is_scaled_back_up():
    ctx = EngineContext.create(seed=1)
    e = ctx.world.add(Combatant("e"))
    e.equip(Slot.FEET, EquippedItem("boots", fire_protection=4))
    raw = reconstruct_raw_damage(2.72, 8)
    assert raw == pytest.approx(4.0)
    reduced = ctx.steam.scald_defense(e, 2.72, host_reduced=True)
    assert reduced == pytest.approx(4.0 * (1.0 - 0.125))


def test_high_heat_cloud_scalds_once_per_second():
    ctx = EngineContext.create(seed=1)
    e = ctx.world.add(Combatant("e"))
    ctx.wetness.add_levels(e, 2)
    ctx.world.clouds.spawn(position=e.position, radius=2.0, high_heat=True, level=1, now=0, duration=100)
    ctx.steam.tick(e, 10)
    assert e.health == pytest.approx(18.8)
    assert e.damage_log[-1][0] is DamageKind.SCALD
    assert ctx.wetness.level(e) == 0
    ctx.steam.tick(e, 20)
    assert e.health == pytest.approx(18.8)
    ctx.steam.tick(e, 30)
    assert e.health == pytest.approx(17.6)


def test_scald_rate_does_not_depend_on_the_sampling_interval():
    from elemental_reactions.config import ReactionConfig

    ctx = EngineContext.create(ReactionConfig.model_validate({"steam": {"effect_interval_ticks": 3}}), seed=1)
    e = ctx.world.add(Combatant("e"))
    ctx.world.clouds.spawn(position=e.position, radius=2.0, high_heat=True, level=1, now=0, duration=200)
    for now in range(1, 61):
        ctx.steam.tick(e, now)
    scalds = [amount for kind, amount in e.damage_log if kind is DamageKind.SCALD]
    # sampled on ticks 3, 24 and 45
    assert len(scalds) == 3
    assert e.health == pytest.approx(20.0 - 3 * 1.2)


def test_low_heat_cloud_condenses_wetness():
    ctx = EngineContext.create(seed=1)
    e = ctx.world.add(Combatant("e"))
    ctx.world.clouds.spawn(position=(1.0, 0.0, 0.0), radius=2.5, high_heat=False, level=2, now=0, duration=200)
    for now in (10, 20, 30):
        ctx.steam.tick(e, now)
    assert ctx.wetness.level(e) == 0
    ctx.steam.tick(e, 40)
    assert ctx.wetness.level(e) == 1
    assert e.health == 20.0


def test_leaving_the_cloud_resets_condensation():
    ctx = EngineContext.create(seed=1)
    e = ctx.world.add(Combatant("e"))
    ctx.world.clouds.spawn(position=(0.0, 0.0, 0.0), radius=2.5, high_heat=False, level=2, now=0, duration=200)
    ctx.steam.tick(e, 10)
    ctx.steam.tick(e, 20)
    e.position = (50.0, 0.0, 0.0)
    ctx.steam.tick(e, 30)
    assert ctx.world.statuses.get("e").condensation_ticks == 0
