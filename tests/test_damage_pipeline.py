from __future__ import annotations

import pytest

from elemental_reactions.combat.damage import DamageInputs, compute_damage, wetness_multiplier
from elemental_reactions.config import ConfigProvider, ReactionConfig
from elemental_reactions.elements import Element, Restraint

CFG = ReactionConfig()
PROVIDER = ConfigProvider(CFG)


def run(enh: int, res: int, *, wet: int = 0, attack=Element.FIRE, target=None, physical: float = 0.0):
    return compute_damage(
        DamageInputs(
            physical=physical,
            enhancement=enh,
            resistance=res,
            wetness_level=wet,
            attack_element=attack,
            target_element=target,
        ),
        CFG.damage,
        CFG.wetness,
        PROVIDER.restraints,
    )


def test_neutral_hit_subtracts_resistance():
    bd = run(100, 20, physical=6.0)
    assert bd.pre_resist == pytest.approx(5.0)
    assert bd.reduction == pytest.approx(1.0)
    assert bd.final_elemental == pytest.approx(4.0)
    assert bd.total == pytest.approx(10.0)
    assert bd.restraint is Restraint.NEUTRAL
    assert bd.floored is False


def test_strong_restraint_keeps_floor_of_pre_resist():
    bd = run(100, 100, target=Element.NATURE)
    # Fully resisted, but a Strong hit keeps half the pre-resist damage
    assert bd.elemental_base == 0.0
    assert bd.restraint is Restraint.STRONG
    assert bd.final_elemental == pytest.approx(2.5)
    assert bd.floored is True


def test_strong_restraint_above_floor_is_not_flagged():
    bd = run(100, 0, target=Element.NATURE)
    assert bd.final_elemental == pytest.approx(7.5)
    assert bd.floored is False


def test_weak_restraint_has_no_floor():
    bd = run(100, 100, target=Element.FROST)
    assert bd.restraint is Restraint.WEAK
    assert bd.final_elemental == 0.0
    assert bd.floored is False


def test_wet_target_softens_fire_and_amplifies_thunder():
    assert run(100, 0, wet=3).final_elemental == pytest.approx(3.5)
    assert run(100, 0, wet=3, attack=Element.THUNDER).final_elemental == pytest.approx(6.5)
    # Nature ignores wetness
    assert run(100, 0, wet=3, attack=Element.NATURE).wetness_multiplier == 1.0


def test_wetness_multiplier_caps():
    assert wetness_multiplier(Element.FIRE, 3, CFG.wetness) == pytest.approx(0.7)
    assert wetness_multiplier(Element.FIRE, 10, CFG.wetness) == pytest.approx(0.5)
    assert wetness_multiplier(Element.FROST, 10, CFG.wetness) == pytest.approx(1.5)
    assert wetness_multiplier(None, 4, CFG.wetness) == 1.0


def test_no_attack_element_is_purely_physical():
    bd = run(100, 0, attack=None, physical=7.0)
    assert bd.total == 7.0
    assert bd.final_elemental == 0.0
    assert bd.to_dict()["restraint"] == "neutral"


def test_multipliers_scale_the_pipeline():
    cfg = ReactionConfig.model_validate({"damage": {"damage_multiplier": 2.0, "resistance_multiplier": 0.5}})
    bd = compute_damage(
        DamageInputs(0.0, 100, 40, 0, Element.FIRE, None), cfg.damage, cfg.wetness, ConfigProvider(cfg).restraints
    )
    # (5.0 - 2.0 * 0.5) * 2.0
    assert bd.final_elemental == pytest.approx(8.0)
