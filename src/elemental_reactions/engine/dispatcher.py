from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..combat.damage import DamageBreakdown, DamageInputs, compute_damage
from ..combat.entity import DamageKind
from ..combat.stats import attack_element, dominant_element
from ..combat.steam import NO_TRIGGER, SteamOutcome, SteamTrigger, apply_self_drying_penalty
from ..elements import Element
from ..events import HIT_RESOLVED
from .context import EngineContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HitEvent:
    target_id: str
    amount: float
    kind: DamageKind = DamageKind.PHYSICAL
    attacker_id: Optional[str] = None


class SideEffect:
    pass


@dataclass(frozen=True)
class SelfDry(SideEffect):
    attacker_id: str
    layers: int


@dataclass(frozen=True)
class SpawnCloud(SideEffect):
    attacker_id: Optional[str]
    target_id: str
    trigger: SteamTrigger


@dataclass(frozen=True)
class StripWetness(SideEffect):
    entity_id: str


@dataclass(frozen=True)
class ApplyScorched(SideEffect):
    entity_id: str
    strength: int
    duration_ticks: int


@dataclass(frozen=True)
class InfectSpores(SideEffect):
    entity_id: str
    layers: int = 1


@dataclass(frozen=True)
class ParasiticDrain(SideEffect):
    attacker_id: str
    target_id: str
    nature_power: int


@dataclass(frozen=True)
class ToxicBlast(SideEffect):
    attacker_id: str
    target_id: str
    fire_power: int


@dataclass(frozen=True)
class WildfireEjection(SideEffect):
    victim_id: str
    attacker_id: Optional[str] = None


@dataclass
class HitResolution:
    damage: float
    breakdown: Optional[DamageBreakdown] = None
    side_effects: List[SideEffect] = field(default_factory=list)
    cancelled: bool = False
    steam: SteamTrigger = NO_TRIGGER


def resolve_hit(ctx: EngineContext, event: HitEvent) -> HitResolution:
    """Compute the final damage of one hit and the side effects it causes.

    Reads state only; mutations are returned as side effects. Order: fire
    suppression, stat totals, damage pipeline, steam trigger (self-drying may cut
    this hit's damage), scorched ignition, nature reactions.
    """
    now = ctx.now
    target = ctx.world.get(event.target_id)
    if target is None or not target.alive:
        return HitResolution(damage=0.0, cancelled=True)
    if ctx.scorched.suppresses(target, event.kind):
        logger.debug("Fire damage to scorched %s suppressed", target.entity_id)
        return HitResolution(damage=0.0, cancelled=True)

    target_totals = ctx.stats.totals(target)
    attacker = ctx.world.get(event.attacker_id)
    if attacker is None:
        damage = max(0.0, float(event.amount))
        damage *= ctx.wetness.incoming_multiplier(target, event.kind)
        damage *= ctx.spores.incoming_multiplier(target, event.kind)
        effects: List[SideEffect] = []
        if event.kind.is_fire and ctx.spores.can_wildfire(target, target_totals, now):
            effects.append(WildfireEjection(target.entity_id))
        return HitResolution(damage=damage, side_effects=effects)

    attacker_totals = ctx.stats.totals(attacker)
    element = attack_element(attacker, attacker_totals)
    breakdown = compute_damage(
        DamageInputs(
            physical=event.amount,
            enhancement=attacker_totals.enhancement_of(element),
            resistance=target_totals.resistance_of(element),
            wetness_level=ctx.wetness.level(target),
            attack_element=element,
            target_element=dominant_element(target),
        ),
        ctx.provider.config.damage,
        ctx.provider.config.wetness,
        ctx.provider.restraints,
    )
    damage = breakdown.total * ctx.spores.incoming_multiplier(target, event.kind)
    effects = []

    trigger = ctx.steam.evaluate(attacker, target, attacker_totals, target_totals, element, now)
    if trigger.outcome is SteamOutcome.SELF_DRY:
        damage = apply_self_drying_penalty(damage, ctx.provider.config.steam.self_drying_penalty)
        effects.append(SelfDry(attacker.entity_id, trigger.layers))
    elif trigger.outcome in (SteamOutcome.HIGH_HEAT, SteamOutcome.LOW_HEAT):
        effects.append(SpawnCloud(attacker.entity_id, target.entity_id, trigger))
    elif trigger.outcome is SteamOutcome.STRIP:
        effects.append(StripWetness(target.entity_id))

    strength = ctx.scorched.roll_trigger(attacker, target, attacker_totals, target_totals, element)
    if strength is not None:
        effects.append(ApplyScorched(target.entity_id, strength, ctx.provider.config.scorched.duration_ticks))

    if element is Element.NATURE:
        nature_power = attacker_totals.enhancement_of(Element.NATURE)
        if ctx.spores.roll_parasite(attacker, nature_power):
            effects.append(InfectSpores(target.entity_id, 1))
        if ctx.spores.can_drain(attacker, target, nature_power, now):
            effects.append(ParasiticDrain(attacker.entity_id, target.entity_id, nature_power))
    elif element is Element.FIRE:
        fire_power = attacker_totals.enhancement_of(Element.FIRE)
        if (
            event.kind is not DamageKind.EXPLOSION
            and ctx.spores.stacks(target) > 0
            and fire_power >= ctx.provider.config.spores.blast_trigger_threshold
        ):
            effects.append(ToxicBlast(attacker.entity_id, target.entity_id, fire_power))

    if (element is Element.FIRE or event.kind.is_fire) and ctx.spores.can_wildfire(target, target_totals, now):
        effects.append(WildfireEjection(target.entity_id, attacker.entity_id))

    return HitResolution(damage=max(0.0, damage), breakdown=breakdown, side_effects=effects, steam=trigger)


class HitDispatcher:
    """Applies resolved hits: damage lands immediately, side effects at the end of the tick."""

    def __init__(self, ctx: EngineContext) -> None:
        self.ctx = ctx

    def dispatch(self, event: HitEvent) -> HitResolution:
        resolution = resolve_hit(self.ctx, event)
        now = self.ctx.now
        dealt = 0.0
        if not resolution.cancelled:
            target = self.ctx.world.get(event.target_id)
            if target is not None:
                dealt = target.hurt(resolution.damage, event.kind)
            for effect in resolution.side_effects:
                self.ctx.deferred.defer(type(effect).__name__, self._apply_effect, effect)
        self.ctx.sink.trace(HIT_RESOLVED, lambda: self._hit_payload(event, resolution, dealt, now))
        return resolution

    @staticmethod
    def _hit_payload(event: HitEvent, resolution: HitResolution, dealt: float, now: int) -> dict:
        tags = ["damage", event.kind.value]
        if resolution.cancelled:
            tags.append("cancelled")
        if resolution.breakdown is not None and resolution.breakdown.floored:
            tags.append("floored")
        return {
            "tick": now,
            "actor": event.attacker_id or "environment",
            "action": "hit",
            "target": event.target_id,
            "value": resolution.damage,
            "tags": tuple(tags),
            "dealt": dealt,
            "breakdown": resolution.breakdown.to_dict() if resolution.breakdown is not None else None,
            "steam": resolution.steam.outcome.value,
            "side_effects": [type(e).__name__ for e in resolution.side_effects],
        }

    def _apply_effect(self, effect: SideEffect) -> None:
        ctx = self.ctx
        now = ctx.now
        world = ctx.world
        if isinstance(effect, SelfDry):
            attacker = world.get(effect.attacker_id)
            if attacker is not None:
                ctx.steam.self_dry(attacker, effect.layers, now)
        elif isinstance(effect, SpawnCloud):
            target = world.get(effect.target_id)
            if target is not None:
                ctx.steam.spawn(effect.trigger, world.get(effect.attacker_id), target, now)
        elif isinstance(effect, StripWetness):
            entity = world.get(effect.entity_id)
            if entity is not None:
                ctx.wetness.strip(entity)
        elif isinstance(effect, ApplyScorched):
            entity = world.get(effect.entity_id)
            if entity is not None:
                ctx.scorched.apply(entity, effect.strength, effect.duration_ticks, now)
        elif isinstance(effect, InfectSpores):
            entity = world.get(effect.entity_id)
            if entity is not None:
                ctx.spores.stack(entity, effect.layers)
        elif isinstance(effect, ParasiticDrain):
            attacker = world.get(effect.attacker_id)
            target = world.get(effect.target_id)
            if attacker is not None and target is not None:
                ctx.spores.drain(attacker, target, effect.nature_power, now)
        elif isinstance(effect, ToxicBlast):
            attacker = world.get(effect.attacker_id)
            target = world.get(effect.target_id)
            if attacker is not None and target is not None:
                ctx.spores.toxic_blast(attacker, target, effect.fire_power, now)
        elif isinstance(effect, WildfireEjection):
            victim = world.get(effect.victim_id)
            if victim is not None and victim.alive:
                ctx.spores.wildfire(victim, world.get(effect.attacker_id), now)
        else:
            logger.warning("Unknown side effect: %r", effect)
