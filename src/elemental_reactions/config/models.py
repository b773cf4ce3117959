from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_RESTRAINTS = ["fire->nature", "nature->thunder", "thunder->frost", "frost->fire"]
DEFAULT_TIERS = [0.40, 0.30, 0.15, 0.10, 0.05]


def _at_least(value, minimum, name: str):
    if value < minimum:
        logger.warning("Config value %s=%r below minimum %r; using %r", name, value, minimum, minimum)
        return minimum
    return value


def _ratio(value: float, name: str) -> float:
    if value < 0.0 or value > 1.0:
        clamped = min(1.0, max(0.0, value))
        logger.warning("Config value %s=%r outside [0, 1]; using %r", name, value, clamped)
        return clamped
    return value


class StatsSettings(BaseModel):
    """Points granted per enchantment level when aggregating equipment."""

    strength_per_level: int = Field(5, description="Enhancement points per enhancement level")
    resist_per_level: int = Field(5, description="Resistance points per resistance level")

    @field_validator("strength_per_level", "resist_per_level")
    @classmethod
    def positive_divisor(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)


class DamageSettings(BaseModel):
    strength_per_half_damage: int = Field(10, description="Enhancement points per 0.5 elemental damage")
    resist_per_half_reduction: int = Field(10, description="Resistance points per 0.5 damage reduction")
    damage_multiplier: float = Field(1.0, description="Global multiplier on elemental damage")
    resistance_multiplier: float = Field(1.0, description="Global multiplier on elemental reduction")
    restraint_multiplier: float = Field(1.5, description="Multiplier for a Strong restraint")
    weak_multiplier: float = Field(0.5, description="Multiplier for a Weak restraint")
    restraint_floor_ratio: float = Field(0.5, description="Share of pre-resist damage kept on a Strong hit")
    restraints: List[str] = Field(default_factory=lambda: list(DEFAULT_RESTRAINTS))

    @field_validator("strength_per_half_damage", "resist_per_half_reduction")
    @classmethod
    def positive_divisor(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)

    @field_validator("damage_multiplier", "resistance_multiplier", "weak_multiplier")
    @classmethod
    def non_negative(cls, v: float, info) -> float:
        return _at_least(v, 0.0, info.field_name)

    @field_validator("restraint_multiplier")
    @classmethod
    def strong_at_least_one(cls, v: float, info) -> float:
        return _at_least(v, 1.0, info.field_name)

    @field_validator("restraint_floor_ratio")
    @classmethod
    def unit_ratio(cls, v: float, info) -> float:
        return _ratio(v, info.field_name)


class ResolverSettings(BaseModel):
    max_stat_cap: int = Field(100, description="Global cap for forced point values")
    points_step: int = Field(10, description="Resolved points are rounded to multiples of this step")
    tier_probabilities: List[float] = Field(default_factory=lambda: list(DEFAULT_TIERS))
    generated_cap_multiplier: int = Field(4, description="Cap multiplier for procedurally generated totals")

    @field_validator("max_stat_cap", "points_step", "generated_cap_multiplier")
    @classmethod
    def positive(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)

    @field_validator("tier_probabilities")
    @classmethod
    def five_tiers(cls, v: List[float]) -> List[float]:
        if len(v) != 5 or any(p < 0 for p in v):
            logger.warning("tier_probabilities must hold 5 non-negative weights, got %r; using defaults", v)
            return list(DEFAULT_TIERS)
        return list(v)


class ForcedSettings(BaseModel):
    """Raw forced attribute lines; parsed by the config provider."""

    entities: List[str] = Field(default_factory=list, description="entity_id,attack,enhance,points,resist,points")
    weapons: List[str] = Field(default_factory=list, description="item_id,attack")
    armor: List[str] = Field(default_factory=list, description="item_id,enhance,points,resist,points")


class WetnessSettings(BaseModel):
    max_level: int = 5
    fire_reduction_per_level: float = 0.1
    fire_reduction_cap: float = 0.5
    resist_bonus_per_level: float = 0.1
    resist_bonus_cap: float = 0.5
    rain_gain_interval_seconds: int = 10
    decay_base_seconds: int = 10
    shallow_water_ratio: float = 0.5
    splash_add_level: int = 2
    fire_drying_seconds: int = 3
    sample_interval_ticks: int = 20
    water_native_immune: bool = True
    immune_dimensions: List[str] = Field(default_factory=lambda: ["the_nether"])
    blacklist: List[str] = Field(default_factory=list)

    @field_validator(
        "max_level",
        "rain_gain_interval_seconds",
        "decay_base_seconds",
        "splash_add_level",
        "fire_drying_seconds",
        "sample_interval_ticks",
    )
    @classmethod
    def positive(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)

    @field_validator("fire_reduction_per_level", "fire_reduction_cap", "resist_bonus_per_level", "resist_bonus_cap", "shallow_water_ratio")
    @classmethod
    def unit_ratio(cls, v: float, info) -> float:
        return _ratio(v, info.field_name)


class SteamSettings(BaseModel):
    enabled: bool = True
    fire_trigger_threshold: int = 50
    frost_trigger_threshold: int = 50
    condensation_step_frost: int = 20
    condensation_step_fire: int = 20
    high_heat_base_radius: float = 2.0
    high_heat_radius_per_level: float = 0.5
    low_heat_radius: float = 2.5
    high_heat_base_duration: int = 100
    high_heat_duration_per_level: int = 20
    low_heat_base_duration: int = 100
    low_heat_duration_per_level: int = 20
    cloud_ceiling: float = 2.0
    scald_base_damage: float = 1.0
    scald_scale_per_level: float = 0.2
    scald_weakness_multiplier: float = 1.5
    scald_spore_multiplier: float = 1.5
    condensation_delay_ticks: int = 40
    fire_protection_cap: float = 0.5
    general_protection_cap: float = 0.25
    damage_floor_ratio: float = 0.5
    immunity_threshold: int = 80
    trigger_cooldown_ticks: int = 200
    effect_interval_ticks: int = 10
    low_heat_excluded_dimensions: List[str] = Field(default_factory=lambda: ["the_nether"])
    blacklist: List[str] = Field(default_factory=list)
    self_drying_penalty: float = 0.3
    self_drying_threshold: int = 20
    spore_growth_ticks: int = 40

    @field_validator(
        "condensation_step_frost",
        "condensation_step_fire",
        "effect_interval_ticks",
        "self_drying_threshold",
        "spore_growth_ticks",
    )
    @classmethod
    def positive_divisor(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)

    @field_validator("fire_protection_cap", "general_protection_cap", "damage_floor_ratio", "self_drying_penalty")
    @classmethod
    def unit_ratio(cls, v: float, info) -> float:
        return _ratio(v, info.field_name)

    @field_validator("trigger_cooldown_ticks", "condensation_delay_ticks", "high_heat_base_duration", "low_heat_base_duration")
    @classmethod
    def non_negative(cls, v: int, info) -> int:
        return _at_least(v, 0, info.field_name)


class ScorchedSettings(BaseModel):
    trigger_threshold: int = 50
    base_chance: float = 0.1
    chance_per_point: float = 0.002
    duration_ticks: int = 100
    cooldown_ticks: int = 100
    base_damage: float = 1.0
    scaling_step: int = 20
    fire_immune_modifier: float = 0.5
    nature_multiplier: float = 1.5
    fire_protection_reduction: float = 0.5
    general_protection_reduction: float = 0.25
    immunity_threshold: int = 80
    blacklist: List[str] = Field(default_factory=list)

    @field_validator("scaling_step")
    @classmethod
    def positive_divisor(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)

    @field_validator("duration_ticks", "cooldown_ticks")
    @classmethod
    def non_negative(cls, v: int, info) -> int:
        return _at_least(v, 0, info.field_name)

    @field_validator("fire_protection_reduction", "general_protection_reduction")
    @classmethod
    def unit_ratio(cls, v: float, info) -> float:
        return _ratio(v, info.field_name)


class SporeSettings(BaseModel):
    max_stacks: int = 10
    duration_per_stack_seconds: int = 5
    thunder_multiplier: float = 2.0
    fire_duration_reduction: float = 0.5
    poison_damage: float = 0.5
    fire_vulnerability_per_stack: float = 0.1
    physical_resist_per_stack: float = 0.05
    physical_resist_cap: float = 0.9

    parasite_base_threshold: int = 20
    parasite_base_chance: float = 0.1
    parasite_scaling_step: int = 20
    parasite_scaling_chance: float = 0.05
    parasite_wetness_bonus: float = 0.05
    siphon_threshold: int = 30
    drain_power_step: int = 20
    siphon_heal: float = 1.0
    drain_cooldown_ticks: int = 100

    blast_trigger_threshold: int = 30
    blast_scorch_base_seconds: float = 3.0
    blast_weak_ignite_multiplier: float = 0.5
    blast_base_damage: float = 4.0
    blast_growth_damage: float = 1.0
    blast_base_range: float = 3.0
    blast_growth_range: float = 0.5
    blast_base_scorch_seconds: float = 4.0
    blast_growth_scorch_seconds: float = 1.0
    blast_protection_cap: float = 0.5
    blast_general_protection_cap: float = 0.25

    wildfire_trigger_threshold: int = 50
    wildfire_radius: float = 4.0
    wildfire_spore_amount: int = 2
    wildfire_cooldown_ticks: int = 200

    contagion_check_interval: int = 20
    contagion_base_radius: float = 3.0
    contagion_radius_per_stack: float = 0.5
    contagion_intensity_ratio: float = 0.5
    contagion_wetness_threshold: int = 1
    contagion_wetness_conversion_ratio: float = 0.5
    contagion_wetness_max_bonus: int = 3
    contagion_consumes_wetness: bool = True

    @field_validator("max_stacks", "duration_per_stack_seconds", "parasite_scaling_step", "drain_power_step", "contagion_check_interval")
    @classmethod
    def positive_divisor(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)

    @field_validator("physical_resist_cap", "blast_protection_cap", "blast_general_protection_cap")
    @classmethod
    def unit_ratio(cls, v: float, info) -> float:
        return _ratio(v, info.field_name)


class LoopSettings(BaseModel):
    tick_rate: float = Field(20.0, description="Target ticks per second; 0 runs unthrottled")
    max_steps: Optional[int] = Field(None, description="Stop automatically after this many ticks")
    log_capacity: int = Field(1000, description="Entries kept by the reaction log")

    @field_validator("log_capacity")
    @classmethod
    def positive(cls, v: int, info) -> int:
        return _at_least(v, 1, info.field_name)


class ReactionConfig(BaseModel):
    """Complete tunable configuration of the reaction engine."""

    stats: StatsSettings = Field(default_factory=StatsSettings)
    damage: DamageSettings = Field(default_factory=DamageSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    forced: ForcedSettings = Field(default_factory=ForcedSettings)
    wetness: WetnessSettings = Field(default_factory=WetnessSettings)
    steam: SteamSettings = Field(default_factory=SteamSettings)
    scorched: ScorchedSettings = Field(default_factory=ScorchedSettings)
    spores: SporeSettings = Field(default_factory=SporeSettings)
    loop: LoopSettings = Field(default_factory=LoopSettings)
