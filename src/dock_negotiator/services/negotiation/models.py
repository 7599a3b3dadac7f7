"""Negotiation strategy domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from ...config import settings
from ...models.domain import ContractRuleSet, TimeOfDay

OfferVerdict = Literal["IDEAL", "ACCEPTABLE", "SUBOPTIMAL", "OK (within tolerance)"]


@dataclass(frozen=True, slots=True)
class StrategyConfig:
    probe_interval_minutes: int = settings.probe_interval_minutes
    probe_horizon_minutes: int = settings.probe_horizon_minutes
    step_jump_threshold: float = settings.step_jump_threshold
    acceptable_tolerance_minutes: int = settings.acceptable_tolerance_minutes
    reluctant_extension_minutes: int = settings.reluctant_extension_minutes
    reluctant_cost_weight: float = settings.reluctant_cost_weight
    max_pushback_attempts: int = settings.max_pushback_attempts


@dataclass(frozen=True, slots=True)
class StrategyParams:
    original_minutes: TimeOfDay
    delay_minutes: int
    shipment_value: float
    retailer: Optional[str]
    rules: ContractRuleSet


@dataclass(frozen=True, slots=True)
class ZoneThreshold:
    max_minutes: TimeOfDay
    cost: float
    description: str


@dataclass(frozen=True, slots=True)
class CostThresholds:
    ideal: float
    acceptable: float
    reluctant: float


@dataclass(frozen=True, slots=True)
class StrategyDisplay:
    ideal_before: str
    acceptable_before: str
    reluctant_after: str
    actual_arrival_time: str


@dataclass(frozen=True, slots=True)
class NegotiationStrategy:
    ideal: ZoneThreshold
    acceptable: ZoneThreshold
    reluctant: ZoneThreshold
    cost_thresholds: CostThresholds
    actual_arrival_minutes: TimeOfDay
    max_pushback_attempts: int
    display: StrategyDisplay


@dataclass(frozen=True, slots=True)
class OfferEvaluation:
    verdict: OfferVerdict
    acceptable: bool
    reason: str
    suggested_counter_offer: Optional[str] = None
