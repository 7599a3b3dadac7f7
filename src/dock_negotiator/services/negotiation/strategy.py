"""Derive negotiation zones by probing the cost engine, and judge offers against them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ...models.domain import ContractRuleSet, TimeOfDay
from ..costs.engine import CostParams, calculate_total_cost_impact
from ..time_normalizer import (
    minutes_to_time,
    minutes_to_time_12_hour,
    round_time_to_five_minutes,
)
from .models import (
    CostThresholds,
    NegotiationStrategy,
    OfferEvaluation,
    StrategyConfig,
    StrategyDisplay,
    StrategyParams,
    ZoneThreshold,
)

logger = logging.getLogger(__name__)

# Marginal-rate changes below a cent per probe interval are rounding noise.
_RATE_EPSILON = 0.01


@dataclass(frozen=True, slots=True)
class _Escalation:
    safe_until: TimeOfDay
    at: TimeOfDay
    kind: str


def _tier_boundaries(original: TimeOfDay, rules: ContractRuleSet) -> set[TimeOfDay]:
    points = {original + rules.dwell_free_minutes}
    for tier in rules.dwell_tiers:
        points.add(original + tier.from_minutes)
        if tier.to_minutes is not None:
            points.add(original + tier.to_minutes)
    return points


def _find_escalations(
    start: TimeOfDay,
    cost_at: Callable[[TimeOfDay], float],
    boundaries: set[TimeOfDay],
    config: StrategyConfig,
) -> list[_Escalation]:
    """Cost escalations after ``start``, in time order.

    A step jump is a rise of at least ``step_jump_threshold`` between adjacent
    probes. A rate rise is a steeper slope after a dwell tier boundary than before it.
    """
    interval = config.probe_interval_minutes
    end = start + config.probe_horizon_minutes
    regular = set(range(start, end + 1, interval))
    boundary_probes = {point for point in boundaries if start < point <= end}
    probes = sorted(regular | boundary_probes)
    costs = {probe: cost_at(probe) for probe in probes}

    escalations: list[_Escalation] = []
    for previous, current in zip(probes, probes[1:]):
        if costs[current] - costs[previous] >= config.step_jump_threshold:
            escalations.append(_Escalation(safe_until=previous, at=current, kind="step"))
        if current in boundary_probes:
            slope_before = costs[current] - cost_at(current - interval)
            slope_after = cost_at(current + interval) - costs[current]
            if slope_after - slope_before > _RATE_EPSILON:
                escalations.append(_Escalation(safe_until=current, at=current, kind="rate"))
    return escalations


def create_negotiation_strategy(
    params: StrategyParams, config: Optional[StrategyConfig] = None
) -> NegotiationStrategy:
    """Build ideal, acceptable and reluctant zones for one negotiation.

    Zone boundaries are found by sampling the cost engine rather than fixed
    offsets, so the strategy follows whatever contract is loaded:

    * ideal ends at the compliance window boundary,
    * acceptable ends at the last probe before the first cost escalation after
      the later of arrival and the ideal boundary,
    * reluctant ends before the next escalation.
    """
    config = config or StrategyConfig()
    rules = params.rules
    original = int(params.original_minutes)

    def cost_at(minutes: TimeOfDay) -> float:
        result = calculate_total_cost_impact(
            CostParams(
                original_minutes=original,
                offered_minutes=minutes,
                shipment_value=params.shipment_value,
                retailer=params.retailer,
            ),
            rules,
        )
        return result.total_cost

    ideal_max = original + rules.compliance_window_minutes
    arrival = original + max(0, int(params.delay_minutes))
    start = max(ideal_max, arrival)

    escalations = _find_escalations(start, cost_at, _tier_boundaries(original, rules), config)
    first = next((item for item in escalations if item.at > start), None)
    if first is not None:
        acceptable_max = first.safe_until
        acceptable_description = "Before the next cost escalation"
    else:
        acceptable_max = start + config.acceptable_tolerance_minutes
        acceptable_description = "Manageable cost growth"

    following = next((item for item in escalations if item.safe_until > acceptable_max), None)
    if following is not None:
        reluctant_max = following.safe_until
        reluctant_description = "Up to the following cost escalation"
    else:
        reluctant_max = acceptable_max + config.reluctant_extension_minutes
        reluctant_description = "Extended delay"

    ideal_cost = cost_at(ideal_max)
    acceptable_cost = cost_at(acceptable_max)
    reluctant_boundary_cost = cost_at(reluctant_max)
    reluctant_cost = round(
        acceptable_cost + (reluctant_boundary_cost - acceptable_cost) * config.reluctant_cost_weight, 2
    )

    logger.debug(
        f"Strategy for original={minutes_to_time(original)} arrival={minutes_to_time(arrival)}: "
        f"ideal<={ideal_max} (${ideal_cost}), acceptable<={acceptable_max} (${acceptable_cost}), "
        f"reluctant<={reluctant_max} (${reluctant_cost}), {len(escalations)} escalation(s)"
    )

    return NegotiationStrategy(
        ideal=ZoneThreshold(
            max_minutes=ideal_max,
            cost=ideal_cost,
            description="Within compliance window" if rules.has_compliance_window else "Original appointment",
        ),
        acceptable=ZoneThreshold(max_minutes=acceptable_max, cost=acceptable_cost, description=acceptable_description),
        reluctant=ZoneThreshold(max_minutes=reluctant_max, cost=reluctant_boundary_cost, description=reluctant_description),
        cost_thresholds=CostThresholds(ideal=ideal_cost, acceptable=acceptable_cost, reluctant=reluctant_cost),
        actual_arrival_minutes=arrival,
        max_pushback_attempts=config.max_pushback_attempts,
        display=StrategyDisplay(
            ideal_before=minutes_to_time(ideal_max),
            acceptable_before=minutes_to_time(acceptable_max),
            reluctant_after=minutes_to_time(reluctant_max),
            actual_arrival_time=minutes_to_time(arrival),
        ),
    )


def suggest_counter_offer(strategy: NegotiationStrategy) -> str:
    """The ideal boundary rounded up to five minutes, in 12-hour form."""
    return minutes_to_time_12_hour(round_time_to_five_minutes(strategy.ideal.max_minutes))


def evaluate_offer(offered_minutes: TimeOfDay, cost: float, strategy: NegotiationStrategy) -> OfferEvaluation:
    """Classify an offer. Rules are checked in order and the first match wins.

    ``offered_minutes`` is absolute, so next-day offers compare past every
    same-day boundary.
    """
    thresholds = strategy.cost_thresholds

    if offered_minutes <= strategy.ideal.max_minutes and cost <= thresholds.ideal:
        reason = "IDEAL - No cost impact" if cost == 0 else f"IDEAL - Minimal cost (${cost:,.2f})"
        return OfferEvaluation(verdict="IDEAL", acceptable=True, reason=reason)

    if offered_minutes <= strategy.acceptable.max_minutes and cost <= thresholds.acceptable:
        return OfferEvaluation(
            verdict="ACCEPTABLE",
            acceptable=True,
            reason=f"ACCEPTABLE - Cost (${cost:,.2f}) within threshold (${thresholds.acceptable:,.2f})",
        )

    too_late = offered_minutes > strategy.acceptable.max_minutes
    if too_late or cost > thresholds.reluctant:
        counter_offer = suggest_counter_offer(strategy)
        why = "Time too late" if too_late else "Cost too high"
        return OfferEvaluation(
            verdict="SUBOPTIMAL",
            acceptable=False,
            reason=f"SUBOPTIMAL - {why} (${cost:,.2f}). Counter-offer: {counter_offer}.",
            suggested_counter_offer=counter_offer,
        )

    return OfferEvaluation(
        verdict="OK (within tolerance)",
        acceptable=True,
        reason=f"OK (within tolerance) - Cost (${cost:,.2f}) below reluctant ceiling (${thresholds.reluctant:,.2f})",
    )
