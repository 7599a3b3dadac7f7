"""Cost of accepting an offered dock time under a contract rule set."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ...models.domain import (
    MINUTES_PER_HOUR,
    ContractRuleSet,
    CostImpactResult,
    CostLineItem,
    PartyPenalty,
    TimeOfDay,
)
from ..time_normalizer import format_minutes_to_human, time_difference_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CostParams:
    """Inputs to a single cost evaluation. Times may exceed one day when offsets apply."""

    original_minutes: TimeOfDay
    offered_minutes: TimeOfDay
    shipment_value: float = 0.0
    retailer: Optional[str] = None


def _money(value: float) -> float:
    return round(value, 2)


def calculate_dwell_time_cost(
    delay_minutes: int, rules: ContractRuleSet
) -> tuple[float, tuple[CostLineItem, ...]]:
    """Charge each tier for the part of ``[free period, delay]`` it covers."""

    delay = max(0, int(delay_minutes))
    free = rules.dwell_free_minutes
    breakdown: list[CostLineItem] = []
    total = 0.0
    for tier in rules.dwell_tiers:
        start = max(tier.from_minutes, free)
        end = delay if tier.to_minutes is None else min(tier.to_minutes, delay)
        overlap = end - start
        if overlap <= 0:
            continue
        cost = overlap / MINUTES_PER_HOUR * tier.rate_per_hour
        total += cost
        breakdown.append(
            CostLineItem(
                description=f"Dwell {format_minutes_to_human(start)}-{format_minutes_to_human(end)} "
                f"@ ${tier.rate_per_hour:.2f}/hr",
                cost=_money(cost),
                minutes=overlap,
                rate_per_hour=tier.rate_per_hour,
            )
        )
    return _money(total), tuple(breakdown)


def penalties_for_retailer(penalties: Iterable[PartyPenalty], retailer: Optional[str]) -> list[PartyPenalty]:
    """Entries naming the retailer; all entries when none does."""

    entries = list(penalties)
    if not retailer:
        return entries
    needle = retailer.strip().lower()
    matching = [
        penalty
        for penalty in entries
        if penalty.party_name and (needle in penalty.party_name.lower() or penalty.party_name.lower() in needle)
    ]
    return matching or entries


def _price_penalty(penalty: PartyPenalty, shipment_value: float) -> CostLineItem:
    label = f"{penalty.party_name or 'Contract'} {penalty.penalty_type or 'penalty'}".strip()
    if penalty.percentage is not None:
        return CostLineItem(
            description=f"{label} ({penalty.percentage:g}% of ${shipment_value:,.2f})",
            cost=_money(shipment_value * penalty.percentage / 100.0),
        )
    if penalty.flat_fee is not None:
        return CostLineItem(description=f"{label} (flat fee)", cost=_money(penalty.flat_fee))
    if penalty.per_occurrence is not None:
        return CostLineItem(description=f"{label} (per occurrence)", cost=_money(penalty.per_occurrence))
    return CostLineItem(description=f"{label} (no amount specified)", cost=0.0)


def calculate_total_cost_impact(params: CostParams, rules: ContractRuleSet) -> CostImpactResult:
    """Sum dwell, OTIF and party penalty costs for one offered time.

    Party penalties are charged for every offer, on time or not. Per-occurrence
    penalties count one occurrence per call.
    """
    difference = time_difference_minutes(params.original_minutes, params.offered_minutes)
    delay = max(0, difference)
    shipment_value = max(0.0, float(params.shipment_value or 0.0))

    dwell_total, dwell_breakdown = calculate_dwell_time_cost(delay, rules)

    outside_window = rules.has_compliance_window and abs(difference) > rules.compliance_window_minutes

    penalty_breakdown: list[CostLineItem] = []
    otif_total = 0.0
    if outside_window:
        for penalty in penalties_for_retailer(rules.otif_penalties, params.retailer):
            item = _price_penalty(penalty, shipment_value)
            otif_total += item.cost
            penalty_breakdown.append(item)

    party_total = 0.0
    for penalty in penalties_for_retailer(rules.party_penalties, params.retailer):
        item = _price_penalty(penalty, shipment_value)
        party_total += item.cost
        penalty_breakdown.append(item)

    total = max(0.0, _money(dwell_total + otif_total + party_total))
    return CostImpactResult(
        dwell_total=dwell_total,
        otif_total=_money(otif_total),
        party_penalty_total=_money(party_total),
        total_cost=total,
        outside_window=outside_window,
        difference_minutes=difference,
        dwell_breakdown=dwell_breakdown,
        penalty_breakdown=tuple(penalty_breakdown),
    )
