"""Derive a concrete contract rule set from extracted contract terms."""

from __future__ import annotations

import logging
from typing import Optional

from ...models.domain import ContractRuleSet, DwellTier, PartyPenalty
from ...schemas.contract import DelayPenaltyModel, ExtractedContractTerms, PartyPenaltyModel

logger = logging.getLogger(__name__)

_OTIF_MARKERS = ("otif", "on-time", "on time", "late delivery", "late arrival")


def _select_dwell_penalty(terms: ExtractedContractTerms) -> Optional[DelayPenaltyModel]:
    for penalty in terms.delayPenalties:
        name = penalty.name.lower()
        if "dwell" in name or "detention" in name:
            return penalty
    return None


def _derive_dwell_tiers(penalty: DelayPenaltyModel) -> tuple[DwellTier, ...]:
    """Copy tiers sorted by start, dropping any that are inverted, negative or overlapping."""

    kept: list[DwellTier] = []
    ordered = sorted(penalty.tiers, key=lambda tier: tier.fromMinutes)
    for tier in ordered:
        start = int(tier.fromMinutes)
        end = None if tier.toMinutes is None else int(tier.toMinutes)
        if start < 0 or (end is not None and end <= start):
            logger.warning(f"Dropping dwell tier {start}-{end} from '{penalty.name}': non-increasing bounds")
            continue
        if tier.ratePerHour < 0:
            logger.warning(f"Dropping dwell tier {start}-{end} from '{penalty.name}': negative rate {tier.ratePerHour}")
            continue
        if kept:
            previous_end = kept[-1].to_minutes
            if previous_end is None or start < previous_end:
                logger.warning(f"Dropping dwell tier {start}-{end} from '{penalty.name}': overlaps previous tier")
                continue
        kept.append(DwellTier(from_minutes=start, to_minutes=end, rate_per_hour=float(tier.ratePerHour)))
    return tuple(kept)


def _split_party_penalty(entry: PartyPenaltyModel) -> list[PartyPenalty]:
    """One line item per populated amount so each entry carries at most one amount."""

    base = {
        "party_name": entry.partyName,
        "penalty_type": entry.penaltyType,
        "conditions": entry.conditions,
    }
    items: list[PartyPenalty] = []
    if entry.percentage is not None:
        items.append(PartyPenalty(percentage=float(entry.percentage), **base))
    if entry.flatFee is not None:
        items.append(PartyPenalty(flat_fee=float(entry.flatFee), **base))
    if entry.perOccurrence is not None:
        items.append(PartyPenalty(per_occurrence=float(entry.perOccurrence), **base))
    if not items:
        logger.info(f"Penalty '{entry.penaltyType}' for '{entry.partyName}' has no amount; it contributes $0")
        items.append(PartyPenalty(**base))
    return items


def is_otif_penalty(penalty_type: str) -> bool:
    lowered = penalty_type.lower()
    return any(marker in lowered for marker in _OTIF_MARKERS)


def derive_contract_rules(terms: Optional[ExtractedContractTerms]) -> ContractRuleSet:
    """Convert optional extracted terms into a rule set.

    Absent sections produce empty components. Nothing is defaulted, so every
    dollar the cost engine reports traces back to an explicit contract clause.
    """
    if terms is None:
        return ContractRuleSet.empty()

    dwell_tiers: tuple[DwellTier, ...] = ()
    dwell_free_minutes = 0
    dwell_penalty = _select_dwell_penalty(terms)
    if dwell_penalty is not None:
        dwell_tiers = _derive_dwell_tiers(dwell_penalty)
        dwell_free_minutes = max(0, int(dwell_penalty.freeTimeMinutes))
    elif terms.delayPenalties:
        logger.info("No dwell/detention penalty in contract terms; dwell cost will be $0")

    window_minutes = 0
    has_window = False
    for window in terms.complianceWindows:
        if window.windowMinutes >= 0:
            window_minutes = int(window.windowMinutes)
            has_window = True
            break

    otif_penalties: list[PartyPenalty] = []
    party_penalties: list[PartyPenalty] = []
    for entry in terms.partyPenalties:
        target = otif_penalties if is_otif_penalty(entry.penaltyType) else party_penalties
        target.extend(_split_party_penalty(entry))

    detention_rate = None
    if terms.hosRequirements is not None and terms.hosRequirements.driverDetentionRatePerHour is not None:
        detention_rate = float(terms.hosRequirements.driverDetentionRatePerHour)

    rules = ContractRuleSet(
        dwell_tiers=dwell_tiers,
        dwell_free_minutes=dwell_free_minutes,
        compliance_window_minutes=window_minutes,
        has_compliance_window=has_window,
        otif_penalties=tuple(otif_penalties),
        party_penalties=tuple(party_penalties),
        detention_rate_per_hour=detention_rate,
        source_document=terms.meta.documentName if terms.meta is not None else None,
    )
    logger.debug(
        f"Derived rules: {len(rules.dwell_tiers)} dwell tier(s), window={rules.compliance_window_minutes}, "
        f"{len(rules.otif_penalties)} OTIF and {len(rules.party_penalties)} party penalt(ies)"
    )
    return rules
