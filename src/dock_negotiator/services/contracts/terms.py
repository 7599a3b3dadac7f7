"""Parsing and sanity checks for extracted contract terms."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from ...schemas.contract import ExtractedContractTerms

logger = logging.getLogger(__name__)


def parse_contract_terms(raw: Any) -> Optional[ExtractedContractTerms]:
    """Accept a JSON string, a mapping or a model and return a model.

    Empty or malformed input is logged and treated as absent terms.
    """
    if raw is None:
        return None
    if isinstance(raw, ExtractedContractTerms):
        return raw
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning(f"Ignoring malformed contract terms JSON: {exc}")
            return None
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring contract terms of unexpected type {type(raw).__name__}")
        return None
    try:
        terms = ExtractedContractTerms.model_validate(raw)
    except ValidationError as exc:
        logger.warning(f"Ignoring contract terms with invalid shape: {exc.error_count()} error(s)")
        return None

    if terms.meta is not None:
        logger.info(
            f"Loaded contract terms from '{terms.meta.documentName or 'unknown document'}' "
            f"(confidence={terms.meta.confidence}, warnings={len(terms.meta.warnings)})"
        )
    return terms


def _is_dwell_penalty(name: str) -> bool:
    lowered = name.lower()
    return "dwell" in lowered or "detention" in lowered


def validate_terms_for_cost_calculation(
    terms: Optional[ExtractedContractTerms],
) -> tuple[bool, list[str]]:
    """Report which cost categories the terms can support.

    Missing sections are never filled in; they simply cost $0. Terms are usable
    when at least one cost-bearing section is present.
    """
    warnings: list[str] = []
    if terms is None:
        warnings.append("No extracted terms provided - all costs will be $0")
        return False, warnings

    if not terms.delayPenalties:
        warnings.append("No delay penalties in contract - dwell time cost will be $0")
    elif not any(_is_dwell_penalty(penalty.name) for penalty in terms.delayPenalties):
        warnings.append("No dwell/detention penalties found - dwell time cost will be $0")

    if not terms.complianceWindows:
        warnings.append("No compliance window specified - OTIF penalties will not apply")

    if not terms.partyPenalties:
        warnings.append("No party penalties in contract - chargeback cost will be $0")

    for penalty in terms.delayPenalties:
        for index, tier in enumerate(penalty.tiers):
            if tier.toMinutes is not None and tier.toMinutes <= tier.fromMinutes:
                warnings.append(f"{penalty.name} tier {index} has toMinutes <= fromMinutes")
            if tier.ratePerHour < 0:
                warnings.append(f"{penalty.name} tier {index} has negative rate: {tier.ratePerHour}")

    if terms.meta is not None and terms.meta.confidence == "low":
        warnings.append("Extraction confidence is LOW - review extracted terms carefully")

    valid = bool(terms.delayPenalties or terms.complianceWindows or terms.partyPenalties)
    return valid, warnings
