"""Combined accept/reject decision for a single offered dock time.

Cost acceptability and hours-of-service feasibility are evaluated separately
and combined here. Legal limits take precedence over cost preference when
choosing a counter-offer.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from ...models.domain import (
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
    CostImpactResult,
    DriverHOSStatus,
    HOSConstraint,
    HOSFeasibilityResult,
    TimeOfDay,
)
from ...schemas.hos import DriverHOSModel
from ...schemas.negotiation import NegotiationStrategyModel
from ..contracts.rules import derive_contract_rules
from ..contracts.terms import parse_contract_terms, validate_terms_for_cost_calculation
from ..costs.engine import CostParams, calculate_total_cost_impact
from ..hos.engine import HOSConfig, check_hos_feasibility
from ..negotiation.extractors import detect_day_offset, extract_time_from_message
from ..negotiation.models import NegotiationStrategy, StrategyConfig, StrategyParams
from ..negotiation.strategy import create_negotiation_strategy, evaluate_offer
from ..time_normalizer import (
    format_time_with_day_offset,
    minutes_to_time_12_hour,
    parse_time_to_minutes,
    round_time_to_five_minutes,
    time_difference_minutes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OfferAnalysisParams:
    """Inputs for one offer decision.

    ``extracted_terms``, ``pre_computed_strategy`` and ``driver_hos`` accept a
    model, a mapping or a JSON string. Malformed payloads are treated as absent.
    """

    offered_time_text: str
    original_appointment: str
    delay_minutes: int = 0
    shipment_value: float = 0.0
    retailer: Optional[str] = None
    extracted_terms: Any = None
    pre_computed_strategy: Any = None
    hos_enabled: bool = False
    current_time: Optional[str] = None
    driver_hos: Any = None
    driver_detention_rate: Optional[float] = None
    offered_day_offset: Optional[int] = None
    estimated_dock_minutes: Optional[int] = None
    strategy_config: Optional[StrategyConfig] = None
    hos_config: Optional[HOSConfig] = None


@dataclass(frozen=True, slots=True)
class OfferAnalysisResult:
    acceptable: bool
    parsed_offered_time: Optional[str]
    minutes_from_original: Optional[int]
    internal_reason: str
    suggested_counter_offer: Optional[str]
    cost: Optional[CostImpactResult] = None
    verdict: Optional[str] = None
    hos_checked: bool = False
    hos_feasible: bool = True
    hos_binding_constraint: Optional[HOSConstraint] = None
    hos_latest_legal_time: Optional[str] = None
    hos_requires_next_shift: bool = False
    hos_warnings: tuple[str, ...] = field(default_factory=tuple)
    combined_acceptable: bool = False
    day_offset: int = 0
    is_next_day: bool = False
    formatted_time: str = ""
    delay_hours: float = 0.0
    delay_description: str = ""


def _negative_result(reason: str) -> OfferAnalysisResult:
    return OfferAnalysisResult(
        acceptable=False,
        parsed_offered_time=None,
        minutes_from_original=None,
        internal_reason=reason,
        suggested_counter_offer=None,
    )


def _load_json(raw: Any, label: str) -> Any:
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning(f"Ignoring malformed {label} JSON: {exc}")
            return None
    return raw


def load_strategy(raw: Any) -> Optional[NegotiationStrategy]:
    if raw is None or isinstance(raw, NegotiationStrategy):
        return raw
    payload = _load_json(raw, "strategy")
    if payload is None:
        return None
    try:
        return NegotiationStrategyModel.model_validate(payload).to_domain()
    except ValidationError as exc:
        logger.warning(f"Ignoring pre-computed strategy with invalid shape: {exc.error_count()} error(s)")
        return None


def load_driver_hos(raw: Any) -> Optional[DriverHOSStatus]:
    if raw is None or isinstance(raw, DriverHOSStatus):
        return raw
    payload = _load_json(raw, "driver HOS")
    if payload is None:
        return None
    try:
        return DriverHOSModel.model_validate(payload).to_domain()
    except ValidationError as exc:
        logger.warning(f"Ignoring driver HOS status with invalid shape: {exc.error_count()} error(s)")
        return None


def _describe_delay(delta_minutes: int) -> tuple[float, str]:
    delay_hours = round(delta_minutes / MINUTES_PER_HOUR, 1)
    days = delta_minutes // MINUTES_PER_DAY if delta_minutes > 0 else 0
    if days >= 1:
        hours = round((delta_minutes % MINUTES_PER_DAY) / MINUTES_PER_HOUR)
        return delay_hours, f"{days} day(s) and {hours} hours delay"
    return delay_hours, f"{delay_hours} hours delay"


def _minutes_after(start: TimeOfDay, target: TimeOfDay) -> int:
    return (target - start) % MINUTES_PER_DAY


def _apply_hos(
    hos: HOSFeasibilityResult,
    current: TimeOfDay,
    counter_minutes: Optional[TimeOfDay],
    reason: str,
) -> tuple[Optional[TimeOfDay], str]:
    """Override or clamp the cost-driven counter-offer with the driver's legal limit."""

    latest = hos.latest_legal_dock_time
    if not hos.feasible:
        if hos.shift_exhausted and hos.next_shift_earliest_start is not None:
            return (
                hos.next_shift_earliest_start,
                f"HOS INFEASIBLE - Exceeds driver's {hos.binding_constraint} limit. Next shift required.",
            )
        return latest, (
            f"HOS INFEASIBLE - Driver cannot work at this time ({hos.binding_constraint}). "
            f"Latest: {minutes_to_time_12_hour(latest)}"
        )

    if counter_minutes is not None and latest is not None:
        if _minutes_after(current, counter_minutes % MINUTES_PER_DAY) > _minutes_after(current, latest):
            reason += f" (Counter clamped to HOS limit: {minutes_to_time_12_hour(latest)})"
            return latest, reason
    return counter_minutes, reason


def _analyze(params: OfferAnalysisParams) -> OfferAnalysisResult:
    original = parse_time_to_minutes(params.original_appointment)
    offered = parse_time_to_minutes(params.offered_time_text)
    if offered is None and params.offered_time_text:
        offered = extract_time_from_message(params.offered_time_text)
    if original is None or offered is None:
        logger.info(
            f"Could not parse times: offered='{params.offered_time_text}' original='{params.original_appointment}'"
        )
        return _negative_result("Could not parse time values")

    current: Optional[TimeOfDay] = None
    if params.current_time:
        current = parse_time_to_minutes(params.current_time)

    if params.offered_day_offset is not None and params.offered_day_offset > 0:
        day_offset = int(params.offered_day_offset)
    else:
        day_offset = detect_day_offset(params.offered_time_text, current, offered)
        if day_offset:
            logger.info(f"Detected day offset {day_offset} from '{params.offered_time_text}'")

    offered_absolute = offered + day_offset * MINUTES_PER_DAY
    delta = time_difference_minutes(original, offered_absolute)

    terms = parse_contract_terms(params.extracted_terms)
    for warning in validate_terms_for_cost_calculation(terms)[1]:
        logger.warning(f"Contract terms: {warning}")
    rules = derive_contract_rules(terms)
    cost = calculate_total_cost_impact(
        CostParams(
            original_minutes=original,
            offered_minutes=offered_absolute,
            shipment_value=params.shipment_value,
            retailer=params.retailer,
        ),
        rules,
    )

    strategy = load_strategy(params.pre_computed_strategy)
    if strategy is None:
        strategy = create_negotiation_strategy(
            StrategyParams(
                original_minutes=original,
                delay_minutes=params.delay_minutes,
                shipment_value=params.shipment_value,
                retailer=params.retailer,
                rules=rules,
            ),
            params.strategy_config,
        )

    evaluation = evaluate_offer(offered_absolute, cost.total_cost, strategy)
    reason = evaluation.reason
    counter_minutes: Optional[TimeOfDay] = None
    if evaluation.suggested_counter_offer is not None:
        counter_minutes = round_time_to_five_minutes(strategy.ideal.max_minutes)

    hos: Optional[HOSFeasibilityResult] = None
    driver = load_driver_hos(params.driver_hos) if params.hos_enabled else None
    if driver is not None:
        if current is None:
            now = datetime.now()
            current = now.hour * MINUTES_PER_HOUR + now.minute
        detention_rate = params.driver_detention_rate
        if detention_rate is None:
            detention_rate = rules.detention_rate_per_hour
        hos = check_hos_feasibility(
            offered,
            current,
            driver,
            estimated_dock_minutes=params.estimated_dock_minutes,
            detention_rate_per_hour=detention_rate,
            config=params.hos_config,
        )
        counter_minutes, reason = _apply_hos(hos, current, counter_minutes, reason)
        logger.info(f"HOS feasibility: {'OK' if hos.feasible else 'NOT FEASIBLE'}, binding: {hos.binding_constraint or 'none'}")

    hos_feasible = hos.feasible if hos is not None else True
    delay_hours, delay_description = _describe_delay(delta)
    return OfferAnalysisResult(
        acceptable=evaluation.acceptable,
        parsed_offered_time=minutes_to_time_12_hour(offered),
        minutes_from_original=delta,
        internal_reason=reason,
        suggested_counter_offer=minutes_to_time_12_hour(counter_minutes) if counter_minutes is not None else None,
        cost=cost,
        verdict=evaluation.verdict,
        hos_checked=hos is not None,
        hos_feasible=hos_feasible,
        hos_binding_constraint=hos.binding_constraint if hos is not None else None,
        hos_latest_legal_time=(
            minutes_to_time_12_hour(hos.latest_legal_dock_time)
            if hos is not None and hos.latest_legal_dock_time is not None
            else None
        ),
        hos_requires_next_shift=hos.requires_next_shift if hos is not None else False,
        hos_warnings=hos.warnings if hos is not None else (),
        combined_acceptable=evaluation.acceptable and hos_feasible,
        day_offset=day_offset,
        is_next_day=day_offset > 0,
        formatted_time=format_time_with_day_offset(offered, day_offset),
        delay_hours=delay_hours,
        delay_description=delay_description,
    )


def analyze_time_offer(params: OfferAnalysisParams) -> OfferAnalysisResult:
    """Analyze one offered time. Never raises; failures degrade to a negative decision."""
    try:
        return _analyze(params)
    except Exception as exc:
        logger.exception(f"Offer analysis failed for '{params.offered_time_text}'")
        return _negative_result(f"Analysis failed: {exc}")
