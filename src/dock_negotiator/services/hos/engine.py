"""Hours-of-service feasibility for a proposed dock time.

The driver's remaining clocks are supplied by the caller; this module never
decays them. A constraint binds when its remaining minutes cannot cover the
wait until the dock slot plus the time spent at the dock.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ...config import settings
from ...models.domain import (
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
    DriverHOSStatus,
    HOSConstraint,
    HOSFeasibilityResult,
    NextShiftCost,
    TimeOfDay,
)
from ..time_normalizer import format_minutes_to_human

logger = logging.getLogger(__name__)

# Tie order when two clocks have the same remaining minutes.
CONSTRAINT_ORDER: tuple[HOSConstraint, ...] = ("drive", "duty", "window", "cycle")

CONSTRAINT_DESCRIPTIONS: dict[HOSConstraint, str] = {
    "drive": "11-hour driving limit",
    "duty": "on-duty time limit",
    "window": "14-hour on-duty window",
    "cycle": "60/70-hour weekly cycle",
}


@dataclass(frozen=True, slots=True)
class HOSConfig:
    default_dock_duration_minutes: int = settings.default_dock_duration_minutes
    default_detention_rate_per_hour: float = settings.default_detention_rate_per_hour
    layover_daily_rate: float = settings.layover_daily_rate
    reset_off_duty_minutes: int = settings.reset_off_duty_minutes
    break_threshold_minutes: int = settings.break_threshold_minutes
    window_warning_minutes: int = 120
    cycle_warning_minutes: int = 300
    max_drive_minutes: int = 660
    max_duty_minutes: int = 840
    max_window_minutes: int = 840
    max_cycle_minutes: int = 4200


def estimate_next_shift_cost(
    wait_minutes: int,
    detention_rate_per_hour: Optional[float] = None,
    layover_daily_rate: Optional[float] = None,
    config: Optional[HOSConfig] = None,
) -> NextShiftCost:
    """Detention for every started hour of waiting, plus a layover once the wait covers a full reset."""

    config = config or HOSConfig()
    rate = config.default_detention_rate_per_hour if detention_rate_per_hour is None else detention_rate_per_hour
    layover_rate = config.layover_daily_rate if layover_daily_rate is None else layover_daily_rate

    wait = max(0, int(wait_minutes))
    detention_hours = math.ceil(wait / MINUTES_PER_HOUR)
    detention_cost = round(detention_hours * rate, 2)
    layover_required = wait >= config.reset_off_duty_minutes
    layover_cost = round(layover_rate, 2) if layover_required else 0.0
    return NextShiftCost(
        detention_hours=detention_hours,
        detention_rate_per_hour=rate,
        detention_cost=detention_cost,
        layover_required=layover_required,
        layover_daily_rate=layover_rate,
        layover_cost=layover_cost,
        total_premium=round(detention_cost + layover_cost, 2),
    )


def _build_warnings(status: DriverHOSStatus, config: HOSConfig) -> list[str]:
    warnings: list[str] = []
    if 0 < status.remaining_window_minutes <= config.window_warning_minutes:
        warnings.append(f"14-hour window ends in {format_minutes_to_human(status.remaining_window_minutes)}")
    if status.remaining_cycle_minutes <= config.cycle_warning_minutes:
        warnings.append(f"Weekly limit: only {format_minutes_to_human(status.remaining_cycle_minutes)} remaining")
    since_break = status.minutes_since_last_break
    if since_break is not None:
        until_break = config.break_threshold_minutes - since_break
        if until_break <= 0:
            warnings.append("30-minute break required before any more driving")
        elif until_break <= MINUTES_PER_HOUR:
            warnings.append(f"30-minute break required after {until_break} more minutes of driving")
    return warnings


def check_hos_feasibility(
    offered_minutes: TimeOfDay,
    current_minutes: TimeOfDay,
    status: DriverHOSStatus,
    estimated_dock_minutes: Optional[int] = None,
    detention_rate_per_hour: Optional[float] = None,
    config: Optional[HOSConfig] = None,
) -> HOSFeasibilityResult:
    """Decide whether the driver can legally work the dock slot at ``offered_minutes``.

    The wait is computed wrap-safe, so an offered time earlier than the
    current time means the same clock time tomorrow.
    """
    config = config or HOSConfig()
    dock_minutes = config.default_dock_duration_minutes if estimated_dock_minutes is None else max(0, int(estimated_dock_minutes))

    current = int(current_minutes) % MINUTES_PER_DAY
    wait = (int(offered_minutes) - current) % MINUTES_PER_DAY
    consumption = wait + dock_minutes

    binding = [name for name in CONSTRAINT_ORDER if status.remaining_for(name) < consumption]
    feasible = not binding

    tightest = min(CONSTRAINT_ORDER, key=status.remaining_for)
    tightest_remaining = status.remaining_for(tightest)
    latest_absolute = max(current, current + tightest_remaining - dock_minutes)
    shift_exhausted = tightest_remaining <= 0 or tightest_remaining < dock_minutes

    warnings = _build_warnings(status, config)

    next_shift_start = None
    next_shift_cost = None
    if not feasible:
        next_shift_start = (current + config.reset_off_duty_minutes) % MINUTES_PER_DAY
        next_shift_cost = estimate_next_shift_cost(wait, detention_rate_per_hour, config=config)
        logger.info(
            f"HOS infeasible: {tightest} has {tightest_remaining}m left, needs {consumption}m "
            f"(wait {wait}m + dock {dock_minutes}m)"
        )

    return HOSFeasibilityResult(
        feasible=feasible,
        binding_constraint=None if feasible else tightest,
        latest_legal_dock_time=latest_absolute % MINUTES_PER_DAY,
        requires_next_shift=not feasible,
        wait_minutes=wait,
        available_minutes_at_dock=max(0, tightest_remaining - wait),
        shift_exhausted=shift_exhausted,
        warnings=tuple(warnings),
        next_shift_earliest_start=next_shift_start,
        next_shift_cost=next_shift_cost,
    )


def validate_hos_status(status: DriverHOSStatus, config: Optional[HOSConfig] = None) -> tuple[bool, list[str]]:
    """Range checks on reported clocks. Returns ``(valid, errors)``."""

    config = config or HOSConfig()
    errors: list[str] = []
    limits = (
        ("drive", status.remaining_drive_minutes, config.max_drive_minutes),
        ("duty", status.remaining_duty_minutes, config.max_duty_minutes),
        ("window", status.remaining_window_minutes, config.max_window_minutes),
        ("cycle", status.remaining_cycle_minutes, config.max_cycle_minutes),
    )
    for name, value, limit in limits:
        if value < 0 or value > limit:
            errors.append(f"Remaining {name} time must be between 0 and {limit} minutes")
    if status.minutes_since_last_break is not None and status.minutes_since_last_break < 0:
        errors.append("Time since last break cannot be negative")
    if status.remaining_drive_minutes > status.remaining_window_minutes:
        errors.append("Remaining drive time cannot exceed remaining window time")
    return not errors, errors
