"""Domain models for contract rules, cost results and driver hours of service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

# Minutes since midnight. Derived values (thresholds, day offsets) may exceed 1439.
TimeOfDay = int

MINUTES_PER_DAY = 24 * 60
MINUTES_PER_HOUR = 60

HOSConstraint = Literal["drive", "duty", "window", "cycle"]


@dataclass(frozen=True, slots=True)
class DwellTier:
    """Hourly dwell rate applied between two delay offsets (minutes)."""

    from_minutes: int
    to_minutes: Optional[int]
    rate_per_hour: float


@dataclass(frozen=True, slots=True)
class PartyPenalty:
    """A single contract penalty line item. At most one amount is populated."""

    party_name: str
    penalty_type: str
    flat_fee: Optional[float] = None
    percentage: Optional[float] = None
    per_occurrence: Optional[float] = None
    conditions: Optional[str] = None

    @property
    def has_amount(self) -> bool:
        return any(value is not None for value in (self.flat_fee, self.percentage, self.per_occurrence))


@dataclass(frozen=True, slots=True)
class ContractRuleSet:
    """Concrete, contract-derived parameters driving all cost computation."""

    dwell_tiers: tuple[DwellTier, ...] = ()
    dwell_free_minutes: int = 0
    compliance_window_minutes: int = 0
    has_compliance_window: bool = False
    otif_penalties: tuple[PartyPenalty, ...] = ()
    party_penalties: tuple[PartyPenalty, ...] = ()
    detention_rate_per_hour: Optional[float] = None
    source_document: Optional[str] = None

    @classmethod
    def empty(cls) -> "ContractRuleSet":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.dwell_tiers or self.has_compliance_window or self.otif_penalties or self.party_penalties)


@dataclass(frozen=True, slots=True)
class CostLineItem:
    description: str
    cost: float
    minutes: Optional[int] = None
    rate_per_hour: Optional[float] = None


@dataclass(frozen=True, slots=True)
class CostImpactResult:
    dwell_total: float
    otif_total: float
    party_penalty_total: float
    total_cost: float
    outside_window: bool
    difference_minutes: int
    dwell_breakdown: tuple[CostLineItem, ...] = ()
    penalty_breakdown: tuple[CostLineItem, ...] = ()


@dataclass(frozen=True, slots=True)
class DriverHOSStatus:
    """Remaining hours-of-service clocks reported for a driver."""

    remaining_drive_minutes: int
    remaining_duty_minutes: int
    remaining_window_minutes: int
    remaining_cycle_minutes: int
    minutes_since_last_break: Optional[int] = None

    def remaining_for(self, constraint: HOSConstraint) -> int:
        return {
            "drive": self.remaining_drive_minutes,
            "duty": self.remaining_duty_minutes,
            "window": self.remaining_window_minutes,
            "cycle": self.remaining_cycle_minutes,
        }[constraint]


@dataclass(frozen=True, slots=True)
class NextShiftCost:
    detention_hours: int
    detention_rate_per_hour: float
    detention_cost: float
    layover_required: bool
    layover_daily_rate: float
    layover_cost: float
    total_premium: float


@dataclass(frozen=True, slots=True)
class HOSFeasibilityResult:
    feasible: bool
    binding_constraint: Optional[HOSConstraint]
    latest_legal_dock_time: Optional[TimeOfDay]
    requires_next_shift: bool
    wait_minutes: int = 0
    available_minutes_at_dock: int = 0
    shift_exhausted: bool = False
    warnings: tuple[str, ...] = field(default_factory=tuple)
    next_shift_earliest_start: Optional[TimeOfDay] = None
    next_shift_cost: Optional[NextShiftCost] = None
