"""Pydantic models for hours-of-service requests and responses."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import DriverHOSStatus, HOSFeasibilityResult, NextShiftCost
from ..services.time_normalizer import minutes_to_time


class DriverHOSModel(BaseModel):
    remainingDriveMinutes: int = Field(..., ge=0)
    remainingDutyMinutes: Optional[int] = Field(default=None, ge=0)
    remainingWindowMinutes: int = Field(..., ge=0)
    remainingCycleMinutes: Optional[int] = Field(default=None, ge=0, description="Weekly 60/70 hour cycle.")
    remainingWeeklyMinutes: Optional[int] = Field(default=None, ge=0, description="Alias of the cycle clock.")
    minutesSinceLastBreak: Optional[int] = Field(default=None, ge=0)

    def to_domain(self) -> DriverHOSStatus:
        # Older clients report only the 14-hour window and a weekly clock.
        duty = self.remainingDutyMinutes if self.remainingDutyMinutes is not None else self.remainingWindowMinutes
        cycle = self.remainingCycleMinutes
        if cycle is None:
            cycle = self.remainingWeeklyMinutes if self.remainingWeeklyMinutes is not None else duty
        return DriverHOSStatus(
            remaining_drive_minutes=self.remainingDriveMinutes,
            remaining_duty_minutes=duty,
            remaining_window_minutes=self.remainingWindowMinutes,
            remaining_cycle_minutes=cycle,
            minutes_since_last_break=self.minutesSinceLastBreak,
        )


class HOSCheckRequest(BaseModel):
    offeredTime: str = Field(..., description="Proposed dock time, e.g. '16:00' or '4 PM'.")
    currentTime: str = Field(..., description="Current local time at the driver.")
    driverHOS: DriverHOSModel
    estimatedDockMinutes: Optional[int] = Field(default=None, ge=0)
    detentionRatePerHour: Optional[float] = Field(default=None, ge=0)


class NextShiftCostModel(BaseModel):
    detentionHours: int
    detentionRatePerHour: float
    detentionCost: float
    layoverRequired: bool
    layoverDailyRate: float
    layoverCost: float
    totalPremium: float

    @classmethod
    def from_domain(cls, cost: NextShiftCost) -> "NextShiftCostModel":
        return cls(
            detentionHours=cost.detention_hours,
            detentionRatePerHour=cost.detention_rate_per_hour,
            detentionCost=cost.detention_cost,
            layoverRequired=cost.layover_required,
            layoverDailyRate=cost.layover_daily_rate,
            layoverCost=cost.layover_cost,
            totalPremium=cost.total_premium,
        )


class HOSCheckResponse(BaseModel):
    feasible: bool
    bindingConstraint: Optional[Literal["drive", "duty", "window", "cycle"]] = None
    latestLegalDockTime: Optional[str] = None
    requiresNextShift: bool
    waitMinutes: int
    availableMinutesAtDock: int
    warnings: list[str]
    nextShiftEarliestStart: Optional[str] = None
    nextShiftCost: Optional[NextShiftCostModel] = None
    statusErrors: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: HOSFeasibilityResult, status_errors: Optional[list[str]] = None) -> "HOSCheckResponse":
        return cls(
            feasible=result.feasible,
            bindingConstraint=result.binding_constraint,
            latestLegalDockTime=(
                minutes_to_time(result.latest_legal_dock_time) if result.latest_legal_dock_time is not None else None
            ),
            requiresNextShift=result.requires_next_shift,
            waitMinutes=result.wait_minutes,
            availableMinutesAtDock=result.available_minutes_at_dock,
            warnings=list(result.warnings),
            nextShiftEarliestStart=(
                minutes_to_time(result.next_shift_earliest_start)
                if result.next_shift_earliest_start is not None
                else None
            ),
            nextShiftCost=NextShiftCostModel.from_domain(result.next_shift_cost) if result.next_shift_cost else None,
            statusErrors=status_errors or [],
        )
