"""Pydantic models for offer analysis and the voice-tool webhook."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..services.offers.analyzer import OfferAnalysisParams, OfferAnalysisResult


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class OfferAnalysisRequest(BaseModel):
    """Arguments of a check-slot-cost call. Numbers may arrive as strings from voice templates."""

    offeredTimeText: str = ""
    originalAppointment: str = ""
    delayMinutes: float = 0
    shipmentValue: float = 0
    retailer: Optional[str] = None
    extractedTermsJson: Any = None
    extractedTerms: Any = None
    strategyJson: Any = None
    hosEnabled: bool = False
    currentTime: Optional[str] = None
    driverHOSJson: Any = None
    driverHOS: Any = None
    driverDetentionRate: Optional[float] = None
    offeredDayOffset: Optional[int] = None

    @field_validator("delayMinutes", "shipmentValue", mode="before")
    @classmethod
    def _coerce_required_number(cls, value: Any) -> float:
        return _to_number(value) or 0

    @field_validator("driverDetentionRate", mode="before")
    @classmethod
    def _coerce_optional_number(cls, value: Any) -> Optional[float]:
        return _to_number(value)

    @field_validator("offeredDayOffset", mode="before")
    @classmethod
    def _coerce_day_offset(cls, value: Any) -> Optional[int]:
        number = _to_number(value)
        return None if number is None else int(number)

    @field_validator("hosEnabled", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes", "on")
        return bool(value)

    @field_validator("offeredTimeText", "originalAppointment", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def to_params(self) -> OfferAnalysisParams:
        return OfferAnalysisParams(
            offered_time_text=self.offeredTimeText,
            original_appointment=self.originalAppointment,
            delay_minutes=int(self.delayMinutes),
            shipment_value=self.shipmentValue,
            retailer=self.retailer,
            extracted_terms=self.extractedTerms if self.extractedTerms is not None else self.extractedTermsJson,
            pre_computed_strategy=self.strategyJson,
            hos_enabled=self.hosEnabled,
            current_time=self.currentTime,
            driver_hos=self.driverHOS if self.driverHOS is not None else self.driverHOSJson,
            driver_detention_rate=self.driverDetentionRate,
            offered_day_offset=self.offeredDayOffset,
        )


class LineItemModel(BaseModel):
    description: str
    cost: float
    minutes: Optional[int] = None
    ratePerHour: Optional[float] = None


class CostBreakdownModel(BaseModel):
    dwellCost: float
    otifPenalty: float
    partyPenalties: float
    totalCost: float
    isLate: bool
    lineItems: list[LineItemModel] = Field(default_factory=list)


class OfferAnalysisResponse(BaseModel):
    acceptable: bool
    parsedOfferedTime: Optional[str] = None
    minutesFromOriginal: Optional[int] = None
    internalReason: str
    suggestedCounterOffer: Optional[str] = None
    costBreakdown: Optional[CostBreakdownModel] = None
    verdict: Optional[str] = None
    hosFeasible: bool = True
    hosBindingConstraint: Optional[str] = None
    hosLatestLegalTime: Optional[str] = None
    hosRequiresNextShift: bool = False
    hosWarnings: list[str] = Field(default_factory=list)
    combinedAcceptable: bool = False
    dayOffset: int = 0
    isNextDay: bool = False
    formattedTime: str = ""
    delayHours: float = 0.0
    delayDescription: str = ""
    pushbackCount: Optional[int] = None

    @classmethod
    def from_domain(cls, result: OfferAnalysisResult, pushback_count: Optional[int] = None) -> "OfferAnalysisResponse":
        breakdown = None
        if result.cost is not None:
            items = [*result.cost.dwell_breakdown, *result.cost.penalty_breakdown]
            breakdown = CostBreakdownModel(
                dwellCost=result.cost.dwell_total,
                otifPenalty=result.cost.otif_total,
                partyPenalties=result.cost.party_penalty_total,
                totalCost=result.cost.total_cost,
                isLate=result.cost.outside_window,
                lineItems=[
                    LineItemModel(
                        description=item.description,
                        cost=item.cost,
                        minutes=item.minutes,
                        ratePerHour=item.rate_per_hour,
                    )
                    for item in items
                ],
            )
        return cls(
            acceptable=result.acceptable,
            parsedOfferedTime=result.parsed_offered_time,
            minutesFromOriginal=result.minutes_from_original,
            internalReason=result.internal_reason,
            suggestedCounterOffer=result.suggested_counter_offer,
            costBreakdown=breakdown,
            verdict=result.verdict,
            hosFeasible=result.hos_feasible,
            hosBindingConstraint=result.hos_binding_constraint,
            hosLatestLegalTime=result.hos_latest_legal_time,
            hosRequiresNextShift=result.hos_requires_next_shift,
            hosWarnings=list(result.hos_warnings),
            combinedAcceptable=result.combined_acceptable,
            dayOffset=result.day_offset,
            isNextDay=result.is_next_day,
            formattedTime=result.formatted_time,
            delayHours=result.delay_hours,
            delayDescription=result.delay_description,
            pushbackCount=pushback_count,
        )


class ToolCallResult(BaseModel):
    toolCallId: Optional[str] = None
    result: dict[str, Any]


class ToolWebhookResponse(BaseModel):
    results: list[ToolCallResult]
