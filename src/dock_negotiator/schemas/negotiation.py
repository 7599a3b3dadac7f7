"""Pydantic models for negotiation strategy and text-mode session endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field

from ..services.negotiation.models import (
    CostThresholds,
    NegotiationStrategy,
    StrategyDisplay,
    ZoneThreshold,
)
from ..services.time_normalizer import minutes_to_time
from .contract import ExtractedContractTerms
from .hos import DriverHOSModel


class StrategyRequest(BaseModel):
    originalAppointment: str = Field(..., description="Original appointment time, e.g. '14:00'.")
    delayMinutes: int = Field(0, ge=0)
    shipmentValue: float = Field(0.0, ge=0)
    retailer: Optional[str] = None
    extractedTerms: Optional[ExtractedContractTerms] = None


class ZoneThresholdModel(BaseModel):
    maxMinutes: int
    description: str = ""
    cost: Optional[float] = None
    costImpact: Optional[str] = None


class ThresholdsModel(BaseModel):
    ideal: ZoneThresholdModel
    acceptable: ZoneThresholdModel
    reluctant: ZoneThresholdModel = Field(validation_alias=AliasChoices("reluctant", "problematic"))


class CostThresholdsModel(BaseModel):
    ideal: float
    acceptable: float
    reluctant: float


class StrategyDisplayModel(BaseModel):
    idealBefore: str = ""
    acceptableBefore: str = ""
    reluctantAfter: str = Field(default="", validation_alias=AliasChoices("reluctantAfter", "problematicAfter", "worstCaseArrival"))
    actualArrivalTime: str = ""


class NegotiationStrategyModel(BaseModel):
    """Wire form of a negotiation strategy, also accepted back as a pre-computed strategy."""

    thresholds: ThresholdsModel
    costThresholds: CostThresholdsModel
    maxPushbackAttempts: int = 2
    actualArrivalMinutes: Optional[int] = None
    display: StrategyDisplayModel = Field(default_factory=StrategyDisplayModel)

    @classmethod
    def from_domain(cls, strategy: NegotiationStrategy) -> "NegotiationStrategyModel":
        def zone(threshold: ZoneThreshold) -> ZoneThresholdModel:
            return ZoneThresholdModel(
                maxMinutes=threshold.max_minutes,
                description=threshold.description,
                cost=threshold.cost,
                costImpact=f"${threshold.cost:,.2f}",
            )

        return cls(
            thresholds=ThresholdsModel(
                ideal=zone(strategy.ideal),
                acceptable=zone(strategy.acceptable),
                reluctant=zone(strategy.reluctant),
            ),
            costThresholds=CostThresholdsModel(
                ideal=strategy.cost_thresholds.ideal,
                acceptable=strategy.cost_thresholds.acceptable,
                reluctant=strategy.cost_thresholds.reluctant,
            ),
            maxPushbackAttempts=strategy.max_pushback_attempts,
            actualArrivalMinutes=strategy.actual_arrival_minutes,
            display=StrategyDisplayModel(
                idealBefore=strategy.display.ideal_before,
                acceptableBefore=strategy.display.acceptable_before,
                reluctantAfter=strategy.display.reluctant_after,
                actualArrivalTime=strategy.display.actual_arrival_time,
            ),
        )

    def to_domain(self) -> NegotiationStrategy:
        costs = self.costThresholds
        ideal, acceptable, reluctant = self.thresholds.ideal, self.thresholds.acceptable, self.thresholds.reluctant
        arrival = self.actualArrivalMinutes if self.actualArrivalMinutes is not None else ideal.maxMinutes
        return NegotiationStrategy(
            ideal=ZoneThreshold(ideal.maxMinutes, ideal.cost if ideal.cost is not None else costs.ideal, ideal.description),
            acceptable=ZoneThreshold(
                acceptable.maxMinutes,
                acceptable.cost if acceptable.cost is not None else costs.acceptable,
                acceptable.description,
            ),
            reluctant=ZoneThreshold(
                reluctant.maxMinutes,
                reluctant.cost if reluctant.cost is not None else costs.reluctant,
                reluctant.description,
            ),
            cost_thresholds=CostThresholds(ideal=costs.ideal, acceptable=costs.acceptable, reluctant=costs.reluctant),
            actual_arrival_minutes=arrival,
            max_pushback_attempts=self.maxPushbackAttempts,
            display=StrategyDisplay(
                ideal_before=self.display.idealBefore or minutes_to_time(ideal.maxMinutes),
                acceptable_before=self.display.acceptableBefore or minutes_to_time(acceptable.maxMinutes),
                reluctant_after=self.display.reluctantAfter or minutes_to_time(reluctant.maxMinutes),
                actual_arrival_time=self.display.actualArrivalTime or minutes_to_time(arrival),
            ),
        )


class CreateSessionRequest(BaseModel):
    originalAppointment: str
    delayMinutes: int = Field(0, ge=0)
    shipmentValue: float = Field(0.0, ge=0)
    retailer: Optional[str] = None
    contactName: Optional[str] = Field(default=None, description="Warehouse contact, if already known.")
    extractedTerms: Optional[ExtractedContractTerms] = None
    hosEnabled: bool = False
    currentTime: Optional[str] = None
    driverHOS: Optional[DriverHOSModel] = None
    driverDetentionRate: Optional[float] = Field(default=None, ge=0)


class SessionMessageRequest(BaseModel):
    message: str = Field(..., min_length=1)


class SessionReply(BaseModel):
    sessionId: str
    phase: str
    reply: str
    pushbackCount: int = 0
    agreedTime: Optional[str] = None
    dockNumber: Optional[str] = None
    done: bool = False
    analysis: Optional[dict[str, Any]] = None
    strategy: Optional[NegotiationStrategyModel] = None
