"""Pydantic models for contract terms produced by the extraction collaborator."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ComplianceWindowModel(BaseModel):
    name: str = "Compliance Window"
    windowMinutes: float
    description: Optional[str] = None


class DwellTierModel(BaseModel):
    fromMinutes: float
    toMinutes: Optional[float] = None
    ratePerHour: float


class DelayPenaltyModel(BaseModel):
    name: str
    freeTimeMinutes: float = 0
    tiers: list[DwellTierModel] = Field(default_factory=list)


class PartyPenaltyModel(BaseModel):
    partyName: str = ""
    penaltyType: str = ""
    percentage: Optional[float] = None
    flatFee: Optional[float] = None
    perOccurrence: Optional[float] = None
    conditions: Optional[str] = None


class OtherTermModel(BaseModel):
    name: str
    description: str = ""
    financialImpact: Optional[str] = None
    rawText: Optional[str] = None


class HOSRequirementsModel(BaseModel):
    maxContinuousDrivingHours: Optional[float] = None
    requiredRestHours: Optional[float] = None
    breakRequirements: Optional[str] = None
    driverDetentionRatePerHour: Optional[float] = None
    layoverDailyRate: Optional[float] = None
    hosClauseDescription: Optional[str] = None
    rawText: Optional[str] = None


class HOSPenaltyModel(BaseModel):
    name: str
    violationType: str = ""
    penaltyAmount: Optional[float] = None
    penaltyPercentage: Optional[float] = None
    description: Optional[str] = None


class ExtractionMetaModel(BaseModel):
    documentName: str = ""
    extractedAt: Optional[str] = None
    confidence: Literal["high", "medium", "low"] = "medium"
    warnings: list[str] = Field(default_factory=list)


class ExtractedContractTerms(BaseModel):
    """Contract terms as extracted from a source document. Every section is optional."""

    model_config = ConfigDict(populate_by_name=True)

    parties: dict[str, Optional[str]] = Field(default_factory=dict)
    complianceWindows: list[ComplianceWindowModel] = Field(default_factory=list)
    delayPenalties: list[DelayPenaltyModel] = Field(default_factory=list)
    partyPenalties: list[PartyPenaltyModel] = Field(default_factory=list)
    otherTerms: list[OtherTermModel] = Field(default_factory=list)
    hosRequirements: Optional[HOSRequirementsModel] = None
    hosPenalties: list[HOSPenaltyModel] = Field(default_factory=list)
    meta: Optional[ExtractionMetaModel] = Field(default=None, alias="_meta")
