"""Text-mode negotiation loop.

A session walks through ``awaiting_name -> negotiating_time -> awaiting_dock ->
confirming -> done``. Each warehouse message is answered with one reply; offer
decisions are delegated to the offer analyzer so text and voice agree.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Literal, Optional

from ...models.domain import DriverHOSStatus, TimeOfDay
from ...schemas.contract import ExtractedContractTerms
from ..contracts.rules import derive_contract_rules
from ..offers.analyzer import OfferAnalysisParams, OfferAnalysisResult, analyze_time_offer
from ..time_normalizer import (
    format_time_for_speech,
    format_time_with_day_offset,
    minutes_to_time,
    parse_time_to_minutes,
)
from .extractors import (
    detect_day_offset,
    extract_dock_from_message,
    extract_name_from_message,
    extract_time_from_message,
)
from .models import NegotiationStrategy, StrategyConfig, StrategyParams
from .strategy import create_negotiation_strategy

logger = logging.getLogger(__name__)

ConversationPhase = Literal["awaiting_name", "negotiating_time", "awaiting_dock", "confirming", "done"]


@dataclass(slots=True)
class NegotiationSession:
    session_id: str
    original_minutes: TimeOfDay
    delay_minutes: int
    shipment_value: float
    retailer: Optional[str]
    strategy: NegotiationStrategy
    extracted_terms: Optional[ExtractedContractTerms] = None
    contact_name: Optional[str] = None
    hos_enabled: bool = False
    current_time: Optional[str] = None
    driver_hos: Optional[DriverHOSStatus] = None
    driver_detention_rate: Optional[float] = None
    phase: ConversationPhase = "awaiting_name"
    pushback_count: int = 0
    confirmed_minutes: Optional[TimeOfDay] = None
    confirmed_day_offset: int = 0
    dock_number: Optional[str] = None
    transcript: list[tuple[str, str]] = field(default_factory=list)

    @property
    def agreed_time(self) -> Optional[str]:
        if self.confirmed_minutes is None:
            return None
        return format_time_with_day_offset(self.confirmed_minutes, self.confirmed_day_offset)


@dataclass(frozen=True, slots=True)
class TurnResult:
    reply: str
    phase: ConversationPhase
    analysis: Optional[OfferAnalysisResult] = None

    @property
    def done(self) -> bool:
        return self.phase == "done"


def _thanks(name: Optional[str]) -> str:
    return f"Thanks, {name}!" if name else "Thanks!"


def opening_line(session: NegotiationSession) -> str:
    name = session.contact_name or "there"
    return (
        f"Hey {name}, so I've got a truck that was supposed to be there at "
        f"{format_time_for_speech(session.original_minutes)}, but my driver's running about "
        f"{session.delay_minutes} minutes behind. Any chance you can fit us in a bit later?"
    )


def start_session(
    original_minutes: TimeOfDay,
    delay_minutes: int,
    shipment_value: float,
    retailer: Optional[str],
    *,
    extracted_terms: Optional[ExtractedContractTerms] = None,
    contact_name: Optional[str] = None,
    hos_enabled: bool = False,
    current_time: Optional[str] = None,
    driver_hos: Optional[DriverHOSStatus] = None,
    driver_detention_rate: Optional[float] = None,
    config: Optional[StrategyConfig] = None,
) -> tuple[NegotiationSession, TurnResult]:
    """Create a session and its first line. The strategy is computed once per session."""

    strategy = create_negotiation_strategy(
        StrategyParams(
            original_minutes=original_minutes,
            delay_minutes=delay_minutes,
            shipment_value=shipment_value,
            retailer=retailer,
            rules=derive_contract_rules(extracted_terms),
        ),
        config,
    )
    session = NegotiationSession(
        session_id=uuid.uuid4().hex,
        original_minutes=original_minutes,
        delay_minutes=delay_minutes,
        shipment_value=shipment_value,
        retailer=retailer,
        strategy=strategy,
        extracted_terms=extracted_terms,
        contact_name=contact_name,
        hos_enabled=hos_enabled,
        current_time=current_time,
        driver_hos=driver_hos,
        driver_detention_rate=driver_detention_rate,
    )
    if contact_name:
        session.phase = "negotiating_time"
        reply = opening_line(session)
    else:
        reply = "Hi, this is Mike calling from dispatch. Who am I speaking with?"
    session.transcript.append(("agent", reply))
    logger.info(f"Started negotiation session {session.session_id} in phase {session.phase}")
    return session, TurnResult(reply=reply, phase=session.phase)


def _analyze(session: NegotiationSession, offered: TimeOfDay, day_offset: int) -> OfferAnalysisResult:
    return analyze_time_offer(
        OfferAnalysisParams(
            offered_time_text=minutes_to_time(offered),
            original_appointment=minutes_to_time(session.original_minutes),
            delay_minutes=session.delay_minutes,
            shipment_value=session.shipment_value,
            retailer=session.retailer,
            extracted_terms=session.extracted_terms,
            pre_computed_strategy=session.strategy,
            hos_enabled=session.hos_enabled,
            current_time=session.current_time,
            driver_hos=session.driver_hos,
            driver_detention_rate=session.driver_detention_rate,
            offered_day_offset=day_offset,
        )
    )


def _confirm(session: NegotiationSession, dock: str) -> TurnResult:
    session.dock_number = dock
    session.phase = "confirming"
    return TurnResult(
        reply=f"Got it, {session.agreed_time} at dock {dock}. {_thanks(session.contact_name)}",
        phase=session.phase,
    )


def _handle_awaiting_name(session: NegotiationSession, message: str) -> TurnResult:
    name = extract_name_from_message(message)
    if name is None and len(message.split()) == 1:
        name = message.strip(" .,!?")
    session.contact_name = name or session.contact_name
    session.phase = "negotiating_time"
    return TurnResult(reply=opening_line(session), phase=session.phase)


def _current_minutes(session: NegotiationSession) -> Optional[TimeOfDay]:
    return parse_time_to_minutes(session.current_time) if session.current_time else None


def _handle_negotiating(session: NegotiationSession, message: str) -> TurnResult:
    offered = extract_time_from_message(message)
    dock = extract_dock_from_message(message)

    if offered is None:
        if dock and session.confirmed_minutes is not None:
            return _confirm(session, dock)
        return TurnResult(reply="Gotcha. So what time slots do you have open?", phase=session.phase)

    day_offset = detect_day_offset(message, _current_minutes(session), offered)
    analysis = _analyze(session, offered, day_offset)
    spoken = format_time_with_day_offset(offered, day_offset)

    if analysis.combined_acceptable:
        session.confirmed_minutes, session.confirmed_day_offset = offered, day_offset
        if dock:
            return TurnResult(reply=_confirm(session, dock).reply, phase=session.phase, analysis=analysis)
        session.phase = "awaiting_dock"
        return TurnResult(reply="Perfect. Which dock should we pull into?", phase=session.phase, analysis=analysis)

    out_of_pushbacks = session.pushback_count >= session.strategy.max_pushback_attempts
    if out_of_pushbacks and analysis.hos_feasible:
        # Reluctant acceptance once every pushback is spent.
        session.confirmed_minutes, session.confirmed_day_offset = offered, day_offset
        if dock:
            session.dock_number = dock
            session.phase = "confirming"
            reply = f"Alright, {spoken} at dock {dock} it is. We'll make it work."
        else:
            session.phase = "awaiting_dock"
            reply = f"Gotcha, {spoken} will have to do. Which dock?"
        return TurnResult(reply=reply, phase=session.phase, analysis=analysis)

    counter = analysis.suggested_counter_offer or "earlier"
    session.pushback_count += 1
    if not analysis.hos_feasible:
        reply = (
            f"Ah, my driver can't legally make {spoken} with the hours they have left. "
            f"Could we do {counter} instead?"
        )
    elif day_offset > 0:
        reply = f"Hmm, {spoken} is quite a wait. Any chance we could get in earlier, maybe around {counter}?"
    else:
        reply = f"Hmm, {spoken} is a bit tight for us. Anything closer to {counter} available?"
    return TurnResult(reply=reply, phase=session.phase, analysis=analysis)


def _handle_awaiting_dock(session: NegotiationSession, message: str) -> TurnResult:
    dock = extract_dock_from_message(message)
    if dock:
        return _confirm(session, dock)
    offered = extract_time_from_message(message)
    if offered is not None:
        # A new time restarts the decision for that time.
        session.phase = "negotiating_time"
        return _handle_negotiating(session, message)
    return TurnResult(reply="Sorry, didn't catch the dock number. Which one should we use?", phase=session.phase)


def handle_message(session: NegotiationSession, message: str) -> TurnResult:
    """Advance the session by one warehouse message."""

    session.transcript.append(("warehouse", message))
    if session.phase == "awaiting_name":
        result = _handle_awaiting_name(session, message)
    elif session.phase == "negotiating_time":
        result = _handle_negotiating(session, message)
    elif session.phase == "awaiting_dock":
        result = _handle_awaiting_dock(session, message)
    elif session.phase == "confirming":
        session.phase = "done"
        name = session.contact_name
        result = TurnResult(
            reply=f"Alright, we'll see you then. Appreciate your help{', ' + name if name else ''}!",
            phase=session.phase,
        )
    else:
        result = TurnResult(reply="We're all set. Thanks again!", phase=session.phase)
    session.transcript.append(("agent", result.reply))
    logger.debug(f"Session {session.session_id}: phase={result.phase} pushbacks={session.pushback_count}")
    return result
