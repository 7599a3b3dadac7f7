"""Text-mode negotiation endpoints: strategy, direct analysis and chat sessions."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...schemas.negotiation import (
    CreateSessionRequest,
    NegotiationStrategyModel,
    SessionMessageRequest,
    SessionReply,
    StrategyRequest,
)
from ...schemas.offers import OfferAnalysisRequest, OfferAnalysisResponse
from ...services.contracts.rules import derive_contract_rules
from ...services.negotiation.conversation import (
    NegotiationSession,
    TurnResult,
    handle_message,
    start_session,
)
from ...services.negotiation.models import StrategyParams
from ...services.negotiation.strategy import create_negotiation_strategy
from ...services.offers.analyzer import analyze_time_offer
from ...services.sessions.store import SessionStore
from ...services.time_normalizer import parse_time_to_minutes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/negotiation", tags=["negotiation"])


def get_session_store(request: Request) -> SessionStore[NegotiationSession]:
    return request.app.state.negotiation_sessions


def _parse_appointment(text: str) -> int:
    minutes = parse_time_to_minutes(text)
    if minutes is None:
        raise ValueError(f"Could not parse originalAppointment '{text}'")
    return minutes


def _reply(session: NegotiationSession, turn: TurnResult, include_strategy: bool = False) -> SessionReply:
    analysis: Optional[dict] = None
    if turn.analysis is not None:
        analysis = OfferAnalysisResponse.from_domain(turn.analysis, pushback_count=session.pushback_count).model_dump()
    return SessionReply(
        sessionId=session.session_id,
        phase=turn.phase,
        reply=turn.reply,
        pushbackCount=session.pushback_count,
        agreedTime=session.agreed_time,
        dockNumber=session.dock_number,
        done=turn.done,
        analysis=analysis,
        strategy=NegotiationStrategyModel.from_domain(session.strategy) if include_strategy else None,
    )


@router.post("/strategy", response_model=NegotiationStrategyModel, status_code=status.HTTP_200_OK)
def build_strategy(payload: StrategyRequest) -> NegotiationStrategyModel:
    try:
        strategy = create_negotiation_strategy(
            StrategyParams(
                original_minutes=_parse_appointment(payload.originalAppointment),
                delay_minutes=payload.delayMinutes,
                shipment_value=payload.shipmentValue,
                retailer=payload.retailer,
                rules=derive_contract_rules(payload.extractedTerms),
            )
        )
        return NegotiationStrategyModel.from_domain(strategy)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error building negotiation strategy: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build negotiation strategy",
        ) from exc


@router.post("/analyze", response_model=OfferAnalysisResponse, status_code=status.HTTP_200_OK)
def analyze_offer(payload: OfferAnalysisRequest) -> OfferAnalysisResponse:
    """Same decision as the voice tool, without the tool-call envelope."""
    return OfferAnalysisResponse.from_domain(analyze_time_offer(payload.to_params()))


@router.post("/sessions", response_model=SessionReply, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: CreateSessionRequest,
    store: SessionStore[NegotiationSession] = Depends(get_session_store),
) -> SessionReply:
    try:
        session, turn = start_session(
            _parse_appointment(payload.originalAppointment),
            payload.delayMinutes,
            payload.shipmentValue,
            payload.retailer,
            extracted_terms=payload.extractedTerms,
            contact_name=payload.contactName,
            hos_enabled=payload.hosEnabled,
            current_time=payload.currentTime,
            driver_hos=payload.driverHOS.to_domain() if payload.driverHOS is not None else None,
            driver_detention_rate=payload.driverDetentionRate,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    store.sweep()
    store.set(session.session_id, session)
    return _reply(session, turn, include_strategy=True)


@router.post("/sessions/{session_id}/messages", response_model=SessionReply, status_code=status.HTTP_200_OK)
def post_message(
    session_id: str,
    payload: SessionMessageRequest,
    store: SessionStore[NegotiationSession] = Depends(get_session_store),
) -> SessionReply:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found")
    try:
        turn = handle_message(session, payload.message)
    except Exception as exc:
        logger.exception(f"Error handling message for session {session_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process message",
        ) from exc
    store.set(session_id, session)
    return _reply(session, turn)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_200_OK)
def end_session(
    session_id: str,
    store: SessionStore[NegotiationSession] = Depends(get_session_store),
) -> dict:
    if not store.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found")
    return {"sessionId": session_id, "deleted": True}
