"""Voice-tool webhook: the agent calls check-slot-cost for every time the warehouse offers."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request, status
from pydantic import ValidationError

from ...config import settings
from ...schemas.offers import OfferAnalysisRequest, OfferAnalysisResponse, ToolCallResult, ToolWebhookResponse
from ...services.offers.analyzer import analyze_time_offer
from ...services.sessions.store import PushbackTracker, extract_call_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])


def get_pushback_tracker(request: Request) -> PushbackTracker:
    return request.app.state.pushback_tracker


def _verify_secret(provided: Optional[str]) -> None:
    expected = settings.tool_webhook_secret
    if expected and provided != expected:
        logger.warning("Tool webhook rejected: secret mismatch")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def _tool_arguments(call: dict[str, Any]) -> dict[str, Any]:
    function = call.get("function") or {}
    raw = function.get("arguments") if isinstance(function, dict) else None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning(f"Could not parse tool arguments string: {exc}")
            return {}
    return raw if isinstance(raw, dict) else {}


def _invalid_arguments(pushback_count: int) -> OfferAnalysisResponse:
    return OfferAnalysisResponse(acceptable=False, internalReason="Invalid tool arguments", pushbackCount=pushback_count)


def _analyze_call(arguments: dict[str, Any], pushback_count: int) -> OfferAnalysisResponse:
    try:
        params = OfferAnalysisRequest.model_validate(arguments).to_params()
    except ValidationError as exc:
        logger.warning(f"Invalid check-slot-cost arguments: {exc.error_count()} error(s)")
        return _invalid_arguments(pushback_count)
    except Exception:
        logger.exception("Could not build check-slot-cost request")
        return _invalid_arguments(pushback_count)
    result = analyze_time_offer(params)
    return OfferAnalysisResponse.from_domain(result, pushback_count=pushback_count)


@router.post("/check-slot-cost", response_model=ToolWebhookResponse, status_code=status.HTTP_200_OK)
def check_slot_cost(
    body: dict[str, Any] = Body(...),
    x_tool_secret: Optional[str] = Header(default=None),
    tracker: PushbackTracker = Depends(get_pushback_tracker),
) -> ToolWebhookResponse:
    """Analyze each offered time in the tool-call envelope. Always answers every tool call."""
    _verify_secret(x_tool_secret)

    call_id = extract_call_id(body)
    pushbacks = tracker.count(call_id) if call_id else 0
    message = body.get("message") if isinstance(body.get("message"), dict) else {}
    tool_calls = body.get("toolCalls") or message.get("toolCalls") or []
    logger.info(f"check-slot-cost: call={call_id or 'unknown'} tool_calls={len(tool_calls)} pushbacks={pushbacks}")

    results: list[ToolCallResult] = []
    for call in tool_calls:
        if not isinstance(call, dict):
            continue
        response = _analyze_call(_tool_arguments(call), pushbacks)
        if call_id and not response.combinedAcceptable:
            pushbacks = tracker.increment(call_id)
        tool_call_id = call.get("id")
        results.append(
            ToolCallResult(
                toolCallId=None if tool_call_id is None else str(tool_call_id),
                result=response.model_dump(),
            )
        )
    return ToolWebhookResponse(results=results)


@router.get("/check-slot-cost", status_code=status.HTTP_200_OK)
def check_slot_cost_health() -> dict:
    return {"status": "ok", "tool": "check-slot-cost"}


@router.delete("/calls/{call_id}", status_code=status.HTTP_200_OK)
def end_call(
    call_id: str,
    x_tool_secret: Optional[str] = Header(default=None),
    tracker: PushbackTracker = Depends(get_pushback_tracker),
) -> dict:
    """Forget the pushback count of a finished call."""
    _verify_secret(x_tool_secret)
    cleared = tracker.reset(call_id)
    logger.info(f"Call {call_id} ended (pushback count cleared: {cleared})")
    return {"callId": call_id, "cleared": cleared}
