"""Direct hours-of-service feasibility checks."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.hos import HOSCheckRequest, HOSCheckResponse
from ...services.hos.engine import check_hos_feasibility, validate_hos_status
from ...services.time_normalizer import parse_time_to_minutes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hos", tags=["hos"])


@router.post("/check", response_model=HOSCheckResponse, status_code=status.HTTP_200_OK)
def check_hos(payload: HOSCheckRequest) -> HOSCheckResponse:
    try:
        offered = parse_time_to_minutes(payload.offeredTime)
        current = parse_time_to_minutes(payload.currentTime)
        if offered is None or current is None:
            raise ValueError(f"Could not parse times: offered='{payload.offeredTime}' current='{payload.currentTime}'")
        status_model = payload.driverHOS.to_domain()
        _, errors = validate_hos_status(status_model)
        if errors:
            logger.warning(f"Driver HOS status failed validation: {errors}")
        result = check_hos_feasibility(
            offered,
            current,
            status_model,
            estimated_dock_minutes=payload.estimatedDockMinutes,
            detention_rate_per_hour=payload.detentionRatePerHour,
        )
        return HOSCheckResponse.from_domain(result, status_errors=errors)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error checking HOS feasibility: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check HOS feasibility",
        ) from exc
