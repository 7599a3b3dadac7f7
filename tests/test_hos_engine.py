from src.dock_negotiator.models.domain import DriverHOSStatus
from src.dock_negotiator.services.hos.engine import (
    HOSConfig,
    check_hos_feasibility,
    estimate_next_shift_cost,
    validate_hos_status,
)

TEN_AM = 10 * 60


def _status(drive=660, duty=840, window=840, cycle=4200, since_break=None) -> DriverHOSStatus:
    return DriverHOSStatus(
        remaining_drive_minutes=drive,
        remaining_duty_minutes=duty,
        remaining_window_minutes=window,
        remaining_cycle_minutes=cycle,
        minutes_since_last_break=since_break,
    )


def test_driver_out_of_drive_time_cannot_make_slot():
    result = check_hos_feasibility(TEN_AM + 90, TEN_AM, _status(drive=45, duty=600, window=600, cycle=3000), 0)

    assert result.feasible is False
    assert result.binding_constraint == "drive"
    assert result.latest_legal_dock_time == TEN_AM + 45
    assert result.requires_next_shift is True
    assert result.shift_exhausted is False
    assert result.next_shift_earliest_start == TEN_AM + 600
    assert result.next_shift_cost is not None
    assert result.next_shift_cost.detention_hours == 2
    assert result.next_shift_cost.total_premium == 100.0


def test_fresh_driver_is_feasible():
    result = check_hos_feasibility(TEN_AM + 120, TEN_AM, _status(), 60)

    assert result.feasible is True
    assert result.binding_constraint is None
    assert result.requires_next_shift is False
    assert result.wait_minutes == 120
    assert result.available_minutes_at_dock == 540
    assert result.latest_legal_dock_time == TEN_AM + 660 - 60
    assert result.next_shift_cost is None
    assert result.next_shift_earliest_start is None


def test_offer_earlier_than_now_means_tomorrow():
    result = check_hos_feasibility(60, 23 * 60, _status(), 0)
    assert result.wait_minutes == 120
    assert result.feasible is True


def test_default_dock_duration_comes_from_config():
    status = _status(drive=100, duty=600, window=600, cycle=3000)
    assert check_hos_feasibility(TEN_AM + 60, TEN_AM, status).feasible is False
    assert check_hos_feasibility(TEN_AM + 60, TEN_AM, status, config=HOSConfig(default_dock_duration_minutes=30)).feasible


def test_binding_constraint_ties_follow_drive_duty_window_cycle():
    tied = _status(drive=100, duty=100, window=100, cycle=100)
    assert check_hos_feasibility(TEN_AM + 150, TEN_AM, tied, 0).binding_constraint == "drive"

    duty_tight = _status(drive=300, duty=100, window=100, cycle=4000)
    assert check_hos_feasibility(TEN_AM + 150, TEN_AM, duty_tight, 0).binding_constraint == "duty"

    cycle_tight = _status(drive=300, duty=300, window=300, cycle=90)
    assert check_hos_feasibility(TEN_AM + 150, TEN_AM, cycle_tight, 0).binding_constraint == "cycle"


def test_latest_legal_time_never_precedes_now_and_flags_exhausted_shift():
    result = check_hos_feasibility(TEN_AM + 30, TEN_AM, _status(drive=30, duty=600, window=600, cycle=3000), 60)
    assert result.feasible is False
    assert result.latest_legal_dock_time == TEN_AM
    assert result.shift_exhausted is True


def test_latest_legal_time_wraps_past_midnight():
    result = check_hos_feasibility(23 * 60 + 30, 23 * 60, _status(drive=120, duty=600, window=600, cycle=3000), 0)
    assert result.feasible is True
    assert result.latest_legal_dock_time == 60


def test_warnings():
    result = check_hos_feasibility(
        TEN_AM, TEN_AM, _status(drive=90, duty=90, window=90, cycle=240, since_break=450), 0
    )
    assert "14-hour window ends in 1h 30m" in result.warnings
    assert "Weekly limit: only 4h remaining" in result.warnings
    assert "30-minute break required after 30 more minutes of driving" in result.warnings

    overdue = check_hos_feasibility(TEN_AM, TEN_AM, _status(since_break=480), 0)
    assert overdue.warnings == ("30-minute break required before any more driving",)


def test_estimate_next_shift_cost():
    cost = estimate_next_shift_cost(610, 40.0, 150.0)
    assert cost.detention_hours == 11
    assert cost.detention_cost == 440.0
    assert cost.layover_required is True
    assert cost.layover_cost == 150.0
    assert cost.total_premium == 590.0

    short = estimate_next_shift_cost(61)
    assert short.detention_hours == 2
    assert short.detention_cost == 100.0
    assert short.layover_required is False
    assert short.total_premium == 100.0

    assert estimate_next_shift_cost(0).total_premium == 0.0


def test_validate_hos_status():
    assert validate_hos_status(_status()) == (True, [])

    valid, errors = validate_hos_status(_status(drive=700, window=600))
    assert valid is False
    assert "Remaining drive time must be between 0 and 660 minutes" in errors
    assert "Remaining drive time cannot exceed remaining window time" in errors

    valid, errors = validate_hos_status(_status(cycle=-1, since_break=-5))
    assert valid is False
    assert len(errors) == 2
