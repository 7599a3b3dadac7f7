import json
import logging

from src.dock_negotiator.models.domain import DwellTier
from src.dock_negotiator.schemas.contract import ExtractedContractTerms
from src.dock_negotiator.services.contracts.rules import derive_contract_rules, is_otif_penalty
from src.dock_negotiator.services.contracts.terms import (
    parse_contract_terms,
    validate_terms_for_cost_calculation,
)


def _terms(**sections) -> ExtractedContractTerms:
    return ExtractedContractTerms.model_validate(sections)


def _walmart_terms() -> dict:
    return {
        "parties": {"shipper": "Acme Foods", "consignee": "Walmart DC 6094"},
        "complianceWindows": [{"name": "OTIF", "windowMinutes": 30}],
        "delayPenalties": [
            {
                "name": "Dwell Time",
                "freeTimeMinutes": 120,
                "tiers": [
                    {"fromMinutes": 240, "toMinutes": None, "ratePerHour": 75},
                    {"fromMinutes": 120, "toMinutes": 240, "ratePerHour": 50},
                ],
            }
        ],
        "partyPenalties": [{"partyName": "Walmart", "penaltyType": "OTIF Violation", "percentage": 3}],
        "_meta": {"documentName": "walmart-carrier-agreement.pdf", "confidence": "high"},
    }


def test_missing_terms_give_empty_rule_set():
    rules = derive_contract_rules(None)
    assert rules.is_empty
    assert rules.dwell_tiers == ()
    assert rules.has_compliance_window is False
    assert rules.compliance_window_minutes == 0


def test_empty_sections_give_empty_rule_set():
    rules = derive_contract_rules(_terms())
    assert rules.is_empty
    assert rules.detention_rate_per_hour is None


def test_walmart_contract_is_derived_verbatim():
    rules = derive_contract_rules(parse_contract_terms(_walmart_terms()))

    assert rules.dwell_free_minutes == 120
    assert rules.dwell_tiers == (DwellTier(120, 240, 50.0), DwellTier(240, None, 75.0))
    assert rules.compliance_window_minutes == 30
    assert rules.has_compliance_window is True
    assert len(rules.otif_penalties) == 1
    assert rules.otif_penalties[0].percentage == 3.0
    assert rules.party_penalties == ()
    assert rules.source_document == "walmart-carrier-agreement.pdf"


def test_invalid_tiers_are_dropped_with_a_warning(caplog):
    terms = _terms(
        delayPenalties=[
            {
                "name": "Detention",
                "tiers": [
                    {"fromMinutes": 0, "toMinutes": 60, "ratePerHour": 0},
                    {"fromMinutes": 30, "toMinutes": 90, "ratePerHour": 10},
                    {"fromMinutes": 60, "toMinutes": None, "ratePerHour": 50},
                    {"fromMinutes": 90, "toMinutes": 60, "ratePerHour": 5},
                    {"fromMinutes": 90, "toMinutes": None, "ratePerHour": -5},
                ],
            }
        ]
    )

    with caplog.at_level(logging.WARNING):
        rules = derive_contract_rules(terms)

    assert rules.dwell_tiers == (DwellTier(0, 60, 0.0), DwellTier(60, None, 50.0))
    assert "overlaps previous tier" in caplog.text
    assert "non-increasing bounds" in caplog.text
    assert "negative rate" in caplog.text


def test_only_dwell_or_detention_penalties_drive_dwell_cost():
    terms = _terms(
        delayPenalties=[
            {"name": "Demurrage", "freeTimeMinutes": 60, "tiers": [{"fromMinutes": 0, "ratePerHour": 100}]},
            {"name": "Driver Detention", "freeTimeMinutes": 90, "tiers": [{"fromMinutes": 90, "ratePerHour": 40}]},
        ]
    )
    rules = derive_contract_rules(terms)
    assert rules.dwell_free_minutes == 90
    assert rules.dwell_tiers == (DwellTier(90, None, 40.0),)

    demurrage_only = derive_contract_rules(
        _terms(delayPenalties=[{"name": "Demurrage", "tiers": [{"fromMinutes": 0, "ratePerHour": 100}]}])
    )
    assert demurrage_only.dwell_tiers == ()


def test_first_non_negative_compliance_window_wins():
    rules = derive_contract_rules(
        _terms(complianceWindows=[{"windowMinutes": -5}, {"windowMinutes": 45}, {"windowMinutes": 15}])
    )
    assert rules.compliance_window_minutes == 45
    assert rules.has_compliance_window is True


def test_zero_minute_window_is_still_a_window():
    rules = derive_contract_rules(_terms(complianceWindows=[{"windowMinutes": 0}]))
    assert rules.has_compliance_window is True
    assert rules.compliance_window_minutes == 0


def test_otif_penalty_classification():
    assert is_otif_penalty("OTIF Violation")
    assert is_otif_penalty("On-Time Delivery fine")
    assert is_otif_penalty("late arrival")
    assert not is_otif_penalty("Chargeback")
    assert not is_otif_penalty("Lumper fee")


def test_party_penalty_with_several_amounts_is_split():
    rules = derive_contract_rules(
        _terms(
            partyPenalties=[
                {"partyName": "Kroger", "penaltyType": "Chargeback", "flatFee": 250, "perOccurrence": 100},
                {"partyName": "Kroger", "penaltyType": "Late delivery", "percentage": 2, "flatFee": 50},
            ]
        )
    )

    assert [(p.flat_fee, p.per_occurrence) for p in rules.party_penalties] == [(250.0, None), (None, 100.0)]
    assert [(p.percentage, p.flat_fee) for p in rules.otif_penalties] == [(2.0, None), (None, 50.0)]
    assert all(p.has_amount for p in rules.party_penalties + rules.otif_penalties)


def test_party_penalty_without_amount_is_kept_at_zero():
    rules = derive_contract_rules(_terms(partyPenalties=[{"partyName": "Target", "penaltyType": "Chargeback"}]))
    assert len(rules.party_penalties) == 1
    assert rules.party_penalties[0].has_amount is False


def test_detention_rate_comes_from_hos_requirements():
    rules = derive_contract_rules(_terms(hosRequirements={"driverDetentionRatePerHour": 65}))
    assert rules.detention_rate_per_hour == 65.0


def test_parse_contract_terms_accepts_json_string():
    terms = parse_contract_terms(json.dumps(_walmart_terms()))
    assert terms is not None
    assert terms.meta is not None
    assert terms.meta.confidence == "high"
    assert terms.complianceWindows[0].windowMinutes == 30


def test_parse_contract_terms_treats_bad_input_as_absent(caplog):
    with caplog.at_level(logging.WARNING):
        assert parse_contract_terms("{not json") is None
        assert parse_contract_terms(json.dumps([1, 2, 3])) is None
        assert parse_contract_terms({"complianceWindows": "thirty minutes"}) is None
    assert "malformed" in caplog.text
    assert parse_contract_terms(None) is None
    assert parse_contract_terms("   ") is None


def test_validate_terms_reports_missing_sections():
    valid, warnings = validate_terms_for_cost_calculation(None)
    assert valid is False
    assert warnings

    valid, warnings = validate_terms_for_cost_calculation(_terms(complianceWindows=[{"windowMinutes": 30}]))
    assert valid is True
    assert any("dwell time cost will be $0" in warning for warning in warnings)
    assert any("chargeback" in warning for warning in warnings)


def test_validate_terms_flags_bad_tiers_and_low_confidence():
    terms = _terms(
        delayPenalties=[{"name": "Dwell", "tiers": [{"fromMinutes": 60, "toMinutes": 30, "ratePerHour": -1}]}],
        _meta={"confidence": "low"},
    )
    valid, warnings = validate_terms_for_cost_calculation(terms)
    assert valid is True
    assert any("toMinutes <= fromMinutes" in warning for warning in warnings)
    assert any("negative rate" in warning for warning in warnings)
    assert any("LOW" in warning for warning in warnings)
