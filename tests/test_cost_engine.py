import pytest

from src.dock_negotiator.models.domain import ContractRuleSet, DwellTier, PartyPenalty
from src.dock_negotiator.services.costs.engine import (
    CostParams,
    calculate_dwell_time_cost,
    calculate_total_cost_impact,
    penalties_for_retailer,
)

TWO_PM = 14 * 60


def _rules(**overrides) -> ContractRuleSet:
    defaults = dict(
        dwell_tiers=(DwellTier(0, 60, 0.0), DwellTier(60, None, 50.0)),
        compliance_window_minutes=30,
        has_compliance_window=True,
    )
    defaults.update(overrides)
    return ContractRuleSet(**defaults)


def _cost(offered: int, rules: ContractRuleSet, value: float = 45000.0, retailer: str | None = "Walmart"):
    return calculate_total_cost_impact(
        CostParams(original_minutes=TWO_PM, offered_minutes=offered, shipment_value=value, retailer=retailer),
        rules,
    )


def test_dwell_cost_charges_each_tier_for_its_overlap():
    rules = _rules()
    assert calculate_dwell_time_cost(30, rules)[0] == 0.0
    total, breakdown = calculate_dwell_time_cost(90, rules)
    assert total == 25.0
    assert [item.minutes for item in breakdown] == [60, 30]


def test_dwell_cost_starts_after_free_time():
    rules = ContractRuleSet(
        dwell_tiers=(DwellTier(120, 240, 50.0), DwellTier(240, None, 75.0)),
        dwell_free_minutes=120,
    )
    assert calculate_dwell_time_cost(120, rules)[0] == 0.0
    assert calculate_dwell_time_cost(180, rules)[0] == 50.0
    assert calculate_dwell_time_cost(300, rules)[0] == 175.0


@pytest.mark.parametrize("offered", [TWO_PM - 120, TWO_PM, TWO_PM + 45, TWO_PM + 600, TWO_PM + 1440])
def test_empty_rules_cost_nothing(offered):
    result = _cost(offered, ContractRuleSet.empty())
    assert result.total_cost == 0.0
    assert result.outside_window is False
    assert result.penalty_breakdown == ()


def test_late_offer_with_window_and_tiers():
    result = _cost(16 * 60, _rules())
    assert result.dwell_total == 50.0
    assert result.outside_window is True
    assert result.otif_total == 0.0
    assert result.total_cost == 50.0
    assert result.difference_minutes == 120


def test_otif_percentage_applies_outside_window():
    rules = _rules(
        dwell_tiers=(DwellTier(120, 240, 50.0), DwellTier(240, None, 75.0)),
        dwell_free_minutes=120,
        otif_penalties=(PartyPenalty(party_name="Walmart", penalty_type="OTIF Violation", percentage=3.0),),
    )

    late = _cost(16 * 60, rules)
    assert late.dwell_total == 0.0
    assert late.otif_total == 1350.0
    assert late.total_cost == 1350.0

    inside = _cost(TWO_PM + 20, rules)
    assert inside.outside_window is False
    assert inside.total_cost == 0.0


def test_early_arrival_outside_window_pays_otif_and_party_penalties():
    rules = _rules(
        otif_penalties=(PartyPenalty(party_name="Walmart", penalty_type="OTIF", flat_fee=500.0),),
        party_penalties=(PartyPenalty(party_name="Walmart", penalty_type="Chargeback", flat_fee=250.0),),
    )
    result = _cost(TWO_PM - 60, rules)
    assert result.outside_window is True
    assert result.dwell_total == 0.0
    assert result.otif_total == 500.0
    assert result.party_penalty_total == 250.0
    assert result.total_cost == 750.0


def test_party_penalties_are_charged_for_any_offer():
    rules = ContractRuleSet(
        party_penalties=(
            PartyPenalty(party_name="Walmart", penalty_type="Chargeback", flat_fee=250.0),
            PartyPenalty(party_name="Walmart", penalty_type="Chargeback", per_occurrence=100.0),
            PartyPenalty(party_name="Walmart", penalty_type="Lumper"),
        )
    )
    for offered in (TWO_PM - 60, TWO_PM, TWO_PM + 10, TWO_PM + 120):
        result = _cost(offered, rules)
        assert result.party_penalty_total == 350.0
        assert len(result.penalty_breakdown) == 3


def test_percentage_party_penalty_is_charged_inside_window():
    rules = _rules(party_penalties=(PartyPenalty(party_name="Walmart", penalty_type="Chargeback", percentage=3.0),))
    on_time = _cost(TWO_PM, rules)
    ten_late = _cost(TWO_PM + 10, rules)
    assert on_time.outside_window is False
    assert on_time.party_penalty_total == 1350.0
    assert ten_late.party_penalty_total == on_time.party_penalty_total


def test_retailer_filter_matches_case_insensitively_and_falls_back_to_all():
    penalties = (
        PartyPenalty(party_name="Walmart Inc.", penalty_type="OTIF", percentage=3.0),
        PartyPenalty(party_name="Target", penalty_type="OTIF", flat_fee=500.0),
    )
    assert penalties_for_retailer(penalties, "walmart") == [penalties[0]]
    assert penalties_for_retailer(penalties, "Kroger") == list(penalties)
    assert penalties_for_retailer(penalties, None) == list(penalties)

    rules = _rules(otif_penalties=penalties)
    assert _cost(16 * 60, rules, retailer="walmart").otif_total == 1350.0
    assert _cost(16 * 60, rules, retailer="Kroger").otif_total == 1850.0


def test_money_is_rounded_to_cents():
    rules = _rules(otif_penalties=(PartyPenalty(party_name="Walmart", penalty_type="OTIF", percentage=3.0),))
    result = _cost(16 * 60, rules, value=33333.0)
    assert result.otif_total == 999.99
    assert result.total_cost == 1049.99


def test_negative_shipment_value_never_produces_negative_cost():
    rules = _rules(otif_penalties=(PartyPenalty(party_name="Walmart", penalty_type="OTIF", percentage=3.0),))
    result = _cost(16 * 60, rules, value=-1000.0)
    assert result.otif_total == 0.0
    assert result.total_cost >= 0.0
