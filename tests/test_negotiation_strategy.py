from src.dock_negotiator.models.domain import ContractRuleSet, DwellTier, PartyPenalty
from src.dock_negotiator.services.costs.engine import CostParams, calculate_total_cost_impact
from src.dock_negotiator.services.negotiation.models import StrategyConfig, StrategyParams
from src.dock_negotiator.services.negotiation.strategy import (
    create_negotiation_strategy,
    evaluate_offer,
    suggest_counter_offer,
)

TWO_PM = 14 * 60


def _scenario_rules(**overrides) -> ContractRuleSet:
    defaults = dict(
        dwell_tiers=(DwellTier(0, 60, 0.0), DwellTier(60, None, 50.0)),
        compliance_window_minutes=30,
        has_compliance_window=True,
    )
    defaults.update(overrides)
    return ContractRuleSet(**defaults)


def _strategy(rules: ContractRuleSet, delay: int = 120, config: StrategyConfig | None = None):
    return create_negotiation_strategy(
        StrategyParams(
            original_minutes=TWO_PM,
            delay_minutes=delay,
            shipment_value=45000.0,
            retailer="Walmart",
            rules=rules,
        ),
        config,
    )


def test_ideal_zone_ends_at_window_and_costs_what_the_engine_says():
    rules = _scenario_rules()
    strategy = _strategy(rules)

    assert strategy.ideal.max_minutes == TWO_PM + 30
    engine_cost = calculate_total_cost_impact(
        CostParams(TWO_PM, strategy.ideal.max_minutes, 45000.0, "Walmart"), rules
    ).total_cost
    assert strategy.cost_thresholds.ideal == engine_cost == 0.0


def test_zones_without_escalations_use_tolerance_and_extension():
    strategy = _strategy(_scenario_rules())

    assert strategy.actual_arrival_minutes == 16 * 60
    assert strategy.acceptable.max_minutes == 18 * 60
    assert strategy.cost_thresholds.acceptable == 150.0
    assert strategy.reluctant.max_minutes == 20 * 60
    assert strategy.reluctant.cost == 250.0
    assert strategy.cost_thresholds.reluctant == 200.0
    assert strategy.display.ideal_before == "14:30"
    assert strategy.display.acceptable_before == "18:00"
    assert strategy.display.actual_arrival_time == "16:00"


def test_zone_order_holds():
    strategy = _strategy(_scenario_rules())
    assert strategy.ideal.max_minutes <= strategy.acceptable.max_minutes <= strategy.reluctant.max_minutes
    thresholds = strategy.cost_thresholds
    assert thresholds.ideal <= thresholds.acceptable <= thresholds.reluctant


def test_step_jump_ends_acceptable_zone_before_the_penalty():
    rules = _scenario_rules(
        dwell_tiers=(),
        otif_penalties=(PartyPenalty(party_name="Walmart", penalty_type="OTIF", flat_fee=500.0),),
    )
    strategy = _strategy(rules, delay=0)

    assert strategy.acceptable.max_minutes == TWO_PM + 30
    assert strategy.cost_thresholds.acceptable == 0.0
    assert strategy.reluctant.max_minutes == TWO_PM + 30 + 120
    assert strategy.cost_thresholds.reluctant == 250.0


def test_rate_rise_at_tier_boundary_ends_zones_at_the_boundary():
    rules = ContractRuleSet(
        dwell_tiers=(DwellTier(120, 240, 50.0), DwellTier(240, None, 75.0)),
        dwell_free_minutes=120,
    )
    strategy = _strategy(rules, delay=60)

    assert strategy.ideal.max_minutes == TWO_PM
    assert strategy.acceptable.max_minutes == TWO_PM + 120
    assert strategy.cost_thresholds.acceptable == 0.0
    assert strategy.reluctant.max_minutes == TWO_PM + 240
    assert strategy.reluctant.cost == 100.0
    assert strategy.cost_thresholds.reluctant == 50.0


def test_empty_rules_still_produce_zones():
    strategy = _strategy(ContractRuleSet.empty())
    assert strategy.ideal.max_minutes == TWO_PM
    assert strategy.acceptable.max_minutes == 16 * 60 + 120
    assert strategy.cost_thresholds.reluctant == 0.0


def test_config_overrides_tolerance_and_pushbacks():
    config = StrategyConfig(acceptable_tolerance_minutes=60, max_pushback_attempts=4)
    strategy = _strategy(_scenario_rules(), config=config)
    assert strategy.acceptable.max_minutes == 17 * 60
    assert strategy.max_pushback_attempts == 4


def test_evaluate_offer_verdicts():
    strategy = _strategy(_scenario_rules())

    ideal = evaluate_offer(TWO_PM + 20, 0.0, strategy)
    assert ideal.verdict == "IDEAL"
    assert ideal.reason == "IDEAL - No cost impact"

    acceptable = evaluate_offer(16 * 60, 50.0, strategy)
    assert acceptable.verdict == "ACCEPTABLE"
    assert acceptable.acceptable is True
    assert acceptable.suggested_counter_offer is None

    late = evaluate_offer(19 * 60, 200.0, strategy)
    assert late.verdict == "SUBOPTIMAL"
    assert late.acceptable is False
    assert late.suggested_counter_offer == "2:30 PM"
    assert late.reason.startswith("SUBOPTIMAL - Time too late")


def test_evaluate_offer_boundaries_are_inclusive():
    strategy = _strategy(_scenario_rules())
    acceptable_max = strategy.acceptable.max_minutes
    acceptable_cost = strategy.cost_thresholds.acceptable

    assert evaluate_offer(acceptable_max, acceptable_cost, strategy).verdict == "ACCEPTABLE"
    assert evaluate_offer(acceptable_max + 1, 0.0, strategy).verdict == "SUBOPTIMAL"


def test_evaluate_offer_ideal_time_with_cost_falls_through_to_acceptable():
    strategy = _strategy(_scenario_rules())
    result = evaluate_offer(strategy.ideal.max_minutes, 0.01, strategy)
    assert result.verdict == "ACCEPTABLE"


def test_evaluate_offer_tolerates_cost_between_acceptable_and_reluctant():
    strategy = _strategy(_scenario_rules())
    result = evaluate_offer(strategy.acceptable.max_minutes, 150.01, strategy)
    assert result.verdict == "OK (within tolerance)"
    assert result.acceptable is True


def test_evaluate_offer_rejects_cost_above_reluctant_even_when_on_time():
    strategy = _strategy(_scenario_rules())
    result = evaluate_offer(TWO_PM - 60, 1000.0, strategy)
    assert result.verdict == "SUBOPTIMAL"
    assert result.reason.startswith("SUBOPTIMAL - Cost too high")


def test_counter_offer_is_ideal_rounded_up():
    strategy = _strategy(_scenario_rules(compliance_window_minutes=28))
    assert suggest_counter_offer(strategy) == "2:30 PM"
