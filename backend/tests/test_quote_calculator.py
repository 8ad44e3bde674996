import pytest

from app.domain.pricing.calculator import (
    STEAM_CLEANING_DISCOUNT_RATE,
    adjust_for_percentages,
    aggregate_base_cost,
    apply_discounts,
    calculate_fixed_extras,
    calculate_quote,
)
from app.domain.pricing.models import QuoteInput, RuleCategory, ValueType
from app.domain.pricing.rules import RateRule, RuleSet, load_rule_set


def _rules(*rules: RateRule) -> RuleSet:
    return RuleSet.from_rules(rules, source="test")


@pytest.fixture()
def bundled_rules() -> RuleSet:
    return load_rule_set("pricing/end_of_tenancy_v1.json")


@pytest.fixture()
def scenario_rules() -> RuleSet:
    return _rules(
        RateRule(RuleCategory.bedrooms, "2", 100.0, time=120),
        RateRule(RuleCategory.property_condition, "heavily-used", 20.0, ValueType.percentage, time=30),
        RateRule(RuleCategory.furniture_status, "furnished", 10.0, ValueType.percentage, time=30),
        RateRule(RuleCategory.oven_cleaning, "double", 15.0, time=60),
    )


def test_empty_input_costs_nothing(bundled_rules):
    result = calculate_quote(QuoteInput(), bundled_rules)

    assert result.total_cost == 0
    assert result.estimated_hours == 0
    assert result.subtotal_before_discounts == 0


def test_blank_selections_are_treated_as_unselected(bundled_rules):
    result = calculate_quote(
        QuoteInput(bedrooms="", bathrooms="  ", property_condition="", oven_type=""),
        bundled_rules,
    )

    assert result.total_cost == 0


def test_zero_percentages_leave_base_unchanged(bundled_rules):
    quote_input = QuoteInput(
        bedrooms="2",
        bathrooms="2",
        property_condition="well-maintained",
        furniture_status="unfurnished",
    )
    result = calculate_quote(quote_input, bundled_rules)

    assert result.base_cost == pytest.approx(225.0)
    assert result.adjusted_base_cost == result.base_cost


def test_percentages_are_summed_not_compounded(scenario_rules):
    quote_input = QuoteInput(bedrooms="2", property_condition="heavily-used", furniture_status="furnished")
    adjustment = adjust_for_percentages(100.0, quote_input, scenario_rules)

    assert adjustment.condition_percentage == 20.0
    assert adjustment.furniture_percentage == 10.0
    assert adjustment.adjusted_base_cost == pytest.approx(130.0)


def test_percentages_never_touch_extras(scenario_rules):
    quote_input = QuoteInput(
        property_condition="heavily-used",
        furniture_status="furnished",
        oven_type="double",
        blinds_items=[{"name": "Venetian", "quantity": 2, "price": 10}],
    )
    result = calculate_quote(quote_input, scenario_rules)

    assert result.adjusted_base_cost == 0
    assert result.total_cost == pytest.approx(35.0)


@pytest.mark.parametrize(
    "steam_fields",
    [
        {"carpet_items": [{"quantity": 3, "unit_price": 30}]},
        {"carpet_items": [{"quantity": 1, "unit_price": 30}], "mattress_items": [{"quantity": 2, "unit_price": 25}]},
        {
            "carpet_items": [{"quantity": 1, "unit_price": 40}],
            "upholstery_items": [{"quantity": 2, "unit_price": 35}],
            "mattress_items": [{"quantity": 1, "unit_price": 20}],
        },
    ],
)
def test_steam_discount_is_twenty_percent(bundled_rules, steam_fields):
    extras = calculate_fixed_extras(QuoteInput(**steam_fields), bundled_rules)

    assert extras.steam_cleaning_discount == pytest.approx(extras.steam_cleaning_total * STEAM_CLEANING_DISCOUNT_RATE)
    assert extras.steam_cleaning_final == pytest.approx(extras.steam_cleaning_total * 0.8)


@pytest.mark.parametrize("first_time", [True, False])
def test_first_time_discount_is_ten_percent_of_subtotal(scenario_rules, first_time):
    quote_input = QuoteInput(bedrooms="2", short_notice_charge=40, is_first_time_customer=first_time)
    result = calculate_quote(quote_input, scenario_rules)

    expected_discount = result.subtotal_before_discounts * 0.10 if first_time else 0.0
    assert result.first_time_discount == pytest.approx(expected_discount)
    assert result.total_cost == result.subtotal_before_discounts - result.first_time_discount


def test_end_to_end_scenario(scenario_rules):
    quote_input = QuoteInput(
        bedrooms="2",
        property_condition="heavily-used",
        furniture_status="furnished",
        oven_type="double",
        short_notice_charge=20,
        is_first_time_customer=True,
    )
    result = calculate_quote(quote_input, scenario_rules)

    assert result.base_cost == pytest.approx(100.0)
    assert result.adjusted_base_cost == pytest.approx(130.0)
    assert result.oven_cleaning_cost == pytest.approx(15.0)
    assert result.subtotal_before_discounts == pytest.approx(165.0)
    assert result.first_time_discount == pytest.approx(16.5)
    assert result.total_cost == pytest.approx(148.5)
    assert result.estimated_hours == pytest.approx(4.0)


def test_recalculation_is_identical(bundled_rules):
    quote_input = QuoteInput(
        property_type="house",
        bedrooms="3",
        bathrooms="2",
        property_condition="moderate",
        furniture_status="part-furnished",
        additional_rooms=["study", "conservatory"],
        additional_services=["garage"],
        oven_type="range",
        carpet_items=[{"quantity": 2, "unit_price": 45}],
        is_first_time_customer=True,
    )

    assert calculate_quote(quote_input, bundled_rules) == calculate_quote(quote_input, bundled_rules)


def test_missing_rule_contributes_nothing():
    rules = _rules(RateRule(RuleCategory.bedrooms, "1", 150.0, time=240))
    base = aggregate_base_cost(
        QuoteInput(bedrooms="1", bathrooms="9", additional_rooms=["ballroom"]), rules
    )

    assert base.base_cost == pytest.approx(150.0)
    assert base.time_minutes == pytest.approx(240.0)


def test_house_share_areas_only_priced_for_house_shares(bundled_rules):
    areas = ["bedroom", "shared_kitchen"]
    shared = aggregate_base_cost(QuoteInput(property_type="house-share", house_share_areas=areas), bundled_rules)
    flat = aggregate_base_cost(QuoteInput(property_type="flat", house_share_areas=areas), bundled_rules)

    assert shared.base_cost == pytest.approx(100.0)
    assert flat.base_cost == 0


def test_separate_kitchen_layout_adds_rule(bundled_rules):
    together = aggregate_base_cost(QuoteInput(bedrooms="1", kitchen_living_separate=False), bundled_rules)
    separate = aggregate_base_cost(QuoteInput(bedrooms="1", kitchen_living_separate=True), bundled_rules)

    assert separate.base_cost - together.base_cost == pytest.approx(20.0)


def test_no_oven_cleaning_rule_reduces_cost(bundled_rules):
    extras = calculate_fixed_extras(QuoteInput(oven_type="no_oven_cleaning"), bundled_rules)
    unselected = calculate_fixed_extras(QuoteInput(oven_type="none"), bundled_rules)

    assert extras.oven_cleaning_cost == pytest.approx(-30.0)
    assert extras.oven_cleaning_time == pytest.approx(-45.0)
    assert unselected.oven_cleaning_cost == 0


def test_short_notice_charge_is_discounted_for_first_time_customers():
    extras = calculate_fixed_extras(QuoteInput(), _rules())
    summary = apply_discounts(0.0, extras, short_notice_charge=50.0, is_first_time_customer=True)

    assert summary.subtotal_before_discounts == pytest.approx(50.0)
    assert summary.first_time_discount == pytest.approx(5.0)


def test_unknown_fields_are_rejected():
    with pytest.raises(ValueError):
        QuoteInput(bedroomz="2")


def test_negative_quantities_are_rejected():
    with pytest.raises(ValueError):
        QuoteInput(blinds_items=[{"quantity": -1, "unit_price": 10}])
