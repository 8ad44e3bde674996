"""End-of-tenancy quote calculation.

The quote is built in a fixed order: fixed base costs, then the condition and
furniture percentages on that base, then extras that percentages never touch,
then the discounts. Every function here is pure over a ``RuleSet`` snapshot.
"""

from dataclasses import dataclass
from typing import Iterable

from app.domain.pricing.models import (
    NO_OVEN_SELECTED,
    SEPARATE_KITCHEN_OPTION,
    LineItem,
    PropertyType,
    QuoteInput,
    QuoteResult,
    RuleCategory,
)
from app.domain.pricing.rules import RuleSet

STEAM_CLEANING_DISCOUNT_RATE = 0.20
FIRST_TIME_DISCOUNT_RATE = 0.10
MINUTES_PER_HOUR = 60


@dataclass(frozen=True)
class BaseCostBreakdown:
    base_cost: float
    time_minutes: float


@dataclass(frozen=True)
class PercentageAdjustment:
    condition_percentage: float
    furniture_percentage: float
    adjusted_base_cost: float
    time_minutes: float


@dataclass(frozen=True)
class FixedExtras:
    oven_cleaning_cost: float
    oven_cleaning_time: float
    blinds_total: float
    extras_total: float
    additional_services_total: float
    additional_services_time: float
    steam_cleaning_total: float
    steam_cleaning_discount: float
    steam_cleaning_final: float

    @property
    def time_minutes(self) -> float:
        return self.additional_services_time + self.oven_cleaning_time


@dataclass(frozen=True)
class DiscountSummary:
    subtotal_before_discounts: float
    first_time_discount: float
    total_cost: float


def _items_total(items: Iterable[LineItem]) -> float:
    return sum((item.line_total for item in items), 0.0)


def aggregate_base_cost(quote_input: QuoteInput, rules: RuleSet) -> BaseCostBreakdown:
    base_cost = 0.0
    time_minutes = 0.0

    selections: list[tuple[RuleCategory, str]] = []
    if quote_input.property_type:
        selections.append((RuleCategory.property_type, quote_input.property_type.value))
    if quote_input.bedrooms:
        selections.append((RuleCategory.bedrooms, quote_input.bedrooms))
    if quote_input.bathrooms:
        selections.append((RuleCategory.bathrooms, quote_input.bathrooms))
    if quote_input.kitchen_living_separate is True:
        selections.append((RuleCategory.kitchen_living_layout, SEPARATE_KITCHEN_OPTION))
    selections.extend((RuleCategory.additional_rooms, room) for room in quote_input.additional_rooms)
    # Shared areas only price when the property is actually a house share.
    if quote_input.property_type == PropertyType.house_share:
        selections.extend((RuleCategory.house_share_areas, area) for area in quote_input.house_share_areas)

    for category, option in selections:
        rule = rules.contribution(category, option)
        base_cost += rule.value
        time_minutes += rule.time

    return BaseCostBreakdown(base_cost=base_cost, time_minutes=time_minutes)


def adjust_for_percentages(
    base_cost: float, quote_input: QuoteInput, rules: RuleSet
) -> PercentageAdjustment:
    condition_percentage = 0.0
    condition_time = 0.0
    if quote_input.property_condition:
        rule = rules.contribution(RuleCategory.property_condition, quote_input.property_condition.value)
        condition_percentage = rule.value
        condition_time = rule.time

    furniture_percentage = 0.0
    furniture_time = 0.0
    if quote_input.furniture_status:
        rule = rules.contribution(RuleCategory.furniture_status, quote_input.furniture_status.value)
        furniture_percentage = rule.value
        furniture_time = rule.time

    # Summed, not compounded: both percentages apply to the same base.
    total_increase = (condition_percentage + furniture_percentage) / 100
    return PercentageAdjustment(
        condition_percentage=condition_percentage,
        furniture_percentage=furniture_percentage,
        adjusted_base_cost=base_cost * (1 + total_increase),
        time_minutes=condition_time + furniture_time,
    )


def calculate_fixed_extras(quote_input: QuoteInput, rules: RuleSet) -> FixedExtras:
    additional_services_total = 0.0
    additional_services_time = 0.0
    for service in quote_input.additional_services:
        rule = rules.contribution(RuleCategory.additional_services, service)
        additional_services_total += rule.value
        additional_services_time += rule.time

    # The no_oven_cleaning rule is negative: a single oven is already included in the base rules.
    oven_cleaning_cost = 0.0
    oven_cleaning_time = 0.0
    if quote_input.oven_type and quote_input.oven_type != NO_OVEN_SELECTED:
        rule = rules.contribution(RuleCategory.oven_cleaning, quote_input.oven_type)
        oven_cleaning_cost = rule.value
        oven_cleaning_time = rule.time

    steam_cleaning_total = (
        _items_total(quote_input.carpet_items)
        + _items_total(quote_input.upholstery_items)
        + _items_total(quote_input.mattress_items)
    )
    steam_cleaning_discount = steam_cleaning_total * STEAM_CLEANING_DISCOUNT_RATE

    return FixedExtras(
        oven_cleaning_cost=oven_cleaning_cost,
        oven_cleaning_time=oven_cleaning_time,
        blinds_total=_items_total(quote_input.blinds_items),
        extras_total=_items_total(quote_input.extra_services),
        additional_services_total=additional_services_total,
        additional_services_time=additional_services_time,
        steam_cleaning_total=steam_cleaning_total,
        steam_cleaning_discount=steam_cleaning_discount,
        steam_cleaning_final=steam_cleaning_total - steam_cleaning_discount,
    )


def apply_discounts(
    adjusted_base_cost: float,
    extras: FixedExtras,
    short_notice_charge: float,
    is_first_time_customer: bool,
) -> DiscountSummary:
    subtotal = (
        adjusted_base_cost
        + extras.oven_cleaning_cost
        + extras.blinds_total
        + extras.extras_total
        + extras.additional_services_total
        + extras.steam_cleaning_final
        + short_notice_charge
    )
    first_time_discount = subtotal * FIRST_TIME_DISCOUNT_RATE if is_first_time_customer else 0.0
    return DiscountSummary(
        subtotal_before_discounts=subtotal,
        first_time_discount=first_time_discount,
        total_cost=subtotal - first_time_discount,
    )


def calculate_quote(quote_input: QuoteInput, rules: RuleSet) -> QuoteResult:
    base = aggregate_base_cost(quote_input, rules)
    extras = calculate_fixed_extras(quote_input, rules)
    adjustment = adjust_for_percentages(base.base_cost, quote_input, rules)
    discounts = apply_discounts(
        adjustment.adjusted_base_cost,
        extras,
        quote_input.short_notice_charge,
        quote_input.is_first_time_customer,
    )
    total_time_minutes = base.time_minutes + extras.time_minutes + adjustment.time_minutes

    return QuoteResult(
        base_cost=base.base_cost,
        condition_percentage=adjustment.condition_percentage,
        furniture_percentage=adjustment.furniture_percentage,
        adjusted_base_cost=adjustment.adjusted_base_cost,
        oven_cleaning_cost=extras.oven_cleaning_cost,
        blinds_total=extras.blinds_total,
        extras_total=extras.extras_total,
        additional_services_total=extras.additional_services_total,
        steam_cleaning_total=extras.steam_cleaning_total,
        steam_cleaning_discount=extras.steam_cleaning_discount,
        steam_cleaning_final=extras.steam_cleaning_final,
        short_notice_charge=quote_input.short_notice_charge,
        subtotal_before_discounts=discounts.subtotal_before_discounts,
        first_time_discount=discounts.first_time_discount,
        total_cost=discounts.total_cost,
        estimated_hours=total_time_minutes / MINUTES_PER_HOUR,
        total_time_minutes=total_time_minutes,
        rules_hash=rules.config_hash,
    )
