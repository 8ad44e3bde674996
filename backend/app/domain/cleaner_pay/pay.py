from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class PaymentType(str, Enum):
    hourly = "hourly"
    percentage = "percentage"
    fixed = "fixed"


def _coerce_payment_type(payment_type: "PaymentType | str") -> PaymentType | None:
    try:
        return PaymentType(payment_type)
    except ValueError:
        return None


def calculate_cleaner_pay(
    payment_type: "PaymentType | str",
    total_cost: float,
    hourly_rate: Optional[float] = None,
    percentage_rate: Optional[float] = None,
    fixed_amount: Optional[float] = None,
    hours_assigned: Optional[float] = None,
) -> float:
    resolved = _coerce_payment_type(payment_type)
    if resolved is PaymentType.hourly:
        return (hours_assigned or 0.0) * (hourly_rate or 0.0)
    if resolved is PaymentType.percentage:
        return (total_cost * (percentage_rate or 0.0)) / 100
    if resolved is PaymentType.fixed:
        return fixed_amount or 0.0
    return 0.0


def primary_cleaner_hours(total_hours: float, additional_hours: Iterable[Optional[float]]) -> float:
    return max(0.0, total_hours - sum((hours or 0.0 for hours in additional_hours), 0.0))


@dataclass(frozen=True)
class PrimaryRateConfig:
    """Rate configured for the booking's primary cleaner."""

    hourly_rate: Optional[float] = None
    percentage_rate: Optional[float] = None
    fixed_amount: Optional[float] = None


def calculate_primary_pay(
    rate_config: PrimaryRateConfig,
    *,
    total_cost: float,
    total_hours: float,
    primary_hours: float,
    default_hourly_rate: float,
) -> float:
    if rate_config.hourly_rate and rate_config.hourly_rate > 0:
        return primary_hours * rate_config.hourly_rate
    if rate_config.percentage_rate and rate_config.percentage_rate > 0:
        # Percentage pay shrinks with the share of hours handed to additional cleaners.
        hours_ratio = primary_hours / total_hours if total_hours > 0 else 0.0
        return total_cost * (rate_config.percentage_rate / 100) * hours_ratio
    if rate_config.fixed_amount is not None:
        return rate_config.fixed_amount
    return primary_hours * default_hourly_rate
