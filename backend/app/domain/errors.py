from dataclasses import dataclass
from typing import List


@dataclass
class DomainError(Exception):
    detail: str
    title: str = "Domain Error"
    type: str = "https://example.com/problems/domain-error"
    errors: List[dict] | None = None
    status_code: int = 400


class BookingNotFoundError(DomainError):
    def __init__(self, booking_id: int) -> None:
        super().__init__(
            detail=f"Booking {booking_id} not found",
            title="Booking Not Found",
            type="https://example.com/problems/not-found",
            status_code=404,
        )


class CleanerPaymentNotFoundError(DomainError):
    def __init__(self, payment_id: int) -> None:
        super().__init__(
            detail=f"Cleaner assignment {payment_id} not found",
            title="Cleaner Assignment Not Found",
            type="https://example.com/problems/not-found",
            status_code=404,
        )


class PricingRuleNotFoundError(DomainError):
    def __init__(self, rule_id: int) -> None:
        super().__init__(
            detail=f"Pricing rule {rule_id} not found",
            title="Pricing Rule Not Found",
            type="https://example.com/problems/not-found",
            status_code=404,
        )


class PersistenceError(DomainError):
    """Raised when a write to the store fails; financial state must not be dropped silently."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            detail=detail,
            title="Persistence Failure",
            type="https://example.com/problems/persistence-error",
            status_code=500,
        )


class CleanerNotFoundError(DomainError):
    def __init__(self, cleaner_id: int) -> None:
        super().__init__(
            detail=f"Cleaner {cleaner_id} not found",
            title="Cleaner Not Found",
            type="https://example.com/problems/not-found",
            status_code=404,
        )


class RosterHoursExceededError(DomainError):
    def __init__(self, booking_id: int, requested_hours: float, total_hours: float) -> None:
        super().__init__(
            detail=(
                f"Additional cleaners on booking {booking_id} would hold {requested_hours:g}h "
                f"of a {total_hours:g}h booking"
            ),
            title="Roster Hours Exceeded",
            type="https://example.com/problems/roster-hours-exceeded",
            status_code=409,
        )


class MissingRateError(DomainError):
    def __init__(self, payment_id: int, payment_type: str) -> None:
        super().__init__(
            detail=f"Switching assignment {payment_id} to {payment_type} pay requires its rate field",
            title="Missing Rate",
            type="https://example.com/problems/missing-rate",
            status_code=422,
        )


class PricingRuleValueTypeError(DomainError):
    def __init__(self, category: str) -> None:
        super().__init__(
            detail=f"{category} rules must use value_type=percentage",
            title="Invalid Pricing Rule",
            type="https://example.com/problems/invalid-pricing-rule",
            status_code=422,
        )
