from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.domain.cleaner_pay.pay import PaymentType

RATE_FIELD_BY_TYPE = {
    PaymentType.hourly: "hourly_rate",
    PaymentType.percentage: "percentage_rate",
    PaymentType.fixed: "fixed_amount",
}


class CleanerRateFields(BaseModel):
    payment_type: PaymentType
    hourly_rate: float | None = Field(default=None, ge=0)
    percentage_rate: float | None = Field(default=None, ge=0, le=100)
    fixed_amount: float | None = Field(default=None, ge=0)
    hours_assigned: float | None = Field(default=None, ge=0)

    def rate_columns(self) -> dict[str, float | None]:
        """Only the rate matching the payment type is stored; the others are cleared."""
        return {
            "payment_type": self.payment_type.value,
            "hourly_rate": self.hourly_rate if self.payment_type == PaymentType.hourly else None,
            "percentage_rate": self.percentage_rate if self.payment_type == PaymentType.percentage else None,
            "fixed_amount": self.fixed_amount if self.payment_type == PaymentType.fixed else None,
        }


class AddCleanerRequest(CleanerRateFields):
    cleaner_id: int

    @model_validator(mode="after")
    def validate_rate_present(self) -> "AddCleanerRequest":
        if getattr(self, RATE_FIELD_BY_TYPE[self.payment_type]) is None:
            raise ValueError(f"{self.payment_type.value} payment requires its rate field")
        return self


class UpdateCleanerRequest(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    payment_type: PaymentType | None = None
    hourly_rate: float | None = Field(default=None, ge=0)
    percentage_rate: float | None = Field(default=None, ge=0, le=100)
    fixed_amount: float | None = Field(default=None, ge=0)
    hours_assigned: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "UpdateCleanerRequest":
        nulls = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null; omit the field to keep it")
        return self


class UpsertPrimaryRequest(CleanerRateFields):
    cleaner_id: int


class PayOverrideRequest(BaseModel):
    amount: float = Field(ge=0)


class CleanerPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: int
    booking_id: int
    cleaner_id: int
    is_primary: bool
    payment_type: PaymentType
    hourly_rate: float | None
    percentage_rate: float | None
    fixed_amount: float | None
    hours_assigned: float | None
    calculated_pay: float
    pay_overridden: bool
    status: str
    created_at: datetime


class RosterReconciliation(BaseModel):
    model_config = ConfigDict(frozen=True)

    booking_id: int
    total_hours: float
    additional_hours: float
    primary_hours: float
    primary_pay: float


class RosterMutationResponse(BaseModel):
    assignment: CleanerPaymentResponse | None = None
    reconciliation: RosterReconciliation | None = None


class AdditionalAssignmentSummary(BaseModel):
    booking_id: int
    pay: float
    hours: float


class CleanerBookingsResponse(BaseModel):
    cleaner_id: int
    primary: list[int]
    additional: list[AdditionalAssignmentSummary]
