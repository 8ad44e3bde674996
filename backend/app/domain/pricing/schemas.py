from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.domain.pricing.models import RuleCategory, ServiceType, ValueType

PERCENTAGE_CATEGORIES = {RuleCategory.property_condition, RuleCategory.furniture_status}
NON_NULLABLE_FIELDS = {"value", "value_type", "display_order", "category_order", "is_visible", "is_active"}


class PricingRuleBase(BaseModel):
    service_type: ServiceType = ServiceType.end_of_tenancy
    category: RuleCategory
    option: str = Field(min_length=1, max_length=120)
    label: str | None = Field(default=None, max_length=255)
    value: float = 0.0
    value_type: ValueType = ValueType.fixed
    time: float | None = None
    display_order: int = Field(default=0, ge=0)
    category_order: int = Field(default=0, ge=0)
    is_visible: bool = True
    is_active: bool = True


class PricingRuleCreate(PricingRuleBase):
    @model_validator(mode="after")
    def validate_value_type(self) -> "PricingRuleCreate":
        if self.category in PERCENTAGE_CATEGORIES and self.value_type != ValueType.percentage:
            raise ValueError(f"{self.category.value} rules must use value_type=percentage")
        return self


class PricingRuleUpdate(BaseModel):
    label: str | None = Field(default=None, max_length=255)
    value: float | None = None
    value_type: ValueType | None = None
    time: float | None = None
    display_order: int | None = Field(default=None, ge=0)
    category_order: int | None = Field(default=None, ge=0)
    is_visible: bool | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "PricingRuleUpdate":
        nulls = sorted(
            name for name in self.model_fields_set & NON_NULLABLE_FIELDS if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


class PricingRuleResponse(PricingRuleBase):
    model_config = ConfigDict(from_attributes=True)

    rule_id: int
