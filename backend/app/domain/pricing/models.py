from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, confloat, conint, field_validator


class ServiceType(str, Enum):
    end_of_tenancy = "end_of_tenancy"
    airbnb = "airbnb"
    domestic = "domestic"


class RuleCategory(str, Enum):
    property_type = "property_type"
    bedrooms = "bedrooms"
    bathrooms = "bathrooms"
    kitchen_living_layout = "kitchen_living_layout"
    additional_rooms = "additional_rooms"
    house_share_areas = "house_share_areas"
    additional_services = "additional_services"
    oven_cleaning = "oven_cleaning"
    property_condition = "property_condition"
    furniture_status = "furniture_status"


class ValueType(str, Enum):
    fixed = "fixed"
    percentage = "percentage"


class PropertyType(str, Enum):
    flat = "flat"
    house = "house"
    house_share = "house-share"


class PropertyCondition(str, Enum):
    well_maintained = "well-maintained"
    moderate = "moderate"
    heavily_used = "heavily-used"
    intensive = "intensive"


class FurnitureStatus(str, Enum):
    furnished = "furnished"
    unfurnished = "unfurnished"
    part_furnished = "part-furnished"


NO_OVEN_SELECTED = "none"
SEPARATE_KITCHEN_OPTION = "separate"


class LineItem(BaseModel):
    """An itemized extra priced as quantity x unit price (blinds, carpets, mattresses...)."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: Optional[str] = None
    quantity: conint(ge=0) = 0
    unit_price: confloat(ge=0.0) = Field(0.0, validation_alias=AliasChoices("unit_price", "price"))

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class QuoteInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    property_type: Optional[PropertyType] = None
    bedrooms: Optional[str] = None
    bathrooms: Optional[str] = None
    property_condition: Optional[PropertyCondition] = None
    furniture_status: Optional[FurnitureStatus] = None
    kitchen_living_separate: Optional[bool] = None
    additional_rooms: List[str] = Field(default_factory=list)
    house_share_areas: List[str] = Field(default_factory=list)
    additional_services: List[str] = Field(default_factory=list)
    oven_type: Optional[str] = None
    blinds_items: List[LineItem] = Field(default_factory=list)
    extra_services: List[LineItem] = Field(default_factory=list)
    carpet_items: List[LineItem] = Field(default_factory=list)
    upholstery_items: List[LineItem] = Field(default_factory=list)
    mattress_items: List[LineItem] = Field(default_factory=list)
    short_notice_charge: confloat(ge=0.0) = 0.0
    is_first_time_customer: bool = False

    @field_validator(
        "property_type",
        "bedrooms",
        "bathrooms",
        "property_condition",
        "furniture_status",
        "oven_type",
        mode="before",
    )
    @classmethod
    def blank_as_unselected(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class QuoteResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_cost: float
    condition_percentage: float
    furniture_percentage: float
    adjusted_base_cost: float
    oven_cleaning_cost: float
    blinds_total: float
    extras_total: float
    additional_services_total: float
    steam_cleaning_total: float
    steam_cleaning_discount: float
    steam_cleaning_final: float
    short_notice_charge: float
    subtotal_before_discounts: float
    first_time_discount: float
    total_cost: float
    estimated_hours: float
    total_time_minutes: float
    rules_hash: str
