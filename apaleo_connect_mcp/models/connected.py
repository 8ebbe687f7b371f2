"""
Canonical entity models.

These are the only shapes handed to callers. They are produced exclusively by
the mappers in ``apaleo_connect_mcp.models.mappers`` and are frozen so that a
result can be shared and compared safely.
"""

from datetime import date, datetime

from pydantic import Field

from apaleo_connect_mcp.models.common import ConnectedBaseModel


class Location(ConnectedBaseModel):
    """Postal address of an account or hotel."""

    address_line1: str | None = None
    address_line2: str | None = None
    postal_code: str | None = None
    city: str | None = None
    region_code: str | None = None
    country_code: str | None = None


class Money(ConnectedBaseModel):
    """Amount with ISO currency code."""

    amount: float
    currency: str


class Account(ConnectedBaseModel):
    """The account owning the current credentials."""

    id: str
    code: str
    name: str | None = None
    description: str | None = None
    logo_url: str | None = None
    default_language: str | None = None
    location: Location | None = None


class Hotel(ConnectedBaseModel):
    """A property."""

    id: str
    code: str | None = None
    name: str | None = None
    description: str | None = None
    company_name: str | None = None
    currency_code: str | None = None
    time_zone: str | None = None
    status: str | None = None
    is_archived: bool = False
    location: Location | None = None
    created_at: datetime | None = None


class RoomType(ConnectedBaseModel):
    """A bookable room category (apaleo unit group)."""

    id: str
    code: str | None = None
    name: str | None = None
    description: str | None = None
    hotel_id: str | None = None
    type: str | None = None
    max_persons: int | None = None
    member_count: int | None = None
    rank: int | None = None


class RatesRange(ConnectedBaseModel):
    """Dates for which rates are loaded on a rate plan."""

    from_date: date
    to_date: date


class RatePlanSummary(ConnectedBaseModel):
    """Lightweight rate plan reference, enough to fetch its rates."""

    id: str
    code: str | None = None
    name: str | None = None
    rates_range: RatesRange | None = None


class RatePlan(RatePlanSummary):
    """A rate plan with its policies and distribution settings."""

    description: str | None = None
    hotel_id: str | None = None
    room_type_id: str | None = None
    cancellation_policy_id: str | None = None
    no_show_policy_id: str | None = None
    min_guarantee_type: str | None = None
    price_calculation_mode: str | None = None
    channel_codes: list[str] = Field(default_factory=list)
    promo_codes: list[str] = Field(default_factory=list)
    included_service_ids: list[str] = Field(default_factory=list)
    age_category_ids: list[str] = Field(default_factory=list)
    is_bookable: bool = False
    is_derived: bool = False
    is_subject_to_city_tax: bool = False


class RateRestrictions(ConnectedBaseModel):
    """Stay restrictions attached to a single rate."""

    min_length_of_stay: int | None = None
    max_length_of_stay: int | None = None
    closed: bool = False
    closed_on_arrival: bool = False
    closed_on_departure: bool = False


class Rate(ConnectedBaseModel):
    """Price of a rate plan for one time slice."""

    id: str
    rate_plan_id: str | None = None
    from_time: datetime
    to_time: datetime
    price: Money | None = None
    restrictions: RateRestrictions | None = None


class Period(ConnectedBaseModel):
    """Offset before arrival."""

    hours: int = 0
    days: int = 0
    months: int = 0


class Fee(ConnectedBaseModel):
    """Fee charged by a cancellation or no-show policy."""

    vat_type: str | None = None
    fixed: Money | None = None
    percent: float | None = None
    percent_limit: int | None = None
    include_service_ids: list[str] = Field(default_factory=list)


class CancellationPolicy(ConnectedBaseModel):
    """Free-cancellation window and the fee charged afterwards."""

    id: str
    code: str | None = None
    name: str | None = None
    description: str | None = None
    hotel_id: str | None = None
    period_prior_to_arrival: Period | None = None
    fee: Fee | None = None


class NoShowPolicy(ConnectedBaseModel):
    """Fee charged when a guest does not show up."""

    id: str
    code: str | None = None
    name: str | None = None
    description: str | None = None
    hotel_id: str | None = None
    fee: Fee | None = None


class AgeCategory(ConnectedBaseModel):
    """Guest age bracket used for child pricing."""

    id: str
    code: str | None = None
    name: str | None = None
    hotel_id: str | None = None
    min_age: int | None = None
    max_age: int | None = None


class Service(ConnectedBaseModel):
    """Extra service that can be sold with a stay."""

    id: str
    code: str | None = None
    name: str | None = None
    description: str | None = None
    hotel_id: str | None = None
    default_gross_price: Money | None = None
    pricing_unit: str | None = None
    service_type: str | None = None
    vat_type: str | None = None
    post_next_day: bool = False
    availability_mode: str | None = None
    days_of_week: list[str] = Field(default_factory=list)


class PromoCode(ConnectedBaseModel):
    """Promo code and the rate plans it unlocks."""

    id: str
    code: str
    related_rateplan_ids: list[str] = Field(default_factory=list)
