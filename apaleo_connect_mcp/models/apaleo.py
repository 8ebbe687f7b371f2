"""
Vendor payload models for the apaleo REST API.

Field names follow the apaleo JSON (camelCase aliases). Every field that apaleo
may omit has a default, and list envelopes default to an empty page because
apaleo answers an empty collection with ``204 No Content``.
"""

from typing import Any

from pydantic import Field

from apaleo_connect_mcp.models.common import ApaleoBaseModel

# Single-entity endpoints return localised texts as {"en": "..."}
LocalizedText = str | dict[str, str] | None


class ApaleoEmbeddedRef(ApaleoBaseModel):
    """Embedded reference to another entity (property, unit group, policy)."""

    id: str | None = None
    code: str | None = None
    name: LocalizedText = None
    description: LocalizedText = None


class ApaleoAddress(ApaleoBaseModel):
    address_line1: str | None = Field(None, alias="addressLine1")
    address_line2: str | None = Field(None, alias="addressLine2")
    postal_code: str | None = Field(None, alias="postalCode")
    city: str | None = None
    region_code: str | None = Field(None, alias="regionCode")
    country_code: str | None = Field(None, alias="countryCode")


class ApaleoAmount(ApaleoBaseModel):
    amount: float = 0.0
    currency: str = ""


class ApaleoAccount(ApaleoBaseModel):
    code: str
    name: LocalizedText = None
    description: LocalizedText = None
    logo_url: str | None = Field(None, alias="logoUrl")
    default_language: str | None = Field(None, alias="defaultLanguage")
    location: ApaleoAddress | None = None


class ApaleoProperty(ApaleoBaseModel):
    id: str
    code: str | None = None
    name: LocalizedText = None
    description: LocalizedText = None
    company_name: str | None = Field(None, alias="companyName")
    currency_code: str | None = Field(None, alias="currencyCode")
    time_zone: str | None = Field(None, alias="timeZone")
    status: str | None = None
    is_archived: bool = Field(False, alias="isArchived")
    location: ApaleoAddress | None = None
    created: str | None = None


class ApaleoPropertyList(ApaleoBaseModel):
    properties: list[ApaleoProperty] = Field(default_factory=list)
    count: int = 0


class ApaleoUnitGroup(ApaleoBaseModel):
    id: str
    code: str | None = None
    name: LocalizedText = None
    description: LocalizedText = None
    type: str | None = None
    max_persons: int | None = Field(None, alias="maxPersons")
    member_count: int | None = Field(None, alias="memberCount")
    rank: int | None = None
    property: ApaleoEmbeddedRef | None = None


class ApaleoUnitGroupList(ApaleoBaseModel):
    unit_groups: list[ApaleoUnitGroup] = Field(default_factory=list, alias="unitGroups")
    count: int = 0


class ApaleoRatesRange(ApaleoBaseModel):
    from_date: str | None = Field(None, alias="from")
    to_date: str | None = Field(None, alias="to")


class ApaleoRatePlan(ApaleoBaseModel):
    id: str
    code: str | None = None
    name: LocalizedText = None
    description: LocalizedText = None
    min_guarantee_type: str | None = Field(None, alias="minGuaranteeType")
    price_calculation_mode: str | None = Field(None, alias="priceCalculationMode")
    property: ApaleoEmbeddedRef | None = None
    unit_group: ApaleoEmbeddedRef | None = Field(None, alias="unitGroup")
    cancellation_policy: ApaleoEmbeddedRef | None = Field(
        None, alias="cancellationPolicy"
    )
    no_show_policy: ApaleoEmbeddedRef | None = Field(None, alias="noShowPolicy")
    channel_codes: list[str] | None = Field(None, alias="channelCodes")
    promo_codes: list[str] | None = Field(None, alias="promoCodes")
    included_services: list[dict[str, Any]] | None = Field(
        None, alias="includedServices"
    )
    age_categories: list[dict[str, Any]] | None = Field(None, alias="ageCategories")
    is_bookable: bool = Field(False, alias="isBookable")
    is_derived: bool = Field(False, alias="isDerived")
    is_subject_to_city_tax: bool = Field(False, alias="isSubjectToCityTax")
    rates_range: ApaleoRatesRange | None = Field(None, alias="ratesRange")


class ApaleoRatePlanList(ApaleoBaseModel):
    rate_plans: list[ApaleoRatePlan] = Field(default_factory=list, alias="ratePlans")
    count: int = 0


class ApaleoRateRestrictions(ApaleoBaseModel):
    min_length_of_stay: int | None = Field(None, alias="minLengthOfStay")
    max_length_of_stay: int | None = Field(None, alias="maxLengthOfStay")
    closed: bool = False
    closed_on_arrival: bool = Field(False, alias="closedOnArrival")
    closed_on_departure: bool = Field(False, alias="closedOnDeparture")


class ApaleoRate(ApaleoBaseModel):
    from_time: str = Field(alias="from")
    to_time: str = Field(alias="to")
    price: ApaleoAmount | None = None
    restrictions: ApaleoRateRestrictions | None = None


class ApaleoRateList(ApaleoBaseModel):
    rates: list[ApaleoRate] = Field(default_factory=list)
    count: int = 0


class ApaleoPeriod(ApaleoBaseModel):
    hours: int | None = None
    days: int | None = None
    months: int | None = None


class ApaleoPercentValue(ApaleoBaseModel):
    percent: float | None = None
    limit: int | None = None
    include_service_ids: list[str] | None = Field(None, alias="includeServiceIds")


class ApaleoFee(ApaleoBaseModel):
    vat_type: str | None = Field(None, alias="vatType")
    fixed_value: ApaleoAmount | None = Field(None, alias="fixedValue")
    percent_value: ApaleoPercentValue | None = Field(None, alias="percentValue")


class ApaleoCancellationPolicy(ApaleoBaseModel):
    id: str
    code: str | None = None
    name: LocalizedText = None
    description: LocalizedText = None
    property_id: str | None = Field(None, alias="propertyId")
    period_prior_to_arrival: ApaleoPeriod | None = Field(
        None, alias="periodPriorToArrival"
    )
    fee: ApaleoFee | None = None


class ApaleoCancellationPolicyList(ApaleoBaseModel):
    cancellation_policies: list[ApaleoCancellationPolicy] = Field(
        default_factory=list, alias="cancellationPolicies"
    )
    count: int = 0


class ApaleoNoShowPolicy(ApaleoBaseModel):
    id: str
    code: str | None = None
    name: LocalizedText = None
    description: LocalizedText = None
    property_id: str | None = Field(None, alias="propertyId")
    fee: ApaleoFee | None = None


class ApaleoNoShowPolicyList(ApaleoBaseModel):
    no_show_policies: list[ApaleoNoShowPolicy] = Field(
        default_factory=list, alias="noShowPolicies"
    )
    count: int = 0


class ApaleoAgeCategory(ApaleoBaseModel):
    id: str
    code: str | None = None
    name: LocalizedText = None
    property_id: str | None = Field(None, alias="propertyId")
    min_age: int | None = Field(None, alias="minAge")
    max_age: int | None = Field(None, alias="maxAge")


class ApaleoAgeCategoryList(ApaleoBaseModel):
    age_categories: list[ApaleoAgeCategory] = Field(
        default_factory=list, alias="ageCategories"
    )
    count: int = 0


class ApaleoServiceAvailability(ApaleoBaseModel):
    mode: str | None = None
    days_of_week: list[str] | None = Field(None, alias="daysOfWeek")


class ApaleoService(ApaleoBaseModel):
    id: str
    code: str | None = None
    name: LocalizedText = None
    description: LocalizedText = None
    default_gross_price: ApaleoAmount | None = Field(None, alias="defaultGrossPrice")
    pricing_unit: str | None = Field(None, alias="pricingUnit")
    service_type: str | None = Field(None, alias="serviceType")
    vat_type: str | None = Field(None, alias="vatType")
    post_next_day: bool = Field(False, alias="postNextDay")
    availability: ApaleoServiceAvailability | None = None
    property: ApaleoEmbeddedRef | None = None


class ApaleoServiceList(ApaleoBaseModel):
    services: list[ApaleoService] = Field(default_factory=list)
    count: int = 0


class ApaleoPromoCode(ApaleoBaseModel):
    code: str
    related_rateplan_ids: list[str] | None = Field(None, alias="relatedRateplanIds")


class ApaleoPromoCodeList(ApaleoBaseModel):
    promo_codes: list[ApaleoPromoCode] = Field(default_factory=list, alias="promoCodes")
    count: int = 0
