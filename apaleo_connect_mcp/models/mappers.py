"""
Pure conversion functions from apaleo payloads to canonical entities.

Each mapper accepts either a raw JSON dict or the parsed vendor model, never
performs I/O and substitutes defaults for any optional field apaleo omits.
"""

from typing import Any, TypeVar

from apaleo_connect_mcp.models import apaleo
from apaleo_connect_mcp.models.apaleo import LocalizedText
from apaleo_connect_mcp.models.common import ApaleoBaseModel
from apaleo_connect_mcp.models.connected import (
    Account,
    AgeCategory,
    CancellationPolicy,
    Fee,
    Hotel,
    Location,
    Money,
    NoShowPolicy,
    Period,
    PromoCode,
    Rate,
    RatePlan,
    RateRestrictions,
    RatesRange,
    RoomType,
    Service,
)

DEFAULT_LANGUAGE = "en"

V = TypeVar("V", bound=ApaleoBaseModel)


def _coerce(model: type[V], payload: V | dict[str, Any]) -> V:
    if isinstance(payload, model):
        return payload
    return model.model_validate(payload)


def localized_text(value: LocalizedText, language: str = DEFAULT_LANGUAGE) -> str | None:
    """Collapse an apaleo localised text to one string.

    Prefers ``language``; falls back to the first non-empty translation.
    """
    if value is None or isinstance(value, str):
        return value
    if value.get(language):
        return value[language]
    for text in value.values():
        if text:
            return text
    return None


def _location(address: apaleo.ApaleoAddress | None) -> Location | None:
    if address is None:
        return None
    return Location(
        address_line1=address.address_line1,
        address_line2=address.address_line2,
        postal_code=address.postal_code,
        city=address.city,
        region_code=address.region_code,
        country_code=address.country_code,
    )


def _money(amount: apaleo.ApaleoAmount | None) -> Money | None:
    if amount is None:
        return None
    return Money(amount=amount.amount, currency=amount.currency)


def _ref_id(ref: apaleo.ApaleoEmbeddedRef | None) -> str | None:
    return ref.id if ref else None


def _fee(fee: apaleo.ApaleoFee | None) -> Fee | None:
    if fee is None:
        return None
    percent = fee.percent_value
    return Fee(
        vat_type=fee.vat_type,
        fixed=_money(fee.fixed_value),
        percent=percent.percent if percent else None,
        percent_limit=percent.limit if percent else None,
        include_service_ids=(percent.include_service_ids or []) if percent else [],
    )


def to_account(payload: apaleo.ApaleoAccount | dict[str, Any]) -> Account:
    account = _coerce(apaleo.ApaleoAccount, payload)
    return Account(
        id=account.code,
        code=account.code,
        name=localized_text(account.name),
        description=localized_text(account.description),
        logo_url=account.logo_url,
        default_language=account.default_language,
        location=_location(account.location),
    )


def to_hotel(payload: apaleo.ApaleoProperty | dict[str, Any]) -> Hotel:
    prop = _coerce(apaleo.ApaleoProperty, payload)
    return Hotel(
        id=prop.id,
        code=prop.code,
        name=localized_text(prop.name),
        description=localized_text(prop.description),
        company_name=prop.company_name,
        currency_code=prop.currency_code,
        time_zone=prop.time_zone,
        status=prop.status,
        is_archived=prop.is_archived,
        location=_location(prop.location),
        created_at=prop.created,
    )


def to_room_type(payload: apaleo.ApaleoUnitGroup | dict[str, Any]) -> RoomType:
    unit_group = _coerce(apaleo.ApaleoUnitGroup, payload)
    return RoomType(
        id=unit_group.id,
        code=unit_group.code,
        name=localized_text(unit_group.name),
        description=localized_text(unit_group.description),
        hotel_id=_ref_id(unit_group.property),
        type=unit_group.type,
        max_persons=unit_group.max_persons,
        member_count=unit_group.member_count,
        rank=unit_group.rank,
    )


def _rates_range(rates_range: apaleo.ApaleoRatesRange | None) -> RatesRange | None:
    # apaleo omits the range until rates have been loaded for the plan
    if rates_range is None or not rates_range.from_date or not rates_range.to_date:
        return None
    return RatesRange(from_date=rates_range.from_date, to_date=rates_range.to_date)


def to_rate_plan(payload: apaleo.ApaleoRatePlan | dict[str, Any]) -> RatePlan:
    plan = _coerce(apaleo.ApaleoRatePlan, payload)
    return RatePlan(
        id=plan.id,
        code=plan.code,
        name=localized_text(plan.name),
        description=localized_text(plan.description),
        rates_range=_rates_range(plan.rates_range),
        hotel_id=_ref_id(plan.property),
        room_type_id=_ref_id(plan.unit_group),
        cancellation_policy_id=_ref_id(plan.cancellation_policy),
        no_show_policy_id=_ref_id(plan.no_show_policy),
        min_guarantee_type=plan.min_guarantee_type,
        price_calculation_mode=plan.price_calculation_mode,
        channel_codes=plan.channel_codes or [],
        promo_codes=plan.promo_codes or [],
        included_service_ids=[
            s["service"]["id"]
            for s in plan.included_services or []
            if isinstance(s.get("service"), dict) and s["service"].get("id")
        ],
        age_category_ids=[
            a["id"] for a in plan.age_categories or [] if a.get("id")
        ],
        is_bookable=plan.is_bookable,
        is_derived=plan.is_derived,
        is_subject_to_city_tax=plan.is_subject_to_city_tax,
    )


def to_rate(
    payload: apaleo.ApaleoRate | dict[str, Any], rate_plan_id: str | None = None
) -> Rate:
    rate = _coerce(apaleo.ApaleoRate, payload)
    restrictions = rate.restrictions
    return Rate(
        id=f"{rate_plan_id}@{rate.from_time}" if rate_plan_id else rate.from_time,
        rate_plan_id=rate_plan_id,
        from_time=rate.from_time,
        to_time=rate.to_time,
        price=_money(rate.price),
        restrictions=RateRestrictions(
            min_length_of_stay=restrictions.min_length_of_stay,
            max_length_of_stay=restrictions.max_length_of_stay,
            closed=restrictions.closed,
            closed_on_arrival=restrictions.closed_on_arrival,
            closed_on_departure=restrictions.closed_on_departure,
        )
        if restrictions
        else None,
    )


def to_cancellation_policy(
    payload: apaleo.ApaleoCancellationPolicy | dict[str, Any],
) -> CancellationPolicy:
    policy = _coerce(apaleo.ApaleoCancellationPolicy, payload)
    period = policy.period_prior_to_arrival
    return CancellationPolicy(
        id=policy.id,
        code=policy.code,
        name=localized_text(policy.name),
        description=localized_text(policy.description),
        hotel_id=policy.property_id,
        period_prior_to_arrival=Period(
            hours=period.hours or 0,
            days=period.days or 0,
            months=period.months or 0,
        )
        if period
        else None,
        fee=_fee(policy.fee),
    )


def to_no_show_policy(
    payload: apaleo.ApaleoNoShowPolicy | dict[str, Any],
) -> NoShowPolicy:
    policy = _coerce(apaleo.ApaleoNoShowPolicy, payload)
    return NoShowPolicy(
        id=policy.id,
        code=policy.code,
        name=localized_text(policy.name),
        description=localized_text(policy.description),
        hotel_id=policy.property_id,
        fee=_fee(policy.fee),
    )


def to_age_category(
    payload: apaleo.ApaleoAgeCategory | dict[str, Any],
) -> AgeCategory:
    category = _coerce(apaleo.ApaleoAgeCategory, payload)
    return AgeCategory(
        id=category.id,
        code=category.code,
        name=localized_text(category.name),
        hotel_id=category.property_id,
        min_age=category.min_age,
        max_age=category.max_age,
    )


def to_service(payload: apaleo.ApaleoService | dict[str, Any]) -> Service:
    service = _coerce(apaleo.ApaleoService, payload)
    availability = service.availability
    return Service(
        id=service.id,
        code=service.code,
        name=localized_text(service.name),
        description=localized_text(service.description),
        hotel_id=_ref_id(service.property),
        default_gross_price=_money(service.default_gross_price),
        pricing_unit=service.pricing_unit,
        service_type=service.service_type,
        vat_type=service.vat_type,
        post_next_day=service.post_next_day,
        availability_mode=availability.mode if availability else None,
        days_of_week=(availability.days_of_week or []) if availability else [],
    )


def to_promo_code(payload: apaleo.ApaleoPromoCode | dict[str, Any]) -> PromoCode:
    promo = _coerce(apaleo.ApaleoPromoCode, payload)
    return PromoCode(
        id=promo.code,
        code=promo.code,
        related_rateplan_ids=promo.related_rateplan_ids or [],
    )
