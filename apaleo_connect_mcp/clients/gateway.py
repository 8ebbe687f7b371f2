"""
Read-only resource gateway for apaleo inventory, rate plan and settings APIs.

Every method follows the same template: build the request (merging caller
filters with the mandatory ``propertyId`` scope where apaleo needs one), run it
through the request executor, parse the vendor envelope and convert each item
with its mapper. List results keep apaleo's order and pass apaleo's ``count``
through untouched.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from apaleo_connect_mcp.auth import TokenAuthority, TokenStore, create_token_authority
from apaleo_connect_mcp.clients.request_driver import (
    AuthenticatedRequestDriver,
    RequestExecutor,
)
from apaleo_connect_mcp.config.settings import Settings
from apaleo_connect_mcp.models import apaleo
from apaleo_connect_mcp.models.common import (
    ApaleoBaseModel,
    ListResult,
    RequestSpec,
    TokenPair,
)
from apaleo_connect_mcp.models.connected import (
    Account,
    AgeCategory,
    CancellationPolicy,
    Hotel,
    NoShowPolicy,
    PromoCode,
    Rate,
    RatePlan,
    RatePlanSummary,
    RoomType,
    Service,
)
from apaleo_connect_mcp.models.mappers import (
    to_account,
    to_age_category,
    to_cancellation_policy,
    to_hotel,
    to_no_show_policy,
    to_promo_code,
    to_rate,
    to_rate_plan,
    to_room_type,
    to_service,
)
from apaleo_connect_mcp.utils.exceptions import (
    ConfigError,
    PreconditionError,
    RequestError,
)

logger = logging.getLogger(__name__)

V = TypeVar("V", bound=ApaleoBaseModel)
C = TypeVar("C")

# Query parameter apaleo uses to scope a request to one property
SCOPE_PARAM = "propertyId"


def scoped_params(hotel_id: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Merge caller filters with the property scope; the scope always wins."""
    return {**(params or {}), SCOPE_PARAM: hotel_id}


class ApaleoGateway:
    """
    Vendor-neutral read access to one apaleo account.

    The gateway holds no state of its own besides the executor; build it with
    ``ApaleoGateway.create`` to get a fully wired request driver.
    """

    def __init__(self, executor: RequestExecutor) -> None:
        self.executor = executor

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        refresh_token: str | None = None,
        access_token: str | None = None,
        token_store: TokenStore | None = None,
        token_authority: TokenAuthority | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> "ApaleoGateway":
        """
        Build a gateway with its request driver.

        Explicit keyword options win over ``settings``. Without an explicit
        refresh token the pair comes from ``token_store``, then from settings.

        Raises:
            ConfigError: If credentials are missing or no refresh token is found
        """
        settings = settings or Settings()
        credentials = settings.get_credentials().model_copy(
            update={
                key: value
                for key, value in {
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "redirect_uri": redirect_uri,
                }.items()
                if value is not None
            }
        )
        missing = credentials.missing_fields()
        if missing:
            raise ConfigError(
                f"apaleo client credentials missing: {', '.join(missing)}",
                details={"missing": missing},
            )

        tokens = None
        if refresh_token:
            tokens = TokenPair(access_token=access_token or "", refresh_token=refresh_token)
        elif token_store is not None:
            # A stored pair is newer than the env one once a refresh has rotated it
            tokens = await token_store.load()
            if tokens is not None:
                logger.info("Token pair loaded from token store")
        if tokens is None or not tokens.refresh_token:
            tokens = settings.get_initial_tokens()

        if tokens is None or not tokens.refresh_token:
            raise ConfigError(
                "No apaleo refresh token configured and none found in the token store"
            )

        driver = AuthenticatedRequestDriver(
            credentials=credentials,
            token_authority=token_authority or create_token_authority(settings),
            tokens=tokens,
            token_store=token_store,
            base_url=settings.api_base_url,
            request_timeout=settings.request_timeout,
            token_expiry_skew=settings.token_expiry_skew,
            http_client=http_client,
        )
        return cls(driver)

    async def __aenter__(self) -> "ApaleoGateway":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying driver if it supports closing."""
        close = getattr(self.executor, "close", None)
        if close is not None:
            await close()

    async def _fetch_list(
        self,
        path: str,
        params: dict[str, Any],
        envelope: type[V],
        items: Callable[[V], list[Any]],
        mapper: Callable[[Any], C],
    ) -> ListResult[C]:
        body = await self.executor.execute(RequestSpec(path=path, params=params))
        page = envelope.model_validate(body or {})
        data = [mapper(item) for item in items(page)]
        logger.debug(
            f"Fetched {len(data)} of {page.count} items from {path}",
            extra={"path": path, "count": page.count},
        )
        return ListResult(data=data, count=page.count)

    async def _fetch_one(
        self,
        path: str,
        params: dict[str, Any] | None,
        model: type[V],
        mapper: Callable[[V], C],
    ) -> C:
        body = await self.executor.execute(RequestSpec(path=path, params=params or {}))
        if not body:
            # Only list endpoints answer 204; an entity endpoint must return the entity
            raise RequestError(
                f"Empty response body from {path}",
                details={"path": path, "params": params or {}},
            )
        return mapper(model.model_validate(body))

    # ACCOUNT

    async def get_account(self) -> Account:
        """Account that owns the current credentials."""
        return await self._fetch_one(
            "/account/v1/accounts/current", None, apaleo.ApaleoAccount, to_account
        )

    # HOTELS

    async def get_hotels(self, params: dict[str, Any] | None = None) -> ListResult[Hotel]:
        """All properties of the account."""
        return await self._fetch_list(
            "/inventory/v1/properties",
            dict(params or {}),
            apaleo.ApaleoPropertyList,
            lambda page: page.properties,
            to_hotel,
        )

    async def get_hotel_by_id(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> Hotel:
        return await self._fetch_one(
            f"/inventory/v1/properties/{hotel_id}",
            params,
            apaleo.ApaleoProperty,
            to_hotel,
        )

    # ROOM TYPES

    async def get_room_types(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> ListResult[RoomType]:
        """Unit groups of a property."""
        return await self._fetch_list(
            "/inventory/v1/unit-groups",
            scoped_params(hotel_id, params),
            apaleo.ApaleoUnitGroupList,
            lambda page: page.unit_groups,
            to_room_type,
        )

    async def get_room_type_by_id(
        self, room_type_id: str, params: dict[str, Any] | None = None
    ) -> RoomType:
        return await self._fetch_one(
            f"/inventory/v1/unit-groups/{room_type_id}",
            params,
            apaleo.ApaleoUnitGroup,
            to_room_type,
        )

    # RATE PLANS

    async def get_rate_plans_by_hotel_id(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> ListResult[RatePlan]:
        return await self._fetch_list(
            "/rateplan/v1/rate-plans",
            scoped_params(hotel_id, params),
            apaleo.ApaleoRatePlanList,
            lambda page: page.rate_plans,
            to_rate_plan,
        )

    async def get_rate_plan_by_id(
        self, rate_plan_id: str, params: dict[str, Any] | None = None
    ) -> RatePlan:
        return await self._fetch_one(
            f"/rateplan/v1/rate-plans/{rate_plan_id}",
            params,
            apaleo.ApaleoRatePlan,
            to_rate_plan,
        )

    async def get_rates_by_rate_plan(
        self, rate_plan: RatePlanSummary, params: dict[str, Any] | None = None
    ) -> ListResult[Rate]:
        """
        Rates of a rate plan over the plan's own rates range.

        Args:
            rate_plan: Rate plan (or summary) carrying ``rates_range``
            params: Extra filters; ``from``/``to`` always come from the plan

        Raises:
            PreconditionError: If the rate plan has no rates range
        """
        rates_range = rate_plan.rates_range
        if rates_range is None:
            raise PreconditionError(
                f"Rate plan {rate_plan.id} has no rates range; load it with "
                "get_rate_plan_by_id before requesting its rates",
                details={"rate_plan_id": rate_plan.id},
            )

        query = {
            **(params or {}),
            "from": rates_range.from_date.isoformat(),
            "to": rates_range.to_date.isoformat(),
        }
        return await self._fetch_list(
            f"/rateplan/v1/rate-plans/{rate_plan.id}/rates",
            query,
            apaleo.ApaleoRateList,
            lambda page: page.rates,
            lambda rate: to_rate(rate, rate_plan_id=rate_plan.id),
        )

    # CANCELLATION POLICIES

    async def get_cancellation_policies(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> ListResult[CancellationPolicy]:
        return await self._fetch_list(
            "/rateplan/v1/cancellation-policies",
            scoped_params(hotel_id, params),
            apaleo.ApaleoCancellationPolicyList,
            lambda page: page.cancellation_policies,
            to_cancellation_policy,
        )

    async def get_cancellation_policy_by_id(
        self, cancellation_policy_id: str, params: dict[str, Any] | None = None
    ) -> CancellationPolicy:
        return await self._fetch_one(
            f"/rateplan/v1/cancellation-policies/{cancellation_policy_id}",
            params,
            apaleo.ApaleoCancellationPolicy,
            to_cancellation_policy,
        )

    # NO-SHOW POLICIES

    async def get_no_show_policies(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> ListResult[NoShowPolicy]:
        return await self._fetch_list(
            "/rateplan/v1/no-show-policies",
            scoped_params(hotel_id, params),
            apaleo.ApaleoNoShowPolicyList,
            lambda page: page.no_show_policies,
            to_no_show_policy,
        )

    async def get_no_show_policy_by_id(
        self, no_show_policy_id: str, params: dict[str, Any] | None = None
    ) -> NoShowPolicy:
        return await self._fetch_one(
            f"/rateplan/v1/no-show-policies/{no_show_policy_id}",
            params,
            apaleo.ApaleoNoShowPolicy,
            to_no_show_policy,
        )

    # AGE CATEGORIES

    async def get_age_categories(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> ListResult[AgeCategory]:
        return await self._fetch_list(
            "/settings/v1/age-categories",
            scoped_params(hotel_id, params),
            apaleo.ApaleoAgeCategoryList,
            lambda page: page.age_categories,
            to_age_category,
        )

    async def get_age_category_by_id(
        self, age_category_id: str, params: dict[str, Any] | None = None
    ) -> AgeCategory:
        return await self._fetch_one(
            f"/settings/v1/age-categories/{age_category_id}",
            params,
            apaleo.ApaleoAgeCategory,
            to_age_category,
        )

    # SERVICES

    async def get_services(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> ListResult[Service]:
        return await self._fetch_list(
            "/rateplan/v1/services",
            scoped_params(hotel_id, params),
            apaleo.ApaleoServiceList,
            lambda page: page.services,
            to_service,
        )

    async def get_service_by_id(
        self, service_id: str, params: dict[str, Any] | None = None
    ) -> Service:
        return await self._fetch_one(
            f"/rateplan/v1/services/{service_id}",
            params,
            apaleo.ApaleoService,
            to_service,
        )

    # PROMO CODES

    async def get_promo_codes(
        self, hotel_id: str, params: dict[str, Any] | None = None
    ) -> ListResult[PromoCode]:
        return await self._fetch_list(
            "/rateplan/v1/promo-codes/codes",
            scoped_params(hotel_id, params),
            apaleo.ApaleoPromoCodeList,
            lambda page: page.promo_codes,
            to_promo_code,
        )
