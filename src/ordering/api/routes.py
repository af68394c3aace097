"""FastAPI routes for checkout quotes — tax, addresses, rates, pickup, stock, discounts.

The checkout client calls these while the customer fills in the form. The
order itself is placed by the CheckoutService, which recomputes every
figure server-side.
"""

from dataclasses import asdict
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException

from fulfillment.carrier.port import ShippingAddress
from fulfillment.rates import ShippingRateService
from fulfillment.slots import PickupSlotService, group_slots_by_date
from ordering.api.schemas import (
    AddressSchema,
    AddressValidationRequest,
    AddressValidationResponse,
    CartLineSchema,
    DiscountQuoteRequest,
    DiscountQuoteResponse,
    PickupDaySchema,
    PickupLocationSchema,
    PickupSlotSchema,
    RateQuoteRequest,
    RateQuoteResponse,
    ShippingRateSchema,
    StockCheckRequest,
    StockCheckResponse,
    StockIssueSchema,
    TaxQuoteRequest,
    TaxQuoteResponse,
)
from ordering.cart.line import CartLine
from ordering.checkout.errors import ShippingUnavailable, ZoneBlocked
from ordering.config import get_settings
from ordering.discount.resolver import DiscountResolver
from ordering.stock import StockValidator
from ordering.tax import calculate_tax

checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


def _lines(lines: list[CartLineSchema]) -> list[CartLine]:
    return [CartLine(**line.model_dump()) for line in lines]


def _address(body: AddressSchema) -> ShippingAddress:
    return ShippingAddress(**body.model_dump())


def _pickup_service() -> PickupSlotService:
    settings = get_settings()
    return PickupSlotService(lead_time_days=settings.pickup_lead_time_days, window_days=settings.pickup_window_days)


@checkout_router.post("/tax", response_model=TaxQuoteResponse)
async def quote_tax(body: TaxQuoteRequest) -> TaxQuoteResponse:
    result = calculate_tax(
        body.subtotal,
        body.state,
        is_tax_exempt=body.is_tax_exempt,
        tax_exempt_reason=body.tax_exempt_reason,
        config=get_settings().tax_config(),
    )
    return TaxQuoteResponse(**result.to_dict())


@checkout_router.post("/address/validate", response_model=AddressValidationResponse)
async def validate_address(body: AddressValidationRequest) -> AddressValidationResponse:
    service = ShippingRateService(weight_per_unit=get_settings().weight_per_unit_lbs)
    validation = service.validate_address(_address(body.address))
    normalized = validation.normalized_address
    return AddressValidationResponse(
        status=validation.status,
        normalized_address=AddressSchema(**asdict(normalized)) if normalized else None,
        messages=list(validation.messages),
    )


@checkout_router.post("/rates", response_model=RateQuoteResponse)
async def quote_rates(body: RateQuoteRequest) -> RateQuoteResponse:
    service = ShippingRateService(weight_per_unit=get_settings().weight_per_unit_lbs)
    try:
        quote = service.fetch_rates(_address(body.address), _lines(body.lines))
    except ZoneBlocked as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc
    except ShippingUnavailable as exc:
        raise HTTPException(status_code=503, detail=exc.message) from exc

    return RateQuoteResponse(
        rates=[
            ShippingRateSchema(
                rate_id=rate.rate_id,
                carrier_name=rate.carrier_name,
                service_name=rate.service_name,
                amount=rate.amount,
                currency=rate.currency,
                transit_days=rate.transit_days,
                estimated_delivery_date=rate.estimated_delivery_date,
            )
            for rate in quote.rates
        ],
        package_summary=quote.package_breakdown.summary,
        total_packages=quote.package_breakdown.total_packages,
    )


@checkout_router.get("/pickup/locations", response_model=list[PickupLocationSchema])
async def list_pickup_locations() -> list[PickupLocationSchema]:
    return [
        PickupLocationSchema(
            location_id=location.location_id,
            name=location.name,
            address_line1=location.address_line1,
            address_line2=location.address_line2,
            city=location.city,
            state=location.state,
            postal_code=location.postal_code,
            phone=location.phone,
            instructions=location.instructions,
        )
        for location in _pickup_service().list_locations()
    ]


@checkout_router.get("/pickup/locations/{location_id}/slots", response_model=list[PickupDaySchema])
async def list_pickup_slots(location_id: str) -> list[PickupDaySchema]:
    """Upcoming slots grouped by day. Full slots are listed with ``selectable=False``."""
    service = _pickup_service()
    if service.get_location(location_id) is None:
        raise HTTPException(status_code=404, detail="Pickup location not found")

    grouped = group_slots_by_date(service.list_slots(location_id, now=datetime.now(UTC)))
    return [
        PickupDaySchema(
            slot_date=slot_date,
            slots=[
                PickupSlotSchema(
                    schedule_id=slot.schedule_id,
                    slot_date=slot.slot_date,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    slots_available=slot.slots_available,
                    selectable=slot.is_selectable,
                )
                for slot in slots
            ],
        )
        for slot_date, slots in grouped.items()
    ]


@checkout_router.post("/stock", response_model=StockCheckResponse)
async def check_stock(body: StockCheckRequest) -> StockCheckResponse:
    issues = StockValidator().check(_lines(body.lines))
    if issues:
        raise HTTPException(
            status_code=409,
            detail=[StockIssueSchema(**asdict(issue)).model_dump() for issue in issues],
        )
    return StockCheckResponse(ok=True)


@checkout_router.post("/discounts", response_model=DiscountQuoteResponse)
async def quote_discount(body: DiscountQuoteRequest) -> DiscountQuoteResponse:
    resolver = DiscountResolver(lifetime_percent=get_settings().lifetime_discount_percent)
    resolution = resolver.resolve(_lines(body.lines), customer_id=body.customer_id, email=body.email, code=body.code)
    winner = resolution.winner
    return DiscountQuoteResponse(
        source=winner.source.value if winner else None,
        amount=resolution.amount,
        label=resolution.label,
        free_shipping=resolution.free_shipping,
        code_error=resolution.code_rejection.message if resolution.code_rejection else None,
    )
