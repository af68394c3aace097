"""Pydantic request/response schemas for the checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean value objects and commands.
"""

from datetime import date, time

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str | None = None
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    postal_code: str
    country_code: str = "US"


class CartLineSchema(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    compare_at_price: float | None = None
    quantity: int = Field(ge=1)
    category: str = "Uncategorized"
    fulfillment_constraint: str = "either"
    seedlings_per_unit: int = Field(default=1, ge=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "basil-01",
                    "name": "Genovese Basil",
                    "unit_price": 20.0,
                    "quantity": 2,
                    "category": "Herbs",
                    "fulfillment_constraint": "either",
                    "seedlings_per_unit": 1,
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class TaxQuoteRequest(BaseModel):
    subtotal: float = Field(ge=0)
    state: str | None = None
    is_tax_exempt: bool = False
    tax_exempt_reason: str | None = None


class AddressValidationRequest(BaseModel):
    address: AddressSchema


class RateQuoteRequest(BaseModel):
    address: AddressSchema
    lines: list[CartLineSchema] = Field(min_length=1)


class StockCheckRequest(BaseModel):
    lines: list[CartLineSchema] = Field(min_length=1)


class DiscountQuoteRequest(BaseModel):
    lines: list[CartLineSchema]
    customer_id: str | None = None
    email: str | None = None
    code: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class TaxQuoteResponse(BaseModel):
    rate: float
    amount: float
    label: str
    audit_note: str
    is_taxable: bool


class AddressValidationResponse(BaseModel):
    status: str
    normalized_address: AddressSchema | None = None
    messages: list[str] = []


class ShippingRateSchema(BaseModel):
    rate_id: str
    carrier_name: str
    service_name: str
    amount: float
    currency: str
    transit_days: int | None = None
    estimated_delivery_date: date | None = None


class RateQuoteResponse(BaseModel):
    rates: list[ShippingRateSchema]
    package_summary: str
    total_packages: int


class PickupLocationSchema(BaseModel):
    location_id: str
    name: str
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    postal_code: str
    phone: str | None = None
    instructions: str | None = None


class PickupSlotSchema(BaseModel):
    schedule_id: str
    slot_date: date
    start_time: time
    end_time: time
    slots_available: int | None = None
    selectable: bool = True


class PickupDaySchema(BaseModel):
    slot_date: date
    slots: list[PickupSlotSchema]


class StockIssueSchema(BaseModel):
    product_id: str
    name: str
    requested: int
    available: int


class StockCheckResponse(BaseModel):
    ok: bool
    issues: list[StockIssueSchema] = []


class DiscountQuoteResponse(BaseModel):
    source: str | None = None
    amount: float = 0.0
    label: str | None = None
    free_shipping: bool = False
    code_error: str | None = None
