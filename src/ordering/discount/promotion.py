"""Promotion aggregate — store-run discounts, automatic or by code.

A promotion without a code applies automatically to every cart it matches;
one with a code applies only when the customer enters it. Either way the
same rules decide whether it applies and what it is worth:

    * it must be active, started (``starts_at <= now``) and not ended
      (``now < ends_at``), with uses left under ``max_uses``
    * the cart subtotal must reach ``minimum_order_amount``
    * an allow-list, when set, must name the customer (id or email)
    * the scope (``all`` / ``products`` / ``categories``) minus any
      excluded categories must leave at least one eligible line

Percentage promotions take a share of the eligible total; fixed amounts
are capped at it; free shipping is worth nothing on the subtotal but zeroes
the shipping charge when it wins.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from ordering.discount.events import PromotionCreated, PromotionRedeemed
from ordering.domain import ordering
from shared.money import round_money


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"


class PromotionScope(Enum):
    ALL = "all"
    PRODUCTS = "products"
    CATEGORIES = "categories"


INVALID_CODE_MESSAGE = "Invalid or expired coupon code"


def normalize_code(code: str | None) -> str | None:
    code = (code or "").strip().upper()
    return code or None


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@ordering.aggregate
class Promotion:
    name = String(required=True, max_length=255)
    code = String(max_length=50)
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(default=0.0, min_value=0.0)
    scope = String(choices=PromotionScope, default=PromotionScope.ALL.value)
    product_ids = Text(default="[]")  # JSON list
    categories = Text(default="[]")  # JSON list
    excluded_categories = Text(default="[]")  # JSON list
    customer_allow_list = Text(default="[]")  # JSON list of customer ids / emails
    minimum_order_amount = Float()
    starts_at = DateTime()
    ends_at = DateTime()
    max_uses = Integer()
    times_used = Integer(default=0)
    priority = Integer(default=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        discount_type,
        discount_value=0.0,
        code=None,
        scope=PromotionScope.ALL.value,
        product_ids=(),
        categories=(),
        excluded_categories=(),
        customer_allow_list=(),
        minimum_order_amount=None,
        starts_at=None,
        ends_at=None,
        max_uses=None,
        priority=0,
    ):
        if discount_type == DiscountType.PERCENTAGE.value and discount_value > 100:
            raise ValidationError({"discount_value": ["Percentage cannot exceed 100"]})

        now = datetime.now(UTC)
        promotion = cls(
            name=name,
            code=normalize_code(code),
            discount_type=discount_type,
            discount_value=discount_value,
            scope=scope,
            product_ids=json.dumps([str(p) for p in product_ids]),
            categories=json.dumps(list(categories)),
            excluded_categories=json.dumps(list(excluded_categories)),
            customer_allow_list=json.dumps([str(c).lower() for c in customer_allow_list]),
            minimum_order_amount=minimum_order_amount,
            starts_at=starts_at or now,
            ends_at=ends_at,
            max_uses=max_uses,
            priority=priority,
            created_at=now,
        )
        promotion.raise_(
            PromotionCreated(
                promotion_id=str(promotion.id),
                name=name,
                code=promotion.code,
                discount_type=discount_type,
                discount_value=discount_value,
                created_at=now,
            )
        )
        return promotion

    @property
    def is_automatic(self) -> bool:
        return not self.code

    @property
    def is_free_shipping(self) -> bool:
        return self.discount_type == DiscountType.FREE_SHIPPING.value

    # -------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------
    def _list(self, field_value) -> list[str]:
        return json.loads(field_value) if field_value else []

    def line_is_eligible(self, line) -> bool:
        if line.category in self._list(self.excluded_categories):
            return False
        if self.scope == PromotionScope.PRODUCTS.value:
            return str(line.product_id) in self._list(self.product_ids)
        if self.scope == PromotionScope.CATEGORIES.value:
            return line.category in self._list(self.categories)
        return True

    def eligible_total(self, lines) -> float:
        return sum(line.unit_price * line.quantity for line in lines if self.line_is_eligible(line))

    def rejection_reason(self, lines, customer_id=None, email=None, now=None) -> str | None:
        """Why the promotion cannot apply to this cart, or None when it can."""
        now = now or datetime.now(UTC)

        if not self.is_active or (self.ends_at and now >= _as_utc(self.ends_at)):
            return "This promotion has expired"
        if self.starts_at and now < _as_utc(self.starts_at):
            return "This promotion has not started yet"
        if self.max_uses is not None and (self.times_used or 0) >= self.max_uses:
            return "This promotion has reached its usage limit"

        subtotal = sum(line.unit_price * line.quantity for line in lines)
        if self.minimum_order_amount and subtotal < self.minimum_order_amount:
            return f"Minimum order of ${self.minimum_order_amount:.2f} required"

        allow_list = self._list(self.customer_allow_list)
        if allow_list:
            identities = {str(customer_id).lower() if customer_id else None, (email or "").strip().lower() or None}
            if not identities & set(allow_list):
                return "This promotion is not available for your account"

        if not any(self.line_is_eligible(line) for line in lines):
            return "No items in your cart qualify for this promotion"
        return None

    def discount_for(self, lines) -> float:
        eligible = self.eligible_total(lines)
        if self.discount_type == DiscountType.PERCENTAGE.value:
            return round_money(eligible * (self.discount_value / 100))
        if self.discount_type == DiscountType.FIXED_AMOUNT.value:
            return round_money(min(self.discount_value, eligible))
        return 0.0

    @property
    def label(self) -> str:
        if self.discount_type == DiscountType.PERCENTAGE.value:
            return f"{self.name} ({self.discount_value:g}% off)"
        if self.discount_type == DiscountType.FIXED_AMOUNT.value:
            return f"{self.name} (${self.discount_value:.2f} off)"
        return f"{self.name} (Free shipping)"

    # -------------------------------------------------------------------
    # Usage
    # -------------------------------------------------------------------
    def record_usage(self, order_id, customer_id=None, email=None):
        self.times_used = (self.times_used or 0) + 1
        self.raise_(
            PromotionRedeemed(
                promotion_id=str(self.id),
                order_id=str(order_id),
                customer_id=str(customer_id) if customer_id else None,
                email=email,
                times_used=self.times_used,
                redeemed_at=datetime.now(UTC),
            )
        )
