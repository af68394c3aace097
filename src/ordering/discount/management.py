"""Promotion management — commands and handler."""

import json

from protean import handle
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.discount.promotion import Promotion, PromotionScope
from ordering.domain import ordering


@ordering.command(part_of="Promotion")
class CreatePromotion:
    name = String(required=True, max_length=255)
    code = String(max_length=50)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(default=0.0)
    scope = String(max_length=20, default=PromotionScope.ALL.value)
    product_ids = Text()  # JSON list
    categories = Text()  # JSON list
    excluded_categories = Text()  # JSON list
    customer_allow_list = Text()  # JSON list
    minimum_order_amount = Float()
    starts_at = DateTime()
    ends_at = DateTime()
    max_uses = Integer()
    priority = Integer(default=0)


@ordering.command(part_of="Promotion")
class RecordPromotionUsage:
    """Count one use of a promotion by a finalised order."""

    promotion_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    email = String(max_length=255)


def _json_list(value):
    return json.loads(value) if value else []


@ordering.command_handler(part_of=Promotion)
class ManagePromotionHandler:
    @handle(CreatePromotion)
    def create_promotion(self, command):
        promotion = Promotion.create(
            name=command.name,
            code=command.code,
            discount_type=command.discount_type,
            discount_value=command.discount_value or 0.0,
            scope=command.scope or PromotionScope.ALL.value,
            product_ids=_json_list(command.product_ids),
            categories=_json_list(command.categories),
            excluded_categories=_json_list(command.excluded_categories),
            customer_allow_list=_json_list(command.customer_allow_list),
            minimum_order_amount=command.minimum_order_amount,
            starts_at=command.starts_at,
            ends_at=command.ends_at,
            max_uses=command.max_uses,
            priority=command.priority or 0,
        )
        current_domain.repository_for(Promotion).add(promotion)
        return str(promotion.id)

    @handle(RecordPromotionUsage)
    def record_usage(self, command):
        repo = current_domain.repository_for(Promotion)
        promotion = repo.get(command.promotion_id)
        promotion.record_usage(
            order_id=command.order_id,
            customer_id=command.customer_id,
            email=command.email,
        )
        repo.add(promotion)
