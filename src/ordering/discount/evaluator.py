"""Promotion evaluator port and its repository-backed adapter."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from ordering.discount.candidate import CodeRejection, DiscountCandidate, DiscountSource
from ordering.discount.promotion import INVALID_CODE_MESSAGE, Promotion, normalize_code

logger = structlog.get_logger(__name__)


class PromotionEvaluator(ABC):
    @abstractmethod
    def evaluate_auto(self, lines, customer_id=None, email=None) -> DiscountCandidate | None:
        """Best automatic promotion for the cart, if any applies."""
        ...

    @abstractmethod
    def evaluate_code(self, lines, code, customer_id=None, email=None) -> DiscountCandidate | CodeRejection:
        ...


def _candidate(promotion: Promotion, lines, source: DiscountSource) -> DiscountCandidate:
    return DiscountCandidate(
        source=source,
        amount=promotion.discount_for(lines),
        label=promotion.label,
        free_shipping=promotion.is_free_shipping,
        promotion_id=str(promotion.id),
        promotion_code=promotion.code,
    )


class RepositoryPromotionEvaluator(PromotionEvaluator):
    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now(UTC))

    def _promotions(self, **filters) -> list[Promotion]:
        repo = current_domain.repository_for(Promotion)
        return repo._dao.query.filter(is_active=True, **filters).all().items

    def evaluate_auto(self, lines, customer_id=None, email=None) -> DiscountCandidate | None:
        now = self._clock()
        applicable = [
            promotion
            for promotion in self._promotions()
            if promotion.is_automatic and promotion.rejection_reason(lines, customer_id, email, now) is None
        ]
        candidates = [
            (promotion.priority or 0, _candidate(promotion, lines, DiscountSource.AUTO_PROMOTION))
            for promotion in applicable
        ]
        candidates = [(priority, c) for priority, c in candidates if c.is_eligible]
        if not candidates:
            return None
        return max(candidates, key=lambda pc: (pc[0], pc[1].amount))[1]

    def evaluate_code(self, lines, code, customer_id=None, email=None) -> DiscountCandidate | CodeRejection:
        normalized = normalize_code(code)
        if not normalized:
            return CodeRejection(message=INVALID_CODE_MESSAGE, code=code)

        repo = current_domain.repository_for(Promotion)
        matches = repo._dao.query.filter(code=normalized).all().items
        if not matches:
            logger.info("Unknown promotion code", code=normalized)
            return CodeRejection(message=INVALID_CODE_MESSAGE, code=normalized)

        promotion = matches[0]
        reason = promotion.rejection_reason(lines, customer_id, email, self._clock())
        if reason:
            return CodeRejection(message=reason, code=normalized)

        return _candidate(promotion, lines, DiscountSource.MANUAL_PROMOTION_CODE)
