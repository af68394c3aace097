"""Discount resolution — one winner out of every source that applies.

Membership, automatic promotion and the entered code are each evaluated
independently; the results are reduced with ``resolve_best``. A rejected
code never blocks the other sources; its message is reported alongside.
"""

from dataclasses import dataclass

import structlog

from ordering.cart.line import lines_subtotal
from ordering.discount.candidate import CodeRejection, DiscountCandidate, resolve_best
from ordering.discount.evaluator import RepositoryPromotionEvaluator
from ordering.discount.membership import membership_candidate
from payments.credit import get_credit_service

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DiscountResolution:
    winner: DiscountCandidate | None = None
    candidates: tuple[DiscountCandidate, ...] = ()
    code_rejection: CodeRejection | None = None
    credit_amount: float = 0.0
    has_credit: bool = False

    @property
    def amount(self) -> float:
        return self.winner.amount if self.winner else 0.0

    @property
    def free_shipping(self) -> bool:
        return bool(self.winner and self.winner.free_shipping)

    @property
    def label(self) -> str | None:
        return self.winner.label if self.winner and self.winner.amount > 0 else None


class DiscountResolver:
    def __init__(self, evaluator=None, credit_service=None, lifetime_percent: float = 10.0):
        self.evaluator = evaluator or RepositoryPromotionEvaluator()
        self._credit_service = credit_service
        self.lifetime_percent = lifetime_percent

    @property
    def credit_service(self):
        return self._credit_service or get_credit_service()

    def _credit_status(self, email):
        if not email:
            return None
        try:
            return self.credit_service.check(email)
        except Exception as exc:
            # Membership is optional; checkout proceeds without it
            logger.warning("Credit check failed", email=email, error=str(exc))
            return None

    def resolve(self, lines, customer_id=None, email=None, code=None) -> DiscountResolution:
        if not lines:
            return DiscountResolution()

        status = self._credit_status(email)
        candidates = [
            membership_candidate(lines_subtotal(lines), status, self.lifetime_percent),
            self.evaluator.evaluate_auto(lines, customer_id=customer_id, email=email),
        ]

        rejection = None
        if code:
            result = self.evaluator.evaluate_code(lines, code, customer_id=customer_id, email=email)
            if isinstance(result, CodeRejection):
                rejection = result
            else:
                candidates.append(result)

        present = tuple(c for c in candidates if c is not None)
        winner = resolve_best(present)
        if winner:
            logger.debug("Discount resolved", source=winner.source.value, amount=winner.amount)

        return DiscountResolution(
            winner=winner,
            candidates=present,
            code_rejection=rejection,
            credit_amount=status.credit_amount if status and status.has_credit else 0.0,
            has_credit=bool(status and status.has_credit),
        )
