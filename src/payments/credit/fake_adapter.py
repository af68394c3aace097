"""In-memory credit service for development and testing."""

from uuid import uuid4

from payments.credit.port import CreditRedemption, CreditService, CreditStatus


class InMemoryCreditService(CreditService):
    def __init__(self) -> None:
        self._credits: dict[str, dict] = {}
        self._lifetime: set[str] = set()
        self.redemptions: list[dict] = []
        self.fail_redemptions = False

    @staticmethod
    def _key(email: str) -> str:
        return (email or "").strip().lower()

    def grant(self, email: str, amount: float, lifetime: bool = False) -> str:
        credit_id = str(uuid4())
        self._credits[self._key(email)] = {"id": credit_id, "amount": amount, "redeemed_order_id": None}
        if lifetime:
            self._lifetime.add(self._key(email))
        return credit_id

    def enroll_lifetime(self, email: str) -> None:
        self._lifetime.add(self._key(email))

    def check(self, email: str) -> CreditStatus:
        key = self._key(email)
        credit = self._credits.get(key)
        is_lifetime = key in self._lifetime
        if credit is None or credit["redeemed_order_id"] or credit["amount"] <= 0:
            return CreditStatus(is_lifetime=is_lifetime)
        return CreditStatus(
            has_credit=True,
            credit_amount=float(credit["amount"]),
            credit_id=credit["id"],
            is_lifetime=is_lifetime,
        )

    def redeem(self, email: str, order_id: str) -> CreditRedemption:
        if self.fail_redemptions:
            raise ConnectionError("Credit service unavailable")

        key = self._key(email)
        credit = self._credits.get(key)
        if credit is None or credit["redeemed_order_id"]:
            return CreditRedemption(redeemed=False, error="No active credit found")

        credit["redeemed_order_id"] = order_id
        self.redemptions.append({"email": key, "order_id": order_id, "amount": credit["amount"]})
        return CreditRedemption(redeemed=True, credit_id=credit["id"], amount=float(credit["amount"]))
