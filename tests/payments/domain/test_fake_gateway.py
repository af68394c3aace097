"""Tests for the fake payment gateway."""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import ConfirmationOutcome


class TestFakeGateway:
    def test_create_intent(self):
        intent = FakeGateway().create_intent(43.8, "USD", {"order_id": "o-1"}, idempotency_key="order-o-1")
        assert intent.success is True
        assert intent.intent_id.startswith("fake_pi_")
        assert intent.client_secret == f"{intent.intent_id}_secret"
        assert intent.amount == 43.8

    def test_same_key_returns_same_intent(self):
        gateway = FakeGateway()
        first = gateway.create_intent(43.8, "USD", {}, idempotency_key="order-o-1")
        second = gateway.create_intent(43.8, "USD", {}, idempotency_key="order-o-1")
        other = gateway.create_intent(43.8, "USD", {}, idempotency_key="order-o-2")
        assert first == second
        assert other.intent_id != first.intent_id
        assert len(gateway.calls) == 3

    def test_failed_create_is_not_remembered(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Card declined")
        failed = gateway.create_intent(10.0, "USD", {}, idempotency_key="order-o-1")
        assert failed.success is False
        assert failed.failure_reason == "Card declined"

        gateway.configure(should_succeed=True)
        assert gateway.create_intent(10.0, "USD", {}, idempotency_key="order-o-1").success is True

    def test_confirm_outcomes(self):
        gateway = FakeGateway()
        assert gateway.confirm("fake_pi_abc_secret").intent_id == "fake_pi_abc"

        gateway.configure(should_succeed=True, confirmation_outcome=ConfirmationOutcome.REQUIRES_ACTION)
        assert gateway.confirm("fake_pi_abc_secret").outcome == ConfirmationOutcome.REQUIRES_ACTION

        gateway.configure(
            should_succeed=True, failure_reason="Insufficient funds", confirmation_outcome=ConfirmationOutcome.ERROR
        )
        confirmation = gateway.confirm("fake_pi_abc_secret")
        assert confirmation.outcome == ConfirmationOutcome.ERROR
        assert confirmation.message == "Insufficient funds"
