"""Fake email adapter — records sent emails for testing."""

from uuid import uuid4

from notifications.channel.email_port import DeliveryReceipt, EmailMessage, EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_emails: list[EmailMessage] = []
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self.raise_on_send: Exception | None = None

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Email delivery failed",
        raise_on_send: Exception | None = None,
    ):
        """Configure the fake adapter behavior for testing.

        ``raise_on_send`` simulates a provider outage instead of a rejected message.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_on_send = raise_on_send

    def send(self, message: EmailMessage) -> DeliveryReceipt:
        if self.raise_on_send is not None:
            raise self.raise_on_send

        if not self.should_succeed:
            return DeliveryReceipt(sent=False, error=self.failure_reason)

        self.sent_emails.append(message)
        return DeliveryReceipt(sent=True, message_id=f"email-{uuid4().hex[:12]}")
