"""Email channel port — abstract interface for transactional email."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    body: str
    html_body: str | None = None
    tags: dict = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryReceipt:
    sent: bool
    message_id: str | None = None
    error: str | None = None


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(self, message: EmailMessage) -> DeliveryReceipt:
        """Hand ``message`` to the provider.

        A rejected message comes back as ``sent=False``; an unreachable
        provider raises.
        """
        ...
