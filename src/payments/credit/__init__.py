"""Credit service registry: get_credit_service() / set_credit_service()."""

from payments.credit.fake_adapter import InMemoryCreditService
from payments.credit.port import CreditService

_current_service: CreditService | None = None


def get_credit_service() -> CreditService:
    global _current_service
    if _current_service is None:
        _current_service = InMemoryCreditService()
    return _current_service


def set_credit_service(service: CreditService) -> None:
    global _current_service
    _current_service = service


def reset_credit_service() -> None:
    global _current_service
    _current_service = None
