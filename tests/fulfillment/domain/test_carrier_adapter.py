"""Tests for the fake carrier adapter."""

import pytest
from fulfillment.carrier.fake_adapter import FakeCarrier
from fulfillment.carrier.port import CarrierError, ParcelSpec, ShippingAddress

ADDRESS = ShippingAddress(address_line1="12 Peachtree St", city="Atlanta", state="ga", postal_code="30303")
PARCEL = ParcelSpec(weight_lbs=2.0, length=12, width=9, height=6)


class TestFakeCarrier:
    def test_default_services_scale_with_weight(self):
        rates = FakeCarrier().get_rates(ADDRESS, [PARCEL])
        assert [r.rate_id for r in rates] == ["fake-rate-0", "fake-rate-1", "fake-rate-2", "fake-rate-3"]
        assert rates[0].amount == 10.3
        assert rates[0].carrier_name == "UPS"

    def test_flat_rates(self):
        carrier = FakeCarrier()
        carrier.set_flat_rates({"Ground Saver": 6.0}, transit_days={"Ground Saver": 4})
        rate = carrier.get_rates(ADDRESS, [PARCEL, PARCEL])[0]
        assert rate.amount == 6.0
        assert rate.carrier_name == "Ground"
        assert rate.transit_days == 4

    def test_failure_raises(self):
        carrier = FakeCarrier()
        carrier.configure(should_succeed=False, failure_reason="Service unavailable")
        with pytest.raises(CarrierError, match="Service unavailable"):
            carrier.get_rates(ADDRESS, [PARCEL])

    def test_address_is_normalized(self):
        check = FakeCarrier().validate_address(ADDRESS)
        assert check.status == "verified"
        assert check.matched_address.state == "GA"
        assert check.matched_address.city == "ATLANTA"

    def test_address_error(self):
        carrier = FakeCarrier()
        carrier.configure(address_status="error")
        check = carrier.validate_address(ADDRESS)
        assert check.status == "error"
        assert check.messages == ("Address not found",)

    def test_calls_are_recorded(self):
        carrier = FakeCarrier()
        carrier.get_rates(ADDRESS, [PARCEL])
        assert carrier.calls == [{"method": "get_rates", "postal_code": "30303", "parcels": 1}]
