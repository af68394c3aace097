"""Tests for per-state shipping zone restrictions."""

from datetime import date

from fulfillment.zones import ShippingZone, ZoneStatus, ZoneTable


class TestZoneTable:
    def test_unlisted_state_is_allowed(self):
        check = ZoneTable().check("GA")
        assert check.allowed is True
        assert check.status == ZoneStatus.ALLOWED.value

    def test_blocked_state(self):
        check = ZoneTable().check("hi")
        assert check.allowed is False
        assert "Hawaii" in check.message

    def test_conditional_state_limits_transit(self):
        check = ZoneTable().check("CA", today=date(2026, 6, 1))
        assert check.allowed is True
        assert check.status == ZoneStatus.CONDITIONAL.value
        assert check.max_transit_days == 3
        assert check.conditions == {"max_transit_days": 3}

    def test_winter_month_blocks_northern_states(self):
        table = ZoneTable()
        assert table.check("MN", today=date(2026, 1, 15)).allowed is False
        summer = table.check("MN", today=date(2026, 7, 15))
        assert summer.allowed is True
        assert summer.conditions["blocked_months"] == [12, 1, 2]

    def test_upsert_overrides_default(self):
        table = ZoneTable()
        table.upsert(ShippingZone("AK", "Alaska", ZoneStatus.ALLOWED.value))
        assert table.check("AK").allowed is True

    def test_blocked_without_message_uses_state_name(self):
        table = ZoneTable(zones=(ShippingZone("TX", "Texas", ZoneStatus.BLOCKED.value),))
        assert table.check("TX").message == "We cannot ship to Texas at this time."
