"""Tests for the sales tax calculation."""

from ordering.tax import TaxConfig, calculate_tax

GA_ONLY = TaxConfig(enabled=True, default_rate=0.07, nexus_states=("GA",), label="Sales Tax")


class TestNexusTax:
    def test_in_state_is_taxed(self):
        result = calculate_tax(100.0, "GA", config=GA_ONLY)
        assert result.amount == 7.0
        assert result.rate == 0.07
        assert result.is_taxable is True
        assert result.label == "Sales Tax (7%)"
        assert result.audit_note == "GA 7%"

    def test_out_of_state_is_not_taxed(self):
        result = calculate_tax(100.0, "CA", config=GA_ONLY)
        assert result.amount == 0.0
        assert result.is_taxable is False
        assert result.audit_note == "Out of state (CA)"

    def test_state_is_case_insensitive(self):
        assert calculate_tax(40.0, " ga ", config=GA_ONLY).amount == 2.8

    def test_same_input_same_output(self):
        assert calculate_tax(33.33, "GA", config=GA_ONLY) == calculate_tax(33.33, "GA", config=GA_ONLY)

    def test_rounds_half_up_to_cents(self):
        # 0.07 * 12.50 = 0.875
        assert calculate_tax(12.5, "GA", config=GA_ONLY).amount == 0.88

    def test_missing_state_is_not_taxed(self):
        assert calculate_tax(50.0, None, config=GA_ONLY).is_taxable is False


class TestExemptionAndDisabled:
    def test_exempt_customer(self):
        result = calculate_tax(100.0, "GA", is_tax_exempt=True, tax_exempt_reason="Resale certificate", config=GA_ONLY)
        assert result.amount == 0.0
        assert result.audit_note == "Tax-exempt: Resale certificate"

    def test_disabled(self):
        config = TaxConfig(enabled=False, default_rate=0.07, nexus_states=("GA",), label="Sales Tax")
        result = calculate_tax(100.0, "GA", config=config)
        assert result.amount == 0.0
        assert result.audit_note == "Tax disabled"
