"""Tests for compute_quote aggregation.

Covers bundle discount, rounding, flag gating, safe sums and the zero
fallback. All quotes use a fixed as_of date so setup fees are stable.
"""

from datetime import date

import pytest

from quotecalc.sdk import SERVICE_KEYS, FeeBreakdown, FeeResult, PricingConfig, compute_quote
from quotecalc.sdk.pricing import services
from quotecalc.sdk.pricing.combined import round_up_to_step, safe_amount

AS_OF = date(2025, 3, 15)

GOLDEN_BOOKKEEPING = {
    "includesBookkeeping": True,
    "monthlyTransactions": "100-300",
    "monthlyRevenueRange": "25K-75K",
    "industry": "Professional Services",
}

SIMPLE_BOOKKEEPING = {
    "includesBookkeeping": True,
    "monthlyRevenueRange": "10k-50k",
    "monthlyTransactions": "0-100",
    "industry": "generic",
}

SIMPLE_CONFIG = {
    "bookkeeping": {"base_fee": 150},
    "qbo": {"monthly_fee": 60},
    "rounding": {"monthly_step": 25},
}

# Every service's own fields populated, no service flags
POPULATED_FIELDS = {
    "monthlyRevenueRange": "75K-250K",
    "monthlyTransactions": "300-600",
    "industry": "Construction/Trades",
    "serviceTier": "Concierge",
    "bookkeepingQuality": "Messy",
    "cleanupPeriods": ["2024-01", "2024-02"],
    "customSetupFee": 500,
    "numEntities": 8,
    "statesFiled": 4,
    "internationalFiling": True,
    "numBusinessOwners": 7,
    "include1040s": True,
    "priorYearFilings": ["2022", "2023"],
    "payrollEmployeeCount": 12,
    "payrollStateCount": 3,
    "apServiceTier": "advanced",
    "apVendorBillsBand": "251+",
    "apVendorCount": 10,
    "customApVendorCount": 40,
    "arServiceTier": "advanced",
    "arCustomerInvoicesBand": "251+",
    "arCustomerCount": 9,
    "agentOfServiceAdditionalStates": 3,
    "agentOfServiceComplexCase": True,
    "cfoAdvisoryType": "bundled",
    "cfoAdvisoryBundleHours": 40,
}

SERVICE_FLAGS = {
    "bookkeeping": "serviceBookkeeping",
    "cleanup": "serviceCleanupProjects",
    "taas": "serviceTaas",
    "prior_year_filings": "servicePriorYearFilings",
    "payroll": "servicePayroll",
    "ap": "serviceApArService",
    "ar": "serviceArService",
    "agent_of_service": "serviceAgentOfService",
    "cfo_advisory": "serviceCfoAdvisory",
    "qbo": "qboSubscription",
}

# Flags that also switch a service on (cleanup rides with bookkeeping, filings with TaaS)
GATING_FLAGS = {
    "cleanup": ("serviceCleanupProjects", "serviceBookkeeping"),
    "prior_year_filings": ("servicePriorYearFilings", "serviceTaas"),
}


def quote(form, config=None):
    """Price a form at the standard rates unless a config is given."""
    return compute_quote(form, PricingConfig() if config is None else config, as_of=AS_OF)


def all_flags_on():
    return {flag: True for flag in SERVICE_FLAGS.values()}


class TestScenarios:
    """End-to-end quote scenarios."""

    def test_empty_input_is_all_zero(self):
        """{} prices nothing and every service reports 0."""
        result = quote({})

        assert result.combined.monthly_fee == 0
        assert result.combined.setup_fee == 0
        for key in SERVICE_KEYS:
            assert result.service(key).monthly_fee == 0
            assert result.service(key).setup_fee == 0

    def test_bookkeeping_only(self):
        """Unknown bands still produce a positive multiple of the step."""
        result = quote(SIMPLE_BOOKKEEPING, SIMPLE_CONFIG)

        assert result.combined.monthly_fee > 0
        assert result.combined.monthly_fee % 25 == 0
        assert result.combined.setup_fee >= 0
        assert result.bookkeeping.monthly_fee == pytest.approx(150)
        assert result.bookkeeping.setup_fee == pytest.approx(112.5)

    def test_bookkeeping_and_taas_bundle(self):
        """The bundle costs less than the two services quoted separately."""
        bundle_form = {**SIMPLE_BOOKKEEPING, "includesTaas": True, "numEntities": 1, "statesFiled": 1}
        taas_form = {"includesTaas": True, "numEntities": 1, "statesFiled": 1}

        bundle = quote(bundle_form, SIMPLE_CONFIG)
        bookkeeping_alone = quote(SIMPLE_BOOKKEEPING, SIMPLE_CONFIG)
        taas_alone = quote(taas_form, SIMPLE_CONFIG)

        assert bundle.combined.monthly_fee < (
            bookkeeping_alone.combined.monthly_fee + taas_alone.combined.monthly_fee
        )
        assert bundle.combined.monthly_fee == 225

    def test_golden_bundle(self):
        """Bookkeeping 550 halves to 275; TaaS 150 x 1.4 revenue = 210; total rounds to 500."""
        result = quote({**GOLDEN_BOOKKEEPING, "includesTaas": True})

        assert result.bookkeeping.monthly_fee == pytest.approx(275)
        assert result.bookkeeping.breakdown["monthly_fee_before_discount"] == pytest.approx(550)
        assert result.bookkeeping.breakdown["discount_percentage"] == 0.5
        assert result.taas.monthly_fee == pytest.approx(210)
        assert result.combined.monthly_fee_before_rounding == pytest.approx(485)
        assert result.combined.monthly_fee == 500

    def test_setup_fee_uses_pre_discount_monthly(self):
        """The bundle discount does not reduce the bookkeeping setup fee."""
        alone = quote(GOLDEN_BOOKKEEPING)
        bundled = quote({**GOLDEN_BOOKKEEPING, "includesTaas": True})

        assert bundled.bookkeeping.setup_fee == alone.bookkeeping.setup_fee == pytest.approx(412.5)

    def test_removing_taas_removes_discount(self):
        """Discount applies only while both services are selected."""
        result = quote({**GOLDEN_BOOKKEEPING, "includesTaas": False})

        assert result.bookkeeping.monthly_fee == pytest.approx(550)
        assert "discount_percentage" not in result.bookkeeping.breakdown

    def test_ap_advanced_tier(self):
        """Advanced AP is 2.5x lite for the same vendors."""
        form = {"serviceApArService": True, "apVendorBillsBand": "26-100", "apVendorCount": 6}

        lite = quote({**form, "apServiceTier": "lite"})
        advanced = quote({**form, "apServiceTier": "advanced"})

        assert lite.ap.monthly_fee == 150 + 100 + 10
        assert advanced.ap.monthly_fee == pytest.approx(2.5 * lite.ap.monthly_fee)

    def test_unknown_band_does_not_raise(self):
        """A bogus AP band prices at or below the cheapest band."""
        bogus = quote({"serviceApArService": True, "apVendorBillsBand": "not-a-real-band"})
        cheapest = quote({"serviceApArService": True, "apVendorBillsBand": "0-25"})

        assert bogus.ap.monthly_fee <= cheapest.ap.monthly_fee


class TestProperties:
    """Invariants that hold for any input."""

    def test_idempotent(self):
        """Same input and config yield equal results."""
        form = {**POPULATED_FIELDS, **all_flags_on()}

        assert quote(form) == quote(form)
        assert quote(form).to_dict() == quote(form).to_dict()

    def test_input_not_mutated(self):
        form = {**GOLDEN_BOOKKEEPING, "cleanupPeriods": ["2024-01"]}
        snapshot = {**form, "cleanupPeriods": list(form["cleanupPeriods"])}

        quote(form)

        assert form == snapshot

    @pytest.mark.parametrize("service", sorted(SERVICE_FLAGS))
    def test_flag_off_forces_zero(self, service):
        """Turning a service's flag off zeroes it despite its fields and other services."""
        flags = all_flags_on()
        for flag in GATING_FLAGS.get(service, (SERVICE_FLAGS[service],)):
            flags[flag] = False

        result = quote({**POPULATED_FIELDS, **flags})

        assert result.service(service).monthly_fee == 0
        assert result.service(service).setup_fee == 0

    @pytest.mark.parametrize("service", sorted(SERVICE_FLAGS))
    def test_flag_on_prices_service(self, service):
        """With its fields populated, each service prices above zero."""
        result = quote({**POPULATED_FIELDS, SERVICE_FLAGS[service]: True})
        fee = result.service(service)

        assert fee.monthly_fee > 0 or fee.setup_fee > 0

    def test_all_flags_off_is_zero(self):
        """Populated fields without flags price nothing."""
        result = quote(POPULATED_FIELDS)

        assert result.combined.monthly_fee == 0
        assert result.combined.setup_fee == 0

    @pytest.mark.parametrize("form", [
        {"servicePayroll": True, "payrollEmployeeCount": 5},
        {"servicePayroll": True, "payrollEmployeeCount": 4, "qboSubscription": True},
        {"serviceTaas": True, "numEntities": 6, "industry": "Insurance"},
        {**GOLDEN_BOOKKEEPING, "includesTaas": True, "serviceTier": "Guided"},
        {**POPULATED_FIELDS, "serviceApArService": True, "serviceArService": True},
    ])
    def test_monthly_total_is_multiple_of_step(self, form):
        """Nonzero monthly totals land on the rounding step."""
        result = quote(form)

        assert result.combined.monthly_fee > 0
        assert result.combined.monthly_fee % 25 == 0
        assert result.combined.monthly_fee >= result.combined.monthly_fee_before_rounding

    def test_custom_rounding_step(self):
        """The step comes from config."""
        result = quote({"servicePayroll": True, "payrollEmployeeCount": 5}, {"rounding": {"monthly_step": 50}})

        assert result.combined.monthly_fee == 200

    def test_setup_total_not_rounded(self):
        """One-time fees are summed exactly."""
        result = quote({
            **GOLDEN_BOOKKEEPING,
            "serviceAgentOfService": True,
            "agentOfServiceAdditionalStates": 2,
            "agentOfServiceComplexCase": True,
        })

        assert result.combined.setup_fee == pytest.approx(412.5 + 750)

    def test_includes_reflects_selection(self):
        result = quote({**GOLDEN_BOOKKEEPING, "servicePriorYearFilings": True})

        assert result.includes["bookkeeping"] is True
        assert result.includes["prior_year_filings"] is True
        assert result.includes["taas"] is False
        assert result.includes_bookkeeping is True
        assert result.includes_taas is True
        assert result.as_of == AS_OF


class TestConfig:
    """Tests for config handling inside compute_quote."""

    def test_base_fee_override(self):
        """A $200 base fee with the golden inputs gives (200 + 100) x 2.2 = 660."""
        result = quote(GOLDEN_BOOKKEEPING, {"bookkeeping": {"base_fee": 200}})

        assert result.bookkeeping.monthly_fee == pytest.approx(660)
        assert result.combined.monthly_fee == 675

    def test_disabled_service_skips_bundle_discount(self):
        """TaaS switched off in config prices at zero and bookkeeping keeps full price."""
        result = quote({**GOLDEN_BOOKKEEPING, "includesTaas": True}, {"services": {"taas": False}})

        assert result.taas.monthly_fee == 0
        assert result.bookkeeping.monthly_fee == pytest.approx(550)

    def test_pricing_config_instance(self):
        config = PricingConfig()

        assert quote(GOLDEN_BOOKKEEPING, config) == quote(GOLDEN_BOOKKEEPING)

    @pytest.mark.parametrize("bad_config", [
        {"rounding": {"monthly_step": 0}},
        {"bogus_section": {}},
        {"bookkeeping": {"base_fee": "lots"}},
    ])
    def test_invalid_config_mapping_returns_zero(self, bad_config):
        """A config that fails validation yields the zero breakdown."""
        result = quote(GOLDEN_BOOKKEEPING, bad_config)

        assert result == FeeBreakdown.zero(AS_OF)
        assert result.combined.monthly_fee == 0

    @pytest.mark.parametrize("bad_input", [None, ["serviceBookkeeping"], "serviceBookkeeping"])
    def test_wrong_input_shape_raises(self, bad_input):
        with pytest.raises(TypeError):
            compute_quote(bad_input, PricingConfig())

    @pytest.mark.parametrize("bad_config", [None, "standard", ["bookkeeping"]])
    def test_wrong_config_shape_raises(self, bad_config):
        """A missing config is a programmer error, not a request for defaults."""
        with pytest.raises(TypeError):
            compute_quote({"serviceBookkeeping": True}, bad_config, as_of=AS_OF)


class TestSafeSums:
    """Tests for coercion of bad calculator output."""

    def test_nan_fee_treated_as_zero(self, monkeypatch):
        """A NaN from one calculator does not poison the total."""
        def broken_payroll(inp, config, as_of):
            return {"monthly_fee": float("nan"), "setup_fee": None}

        monkeypatch.setitem(services.SERVICE_CALCULATORS, "payroll", broken_payroll)

        result = quote({**GOLDEN_BOOKKEEPING, "servicePayroll": True})

        assert result.payroll.monthly_fee == 0
        assert result.payroll.setup_fee == 0
        assert result.combined.monthly_fee == 550
        assert result.combined.setup_fee == pytest.approx(412.5)

    def test_raising_calculator_contributes_zero(self, monkeypatch):
        """A calculator that raises is isolated to its own service."""
        def exploding_taas(inp, config, as_of):
            raise ZeroDivisionError("bad rate table")

        monkeypatch.setitem(services.SERVICE_CALCULATORS, "taas", exploding_taas)

        result = quote({**GOLDEN_BOOKKEEPING, "servicePayroll": True})

        assert result.taas.monthly_fee == 0
        assert result.combined.monthly_fee == 650  # 550 + 100 payroll

    def test_object_result_accepted(self, monkeypatch):
        """Any object with fee attributes is accepted."""
        monkeypatch.setitem(
            services.SERVICE_CALCULATORS, "qbo",
            lambda inp, config, as_of: FeeResult(monthly_fee=float("inf"), setup_fee=5),
        )

        result = quote({})

        assert result.qbo.monthly_fee == 0
        assert result.qbo.setup_fee == 5

    def test_oversized_field_prices_other_services(self):
        """An integer too large for a float is absent, not a failed quote."""
        result = quote({
            **GOLDEN_BOOKKEEPING,
            "servicePayroll": True,
            "payrollEmployeeCount": 10**400,
            "qboSubscription": 10**400,
        })

        assert result.qbo.monthly_fee == 0
        assert result.payroll.monthly_fee == 100
        assert result.combined.monthly_fee == 650
        assert result.combined.setup_fee == pytest.approx(412.5)

    @pytest.mark.parametrize("value,expected", [
        (12.5, 12.5), ("7", 7.0), (float("nan"), 0.0), (None, 0.0),
        ("abc", 0.0), (True, 0.0), (float("-inf"), 0.0),
    ])
    def test_safe_amount(self, value, expected):
        assert safe_amount(value) == expected


class TestRounding:
    """Tests for round_up_to_step()."""

    @pytest.mark.parametrize("amount,expected", [
        (0, 0), (1, 25), (25, 25), (25.01, 50), (174, 175), (485, 500),
        (100.00000000001, 100), (-10, 0),
    ])
    def test_round_up(self, amount, expected):
        assert round_up_to_step(amount, 25) == expected


class TestSerialization:
    """Tests for FeeBreakdown.to_dict()."""

    def test_camel_case_keys(self):
        """Consumers read combined.monthlyFee and bookkeeping.setupFee."""
        data = quote(GOLDEN_BOOKKEEPING).to_dict()

        assert data["combined"]["monthlyFee"] == 550
        assert data["combined"]["monthlyFeeBeforeRounding"] == pytest.approx(550)
        assert data["bookkeeping"]["setupFee"] == pytest.approx(412.5)
        assert data["bookkeeping"]["breakdown"]["baseFee"] == 150
        assert data["priorYearFilings"]["monthlyFee"] == 0
        assert data["includesBookkeeping"] is True
        assert data["asOf"] == "2025-03-15"

    def test_snake_case_keys(self):
        data = quote(GOLDEN_BOOKKEEPING).to_dict(by_alias=False)

        assert data["combined"]["monthly_fee"] == 550
        assert data["bookkeeping"]["breakdown"]["base_fee"] == 150

    def test_excluded_services_present(self):
        """Every service key is present even when nothing is priced."""
        data = quote({}).to_dict()

        for key in ("bookkeeping", "taas", "agentOfService", "cfoAdvisory", "serviceTier", "qbo"):
            assert data[key] == {"monthlyFee": 0, "setupFee": 0, "breakdown": {}}

    def test_unknown_service_key(self):
        with pytest.raises(KeyError):
            quote({}).service("tax_prep")
