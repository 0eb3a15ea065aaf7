"""Pydantic schemas for quote-calc.

Three groups of models:

1. PricingConfig - the rate table. Sections are frozen and use
   extra='forbid', so a typo in pricing.yaml causes a clear error rather
   than silently pricing with a default.

2. PricingInput - the canonical, fully-typed view of a quote form.
   Only the normalizer builds these; calculators never see raw form data.

3. FeeResult / FeeBreakdown / LineItem - calculation output. Field names
   serialize to camelCase for UI and CRM consumers (combined.monthlyFee).
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import rates


# =============================================================================
# Pricing configuration
# =============================================================================


class _RateSection(BaseModel):
    """Base for rate table sections."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class BookkeepingRates(_RateSection):
    """Monthly bookkeeping rates."""

    base_fee: float = Field(default=rates.BOOKKEEPING_BASE_FEE, ge=0)
    setup_multiplier: float = Field(
        default=rates.BOOKKEEPING_SETUP_MULTIPLIER, ge=0,
        description="Setup fee = monthly fee x calendar month x setup_multiplier",
    )
    revenue_multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.REVENUE_MULTIPLIERS)
    )
    transaction_surcharges: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.TRANSACTION_SURCHARGES)
    )


class CleanupRates(_RateSection):
    """Bookkeeping cleanup / catch-up project rates."""

    per_period: float = Field(default=rates.CLEANUP_FEE_PER_PERIOD, ge=0)


class TaasRates(_RateSection):
    """Tax-as-a-Service rates."""

    base_fee: float = Field(default=rates.TAAS_BASE_FEE, ge=0)
    entity_threshold: int = Field(default=rates.TAAS_ENTITY_THRESHOLD, ge=0)
    per_entity: float = Field(default=rates.TAAS_FEE_PER_ENTITY, ge=0)
    included_states: int = Field(default=rates.TAAS_INCLUDED_STATES, ge=0)
    per_state: float = Field(default=rates.TAAS_FEE_PER_STATE, ge=0)
    max_states: int = Field(default=rates.TAAS_MAX_STATES, ge=1)
    international_fee: float = Field(default=rates.TAAS_INTERNATIONAL_FEE, ge=0)
    owner_threshold: int = Field(default=rates.TAAS_OWNER_THRESHOLD, ge=0)
    per_owner: float = Field(default=rates.TAAS_FEE_PER_OWNER, ge=0)
    per_1040_owner: float = Field(default=rates.TAAS_FEE_PER_1040_OWNER, ge=0)
    bookkeeping_quality_upcharges: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.TAAS_BOOKKEEPING_QUALITY_UPCHARGES)
    )
    revenue_multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.TAAS_REVENUE_MULTIPLIERS)
    )


class PriorYearFilingRates(_RateSection):
    """Prior-year tax filing rates."""

    per_year: float = Field(default=rates.PRIOR_YEAR_FILING_FEE_PER_YEAR, ge=0)


class PayrollRates(_RateSection):
    """Payroll service rates."""

    base_fee: float = Field(default=rates.PAYROLL_BASE_FEE, ge=0)
    included_employees: int = Field(default=rates.PAYROLL_INCLUDED_EMPLOYEES, ge=0)
    per_employee: float = Field(default=rates.PAYROLL_FEE_PER_EMPLOYEE, ge=0)
    included_states: int = Field(default=rates.PAYROLL_INCLUDED_STATES, ge=0)
    per_state: float = Field(default=rates.PAYROLL_FEE_PER_STATE, ge=0)


class ApArRates(_RateSection):
    """Accounts payable / receivable rates (same shape for both)."""

    base_fee: float = Field(default=rates.AP_AR_BASE_FEE, ge=0)
    volume_surcharges: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.AP_AR_VOLUME_SURCHARGES)
    )
    included_count: int = Field(default=rates.AP_AR_INCLUDED_COUNT, ge=0)
    per_count: float = Field(default=rates.AP_AR_FEE_PER_COUNT, ge=0)
    selector_max: int = Field(
        default=rates.AP_AR_SELECTOR_MAX, ge=1,
        description="Selector value meaning 'N or more'; a custom count applies at this value",
    )
    tier_multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.AP_AR_TIER_MULTIPLIERS)
    )


class AgentOfServiceRates(_RateSection):
    """Registered agent rates (one-time)."""

    base_fee: float = Field(default=rates.AGENT_OF_SERVICE_BASE_FEE, ge=0)
    per_state: float = Field(default=rates.AGENT_OF_SERVICE_FEE_PER_STATE, ge=0)
    complex_case_fee: float = Field(default=rates.AGENT_OF_SERVICE_COMPLEX_CASE_FEE, ge=0)


class CfoAdvisoryRates(_RateSection):
    """CFO advisory deposit and prepaid bundle rates (one-time)."""

    pay_as_you_go_hours: int = Field(default=rates.CFO_PAY_AS_YOU_GO_HOURS, ge=0)
    pay_as_you_go_rate: float = Field(default=rates.CFO_PAY_AS_YOU_GO_RATE, ge=0)
    bundle_rates: Dict[int, float] = Field(
        default_factory=lambda: dict(rates.CFO_BUNDLE_RATES),
        description="Prepaid bundle hours -> hourly rate",
    )


class QboRates(_RateSection):
    """Managed QuickBooks Online subscription."""

    monthly_fee: float = Field(default=rates.QBO_MONTHLY_FEE, ge=0)


class DiscountRules(_RateSection):
    """Cross-service discounts."""

    bundle_percentage: float = Field(
        default=rates.BUNDLE_DISCOUNT_PERCENTAGE, ge=0, le=1,
        description="Off bookkeeping monthly when bookkeeping and TaaS are both included",
    )


class RoundingRules(_RateSection):
    """Rounding applied to the combined monthly total."""

    monthly_step: float = Field(default=rates.MONTHLY_ROUNDING_STEP, gt=0)


class ServiceSwitches(_RateSection):
    """Per-service switches. A disabled service always prices at zero."""

    bookkeeping: bool = True
    cleanup: bool = True
    taas: bool = True
    prior_year_filings: bool = True
    payroll: bool = True
    ap: bool = True
    ar: bool = True
    agent_of_service: bool = True
    cfo_advisory: bool = True
    service_tier: bool = True
    qbo: bool = True


class PricingConfig(_RateSection):
    """Complete rate table for one calculation.

    Every section defaults to the standard rates, so PricingConfig() prices
    a quote exactly as the published rate card does.
    """

    bookkeeping: BookkeepingRates = Field(default_factory=BookkeepingRates)
    cleanup: CleanupRates = Field(default_factory=CleanupRates)
    taas: TaasRates = Field(default_factory=TaasRates)
    prior_year_filings: PriorYearFilingRates = Field(default_factory=PriorYearFilingRates)
    payroll: PayrollRates = Field(default_factory=PayrollRates)
    ap: ApArRates = Field(default_factory=ApArRates)
    ar: ApArRates = Field(default_factory=ApArRates)
    agent_of_service: AgentOfServiceRates = Field(default_factory=AgentOfServiceRates)
    cfo_advisory: CfoAdvisoryRates = Field(default_factory=CfoAdvisoryRates)
    industry_multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.INDUSTRY_MULTIPLIERS)
    )
    service_tiers: Dict[str, float] = Field(
        default_factory=lambda: dict(rates.SERVICE_TIER_FEES)
    )
    qbo: QboRates = Field(default_factory=QboRates)
    discounts: DiscountRules = Field(default_factory=DiscountRules)
    rounding: RoundingRules = Field(default_factory=RoundingRules)
    services: ServiceSwitches = Field(default_factory=ServiceSwitches)
    products: Dict[str, str] = Field(
        default_factory=dict,
        description="Line item key -> external product id (e.g. CRM product)",
    )


# =============================================================================
# Canonical input
# =============================================================================


class PricingInput(BaseModel):
    """Canonical quote form. Built by normalize_input(), never by hand-parsing."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Global
    monthly_revenue_range: Optional[str] = None
    monthly_transactions: Optional[str] = None
    industry: Optional[str] = None
    entity_type: Optional[str] = None
    service_tier: Optional[str] = None
    bookkeeping_quality: Optional[str] = None

    # Bookkeeping and cleanup
    include_bookkeeping: bool = False
    already_on_bookkeeping: bool = False
    include_cleanup: bool = False
    cleanup_months: int = Field(default=0, ge=0)
    cleanup_complexity: Optional[str] = None
    cleanup_periods: List[str] = Field(default_factory=list)
    custom_setup_fee: Optional[float] = Field(default=None, ge=0)
    override_reason: Optional[str] = None

    # TaaS and prior-year filings
    include_taas: bool = False
    num_entities: int = Field(default=1, ge=1)
    states_filed: int = Field(default=1, ge=1)
    international_filing: bool = False
    num_business_owners: int = Field(default=1, ge=1)
    include_1040s: bool = False
    prior_years_unfiled: int = Field(default=0, ge=0)
    include_prior_year_filings: bool = False
    prior_year_filings: List[str] = Field(default_factory=list)

    # Payroll
    include_payroll: bool = False
    payroll_employee_count: int = Field(default=1, ge=1)
    payroll_state_count: int = Field(default=1, ge=1)

    # AP
    include_ap: bool = False
    ap_service_tier: str = "lite"
    ap_vendor_bills_band: Optional[str] = None
    ap_vendor_count: int = Field(default=5, ge=0)
    custom_ap_vendor_count: Optional[int] = Field(default=None, ge=0)

    # AR
    include_ar: bool = False
    ar_service_tier: str = "lite"
    ar_customer_invoices_band: Optional[str] = None
    ar_customer_count: int = Field(default=5, ge=0)
    custom_ar_customer_count: Optional[int] = Field(default=None, ge=0)

    # Agent of service
    include_agent_of_service: bool = False
    agent_of_service_additional_states: int = Field(default=0, ge=0)
    agent_of_service_complex_case: bool = False

    # CFO advisory
    include_cfo_advisory: bool = False
    cfo_advisory_type: Optional[str] = None
    cfo_advisory_bundle_hours: Optional[int] = Field(default=None, ge=0)

    # Subscriptions
    qbo_subscription: bool = False


# =============================================================================
# Calculation output
# =============================================================================

SERVICE_KEYS = (
    "bookkeeping",
    "cleanup",
    "taas",
    "prior_year_filings",
    "payroll",
    "ap",
    "ar",
    "agent_of_service",
    "cfo_advisory",
    "service_tier",
    "qbo",
)


def _camelize_keys(value: Any) -> Any:
    """Recursively convert dict keys to camelCase."""
    if isinstance(value, dict):
        return {
            (to_camel(k) if isinstance(k, str) else k): _camelize_keys(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_camelize_keys(v) for v in value]
    return value


class _Output(BaseModel):
    model_config = ConfigDict(
        extra="forbid", frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class FeeResult(_Output):
    """One service's fees plus the values that produced them."""

    monthly_fee: float = Field(default=0, description="Recurring monthly fee")
    setup_fee: float = Field(default=0, description="One-time fee")
    breakdown: Dict[str, Any] = Field(
        default_factory=dict,
        description="Intermediate bands, multipliers and component fees",
    )

    @classmethod
    def zero(cls) -> "FeeResult":
        """Fee result for an excluded service."""
        return cls(monthly_fee=0, setup_fee=0, breakdown={})


class CombinedFees(_Output):
    """Aggregate across all services."""

    monthly_fee: float = Field(default=0, description="Rounded monthly total")
    setup_fee: float = Field(default=0, description="One-time total (unrounded)")
    monthly_fee_before_rounding: float = Field(default=0)


class FeeBreakdown(_Output):
    """Full quote: every service (zero when excluded) plus combined totals."""

    bookkeeping: FeeResult = Field(default_factory=FeeResult.zero)
    cleanup: FeeResult = Field(default_factory=FeeResult.zero)
    taas: FeeResult = Field(default_factory=FeeResult.zero)
    prior_year_filings: FeeResult = Field(default_factory=FeeResult.zero)
    payroll: FeeResult = Field(default_factory=FeeResult.zero)
    ap: FeeResult = Field(default_factory=FeeResult.zero)
    ar: FeeResult = Field(default_factory=FeeResult.zero)
    agent_of_service: FeeResult = Field(default_factory=FeeResult.zero)
    cfo_advisory: FeeResult = Field(default_factory=FeeResult.zero)
    service_tier: FeeResult = Field(default_factory=FeeResult.zero)
    qbo: FeeResult = Field(default_factory=FeeResult.zero)
    combined: CombinedFees = Field(default_factory=CombinedFees)
    includes_bookkeeping: bool = False
    includes_taas: bool = False
    includes: Dict[str, bool] = Field(
        default_factory=lambda: {key: False for key in SERVICE_KEYS}
    )
    as_of: Optional[date] = None

    @classmethod
    def zero(cls, as_of: Optional[date] = None) -> "FeeBreakdown":
        """All-zero quote, used when a calculation cannot be completed."""
        return cls(as_of=as_of)

    def service(self, key: str) -> FeeResult:
        """Get a service's FeeResult by key (see SERVICE_KEYS)."""
        if key not in SERVICE_KEYS:
            raise KeyError(f"Unknown service: {key}")
        return getattr(self, key)

    def to_dict(self, by_alias: bool = True) -> dict:
        """Serialize for JSON output.

        Args:
            by_alias: camelCase keys (default) for UI/CRM consumers,
                      snake_case when False.
        """
        data = self.model_dump(mode="json")
        if by_alias:
            data = _camelize_keys(data)
        return data


class LineItem(_Output):
    """A billable line derived from a FeeBreakdown."""

    key: str = Field(..., description="Stable line item key (e.g. 'monthly_bookkeeping')")
    name: str = Field(..., description="Display name")
    price: float = Field(..., ge=0)
    recurring: bool = Field(..., description="True for monthly, False for one-time")
    product_id: Optional[str] = Field(default=None, description="External product id, if configured")
