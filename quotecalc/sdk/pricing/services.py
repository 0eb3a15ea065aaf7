"""Per-service fee calculators.

Every calculator has the same shape:

    calculate_x(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult

and is a pure function of its arguments. None reads another service's
result; cross-service effects (the bundle discount) happen in combined.py.

A calculator returns FeeResult.zero() when its service flag is off or the
service is switched off in config.services, regardless of any other field.
Band lookups go through BandTable, so unknown bands and tiers resolve to the
lowest-cost entry.

Amounts are kept to the cent. Rounding to the monthly step is applied only
to the combined total.
"""

from datetime import date
from typing import Callable, Dict, Optional

from ..schemas import ApArRates, FeeResult, PricingConfig, PricingInput
from .bands import BandMatch, BandTable

Calculator = Callable[[PricingInput, PricingConfig, date], FeeResult]


def to_cents(amount: float) -> float:
    """Round to cents for display."""
    return round(amount, 2)


def _band(match: BandMatch) -> dict:
    return {"band": match.label, "value": match.value, "matched": match.matched}


def _multiplier_table(mapping) -> BandTable:
    return BandTable.from_mapping(mapping, empty_value=1.0)


def service_includes(inp: PricingInput) -> Dict[str, bool]:
    """Which services the form selected, keyed like FeeBreakdown."""
    recurring = (
        inp.include_bookkeeping or inp.include_taas or inp.include_payroll
        or inp.include_ap or inp.include_ar
    )
    return {
        "bookkeeping": inp.include_bookkeeping,
        "cleanup": inp.include_cleanup or (inp.include_bookkeeping and inp.cleanup_months > 0),
        "taas": inp.include_taas,
        "prior_year_filings": inp.include_prior_year_filings or (
            inp.include_taas and bool(inp.prior_year_filings)
        ),
        "payroll": inp.include_payroll,
        "ap": inp.include_ap,
        "ar": inp.include_ar,
        "agent_of_service": inp.include_agent_of_service,
        "cfo_advisory": inp.include_cfo_advisory,
        "service_tier": recurring,
        "qbo": inp.qbo_subscription,
    }


# =============================================================================
# Bookkeeping and cleanup
# =============================================================================


def calculate_bookkeeping(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """Monthly bookkeeping plus its setup fee.

    monthly = (base + transaction surcharge) x revenue multiplier x industry multiplier

    The setup fee covers current-year catch-up: monthly fee x calendar month x
    setup multiplier. It is waived for clients already on bookkeeping and
    replaced outright by a custom setup fee.
    """
    if not (inp.include_bookkeeping and config.services.bookkeeping):
        return FeeResult.zero()

    rates = config.bookkeeping
    transactions = BandTable.from_mapping(rates.transaction_surcharges).lookup(inp.monthly_transactions)
    revenue = _multiplier_table(rates.revenue_multipliers).lookup(inp.monthly_revenue_range)
    industry = _multiplier_table(config.industry_multipliers).lookup(inp.industry)

    before_multipliers = rates.base_fee + transactions.value
    after_revenue = before_multipliers * revenue.value
    monthly_fee = to_cents(after_revenue * industry.value)

    if inp.custom_setup_fee is not None:
        setup_fee = to_cents(inp.custom_setup_fee)
        setup_source = "custom"
    elif inp.already_on_bookkeeping:
        setup_fee = 0.0
        setup_source = "waived"
    else:
        setup_fee = to_cents(monthly_fee * as_of.month * rates.setup_multiplier)
        setup_source = "calculated"

    breakdown = {
        "base_fee": rates.base_fee,
        "transactions": _band(transactions),
        "transaction_surcharge": transactions.value,
        "before_multipliers": to_cents(before_multipliers),
        "revenue": _band(revenue),
        "revenue_multiplier": revenue.value,
        "after_revenue": to_cents(after_revenue),
        "industry": _band(industry),
        "industry_multiplier": industry.value,
        "monthly_fee_before_discount": monthly_fee,
        "current_month": as_of.month,
        "setup_multiplier": rates.setup_multiplier,
        "setup_source": setup_source,
    }
    if setup_source == "custom":
        breakdown["override_reason"] = inp.override_reason

    return FeeResult(monthly_fee=monthly_fee, setup_fee=setup_fee, breakdown=breakdown)


def calculate_cleanup(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """One-time cleanup project: billable periods x per-period rate.

    When monthly bookkeeping is also quoted, its setup fee already covers the
    current calendar year, so periods in that year are dropped here.
    """
    if not ((inp.include_cleanup or inp.include_bookkeeping) and config.services.cleanup):
        return FeeResult.zero()

    periods = list(inp.cleanup_periods)
    excluded = []
    if inp.include_bookkeeping and config.services.bookkeeping:
        current_year = f"{as_of.year}-"
        excluded = [p for p in periods if p.startswith(current_year)]
        periods = [p for p in periods if not p.startswith(current_year)]

    billable = len(periods) if inp.cleanup_periods else inp.cleanup_months
    setup_fee = to_cents(billable * config.cleanup.per_period)

    return FeeResult(
        monthly_fee=0,
        setup_fee=setup_fee,
        breakdown={
            "periods": periods,
            "excluded_periods": excluded,
            "billable_months": billable,
            "per_period": config.cleanup.per_period,
            "complexity": inp.cleanup_complexity,
        },
    )


# =============================================================================
# Tax as a Service and prior-year filings
# =============================================================================


def calculate_taas(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """Monthly TaaS. No setup fee; prior years are billed separately.

    monthly = (base + entity + state + international + owner + quality + 1040s)
              x industry multiplier x revenue multiplier
    """
    if not (inp.include_taas and config.services.taas):
        return FeeResult.zero()

    rates = config.taas
    entity_upcharge = max(0, inp.num_entities - rates.entity_threshold) * rates.per_entity
    states = min(inp.states_filed, rates.max_states)
    state_upcharge = max(0, states - rates.included_states) * rates.per_state
    international_upcharge = rates.international_fee if inp.international_filing else 0
    owner_upcharge = max(0, inp.num_business_owners - rates.owner_threshold) * rates.per_owner
    quality = BandTable.from_mapping(rates.bookkeeping_quality_upcharges).lookup(inp.bookkeeping_quality)
    personal_1040 = inp.num_business_owners * rates.per_1040_owner if inp.include_1040s else 0

    before_multipliers = (
        rates.base_fee + entity_upcharge + state_upcharge + international_upcharge
        + owner_upcharge + quality.value + personal_1040
    )
    industry = _multiplier_table(config.industry_multipliers).lookup(inp.industry)
    revenue = _multiplier_table(rates.revenue_multipliers).lookup(inp.monthly_revenue_range)
    after_industry = before_multipliers * industry.value
    monthly_fee = to_cents(after_industry * revenue.value)

    return FeeResult(
        monthly_fee=monthly_fee,
        setup_fee=0,
        breakdown={
            "base_fee": rates.base_fee,
            "num_entities": inp.num_entities,
            "entity_upcharge": entity_upcharge,
            "states_filed": states,
            "state_upcharge": state_upcharge,
            "international_upcharge": international_upcharge,
            "num_business_owners": inp.num_business_owners,
            "owner_upcharge": owner_upcharge,
            "bookkeeping_quality": _band(quality),
            "quality_upcharge": quality.value,
            "personal_1040_upcharge": personal_1040,
            "before_multipliers": to_cents(before_multipliers),
            "industry": _band(industry),
            "industry_multiplier": industry.value,
            "after_industry": to_cents(after_industry),
            "revenue": _band(revenue),
            "revenue_multiplier": revenue.value,
            "prior_years_unfiled": inp.prior_years_unfiled,
        },
    )


def calculate_prior_year_filings(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """One-time prior-year filings: selected years x per-year rate."""
    if not ((inp.include_prior_year_filings or inp.include_taas) and config.services.prior_year_filings):
        return FeeResult.zero()

    years = list(inp.prior_year_filings)
    per_year = config.prior_year_filings.per_year
    return FeeResult(
        monthly_fee=0,
        setup_fee=to_cents(len(years) * per_year),
        breakdown={"years": years, "per_year": per_year},
    )


# =============================================================================
# Payroll, AP, AR
# =============================================================================


def calculate_payroll(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """Monthly payroll: base + additional employees + additional states."""
    if not (inp.include_payroll and config.services.payroll):
        return FeeResult.zero()

    rates = config.payroll
    additional_employees = max(0, inp.payroll_employee_count - rates.included_employees)
    additional_states = max(0, inp.payroll_state_count - rates.included_states)
    employee_fee = additional_employees * rates.per_employee
    state_fee = additional_states * rates.per_state

    return FeeResult(
        monthly_fee=to_cents(rates.base_fee + employee_fee + state_fee),
        setup_fee=0,
        breakdown={
            "base_fee": rates.base_fee,
            "employee_count": inp.payroll_employee_count,
            "additional_employees": additional_employees,
            "employee_fee": employee_fee,
            "state_count": inp.payroll_state_count,
            "additional_states": additional_states,
            "state_fee": state_fee,
        },
    )


def effective_payee_count(selector: int, custom: Optional[int], selector_max: int) -> int:
    """Count from a '5 or less' .. '10+' selector.

    The custom count applies only when the selector sits at its max ("10+").
    """
    if selector >= selector_max and custom is not None:
        return custom
    return selector


def _calculate_payables(
    rates: ApArRates,
    tier_name: str,
    band: Optional[str],
    selector: int,
    custom: Optional[int],
) -> FeeResult:
    tier = _multiplier_table(rates.tier_multipliers).lookup(tier_name)
    volume = BandTable.from_mapping(rates.volume_surcharges).lookup(band)
    count = effective_payee_count(selector, custom, rates.selector_max)
    additional = max(0, count - rates.included_count)
    count_surcharge = additional * rates.per_count

    subtotal = rates.base_fee + volume.value + count_surcharge
    return FeeResult(
        monthly_fee=to_cents(subtotal * tier.value),
        setup_fee=0,
        breakdown={
            "tier": tier.label,
            "tier_matched": tier.matched,
            "tier_multiplier": tier.value,
            "base_fee": rates.base_fee,
            "volume": _band(volume),
            "volume_surcharge": volume.value,
            "count": count,
            "additional_count": additional,
            "count_surcharge": count_surcharge,
            "subtotal": to_cents(subtotal),
        },
    )


def calculate_ap(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """Monthly accounts payable: (base + volume surcharge) x tier multiplier."""
    if not (inp.include_ap and config.services.ap):
        return FeeResult.zero()
    return _calculate_payables(
        config.ap, inp.ap_service_tier, inp.ap_vendor_bills_band,
        inp.ap_vendor_count, inp.custom_ap_vendor_count,
    )


def calculate_ar(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """Monthly accounts receivable: (base + volume surcharge) x tier multiplier."""
    if not (inp.include_ar and config.services.ar):
        return FeeResult.zero()
    return _calculate_payables(
        config.ar, inp.ar_service_tier, inp.ar_customer_invoices_band,
        inp.ar_customer_count, inp.custom_ar_customer_count,
    )


# =============================================================================
# One-time services
# =============================================================================


def calculate_agent_of_service(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """One-time agent of service fee."""
    if not (inp.include_agent_of_service and config.services.agent_of_service):
        return FeeResult.zero()

    rates = config.agent_of_service
    state_fee = inp.agent_of_service_additional_states * rates.per_state
    complex_fee = rates.complex_case_fee if inp.agent_of_service_complex_case else 0

    return FeeResult(
        monthly_fee=0,
        setup_fee=to_cents(rates.base_fee + state_fee + complex_fee),
        breakdown={
            "base_fee": rates.base_fee,
            "additional_states": inp.agent_of_service_additional_states,
            "state_fee": state_fee,
            "complex_case_fee": complex_fee,
        },
    )


def calculate_cfo_advisory(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """One-time CFO advisory deposit or prepaid bundle.

    Pay-as-you-go is a deposit of a fixed number of hours. A bundle is priced
    at its discounted hourly rate; hours that match no bundle price at zero.
    """
    if not (inp.include_cfo_advisory and config.services.cfo_advisory):
        return FeeResult.zero()

    rates = config.cfo_advisory
    advisory_type = (inp.cfo_advisory_type or "").lower()

    if advisory_type == "pay_as_you_go":
        hours, hourly_rate, matched = rates.pay_as_you_go_hours, rates.pay_as_you_go_rate, True
    elif advisory_type == "bundled" and inp.cfo_advisory_bundle_hours:
        bundle = BandTable.from_mapping(rates.bundle_rates).lookup(inp.cfo_advisory_bundle_hours)
        matched = bundle.matched
        hours = inp.cfo_advisory_bundle_hours if matched else 0
        hourly_rate = bundle.value if matched else 0
    else:
        hours, hourly_rate, matched = 0, 0, False

    return FeeResult(
        monthly_fee=0,
        setup_fee=to_cents(hours * hourly_rate),
        breakdown={
            "advisory_type": inp.cfo_advisory_type,
            "hours": hours,
            "hourly_rate": hourly_rate,
            "matched": matched,
        },
    )


# =============================================================================
# Add-ons
# =============================================================================


def calculate_service_tier(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """Flat monthly tier surcharge, charged only alongside a recurring service."""
    if not (service_includes(inp)["service_tier"] and config.services.service_tier):
        return FeeResult.zero()

    tier = BandTable.from_mapping(config.service_tiers).lookup(inp.service_tier)
    return FeeResult(
        monthly_fee=to_cents(tier.value),
        setup_fee=0,
        breakdown={"tier": tier.label, "tier_matched": tier.matched, "tier_fee": tier.value},
    )


def calculate_qbo(inp: PricingInput, config: PricingConfig, as_of: date) -> FeeResult:
    """Managed QBO subscription. Never discounted."""
    if not (inp.qbo_subscription and config.services.qbo):
        return FeeResult.zero()
    return FeeResult(
        monthly_fee=to_cents(config.qbo.monthly_fee),
        setup_fee=0,
        breakdown={"monthly_fee": config.qbo.monthly_fee},
    )


# Evaluation order does not matter; this is the display order.
SERVICE_CALCULATORS: Dict[str, Calculator] = {
    "bookkeeping": calculate_bookkeeping,
    "cleanup": calculate_cleanup,
    "taas": calculate_taas,
    "prior_year_filings": calculate_prior_year_filings,
    "payroll": calculate_payroll,
    "ap": calculate_ap,
    "ar": calculate_ar,
    "agent_of_service": calculate_agent_of_service,
    "cfo_advisory": calculate_cfo_advisory,
    "service_tier": calculate_service_tier,
    "qbo": calculate_qbo,
}
