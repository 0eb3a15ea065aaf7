"""Quote form normalization.

Turns a sparse, loosely-typed form snapshot into a PricingInput. The form
layer sends numbers as strings, leaves fields out, and still writes legacy
field names from older quote records, so nothing here raises on bad values:
anything unparsable is treated as absent and falls back to its default.

Alias resolution:
    Service flags are listed once in FLAG_ALIASES. A flag is set when ANY of
    its names is truthy (serviceBookkeeping OR serviceMonthlyBookkeeping OR
    ...); aliases never have to agree. Value fields are listed in
    VALUE_ALIASES and take the first name that holds a usable value.

Every table includes the canonical snake_case name, so an already
normalized dict (e.g. PricingInput.model_dump()) round-trips unchanged.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..schemas import PricingInput

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "1", "yes", "y", "on"}

FLAG_ALIASES: Dict[str, Tuple[str, ...]] = {
    "include_bookkeeping": (
        "include_bookkeeping", "includesBookkeeping", "serviceBookkeeping", "serviceMonthlyBookkeeping",
    ),
    "already_on_bookkeeping": ("already_on_bookkeeping", "alreadyOnSeedBookkeeping", "alreadyOnBookkeeping"),
    "include_cleanup": ("include_cleanup", "serviceCleanupProjects"),
    "include_taas": ("include_taas", "includesTaas", "serviceTaas", "serviceTaasMonthly"),
    "include_prior_year_filings": ("include_prior_year_filings", "servicePriorYearFilings"),
    "international_filing": ("international_filing", "internationalFiling"),
    "include_1040s": ("include_1040s", "include1040s"),
    "include_payroll": ("include_payroll", "servicePayrollService", "servicePayroll"),
    "include_ap": ("include_ap", "serviceApArService", "serviceApLite", "serviceApAdvanced"),
    "include_ar": ("include_ar", "serviceArService", "serviceArLite", "serviceArAdvanced"),
    "include_agent_of_service": ("include_agent_of_service", "serviceAgentOfService"),
    "agent_of_service_complex_case": ("agent_of_service_complex_case", "agentOfServiceComplexCase"),
    "include_cfo_advisory": ("include_cfo_advisory", "serviceCfoAdvisory"),
    "qbo_subscription": ("qbo_subscription", "qboSubscription"),
}

# Names that imply the advanced tier when no tier is given explicitly
ADVANCED_TIER_FLAGS = {
    "ap": ("serviceApAdvanced",),
    "ar": ("serviceArAdvanced",),
}

VALUE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "monthly_revenue_range": ("monthly_revenue_range", "monthlyRevenueRange", "revenueBand"),
    "monthly_transactions": ("monthly_transactions", "monthlyTransactions"),
    "industry": ("industry",),
    "entity_type": ("entity_type", "entityType"),
    "service_tier": ("service_tier", "serviceTier"),
    "bookkeeping_quality": ("bookkeeping_quality", "bookkeepingQuality"),
    "cleanup_months": ("cleanup_months", "cleanupMonths"),
    "cleanup_complexity": ("cleanup_complexity", "cleanupComplexity"),
    "cleanup_periods": ("cleanup_periods", "cleanupPeriods"),
    "custom_setup_fee": ("custom_setup_fee", "customSetupFee"),
    "override_reason": ("override_reason", "overrideReason"),
    # custom* overrides come first: they hold the value when "more" was picked
    "num_entities": ("customNumEntities", "num_entities", "numEntities"),
    "states_filed": ("customStatesFiled", "states_filed", "statesFiled"),
    "num_business_owners": ("customNumBusinessOwners", "num_business_owners", "numBusinessOwners"),
    "prior_years_unfiled": ("prior_years_unfiled", "priorYearsUnfiled"),
    "prior_year_filings": ("prior_year_filings", "priorYearFilings"),
    "payroll_employee_count": ("payroll_employee_count", "payrollEmployeeCount"),
    "payroll_state_count": ("payroll_state_count", "payrollStateCount"),
    "ap_service_tier": ("ap_service_tier", "apServiceTier"),
    "ap_vendor_bills_band": ("ap_vendor_bills_band", "apVendorBillsBand"),
    "ap_vendor_count": ("ap_vendor_count", "apVendorCount"),
    "custom_ap_vendor_count": ("custom_ap_vendor_count", "customApVendorCount"),
    "ar_service_tier": ("ar_service_tier", "arServiceTier"),
    "ar_customer_invoices_band": ("ar_customer_invoices_band", "arCustomerInvoicesBand"),
    "ar_customer_count": ("ar_customer_count", "arCustomerCount"),
    "custom_ar_customer_count": ("custom_ar_customer_count", "customArCustomerCount"),
    "agent_of_service_additional_states": (
        "agent_of_service_additional_states", "agentOfServiceAdditionalStates",
    ),
    "cfo_advisory_type": ("cfo_advisory_type", "cfoAdvisoryType"),
    "cfo_advisory_bundle_hours": ("cfo_advisory_bundle_hours", "cfoAdvisoryBundleHours"),
}

# AP/AR selectors offer "5 or less" .. "10+"
MIN_PAYEE_SELECTOR = 5


# =============================================================================
# Coercion helpers
# =============================================================================


def coerce_bool(value: Any) -> bool:
    """Interpret a form value as a checkbox state."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        try:
            return math.isfinite(value) and value != 0
        except OverflowError:
            logger.debug(f"Ignoring out-of-range form value {value!r}")
            return False
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def coerce_number(value: Any) -> Optional[float]:
    """Parse a finite number, or None. Booleans are not numbers."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            logger.debug(f"Ignoring out-of-range form value {value!r}")
            return None
    elif isinstance(value, str):
        text = value.strip().replace(",", "").lstrip("$")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            logger.debug(f"Ignoring non-numeric form value {value!r}")
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def coerce_text(value: Any) -> Optional[str]:
    """Non-empty stripped string, or None. Numbers are accepted as text."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            if not math.isfinite(value):
                return None
            return str(int(value)) if float(value).is_integer() else str(value)
        except (OverflowError, ValueError):
            logger.debug(f"Ignoring out-of-range form value {value!r}")
            return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


def coerce_text_list(value: Any) -> List[str]:
    """Collect the non-empty text entries of a list-like value, deduplicated in order.

    Sets have no order, so they are sorted first. A bare string is treated as
    a comma-separated list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (set, frozenset)):
        items = sorted(value, key=str)
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []

    result = []
    for item in items:
        text = coerce_text(item)
        if text is not None and text not in result:
            result.append(text)
    return result


# =============================================================================
# Alias resolution
# =============================================================================


def resolve_flag(raw: Mapping[str, Any], names: Iterable[str]) -> bool:
    """True if any alias is truthy."""
    return any(coerce_bool(raw.get(name)) for name in names)


def first_number(raw: Mapping[str, Any], names: Iterable[str]) -> Optional[float]:
    """First alias holding a finite number."""
    for name in names:
        number = coerce_number(raw.get(name))
        if number is not None:
            return number
    return None


def first_text(raw: Mapping[str, Any], names: Iterable[str]) -> Optional[str]:
    """First alias holding non-empty text."""
    for name in names:
        text = coerce_text(raw.get(name))
        if text is not None:
            return text
    return None


def first_present(raw: Mapping[str, Any], names: Iterable[str]) -> Any:
    """First alias whose value is not None."""
    for name in names:
        if raw.get(name) is not None:
            return raw[name]
    return None


def _count(raw: Mapping[str, Any], field: str, minimum: int) -> int:
    number = first_number(raw, VALUE_ALIASES[field])
    if number is None:
        return minimum
    return max(minimum, int(number))


def _optional_count(raw: Mapping[str, Any], field: str) -> Optional[int]:
    number = first_number(raw, VALUE_ALIASES[field])
    if number is None or number < 0:
        return None
    return int(number)


def _tier(raw: Mapping[str, Any], service: str) -> str:
    explicit = first_text(raw, VALUE_ALIASES[f"{service}_service_tier"])
    if explicit is not None:
        return explicit.lower()
    if resolve_flag(raw, ADVANCED_TIER_FLAGS[service]):
        return "advanced"
    return "lite"


def _prior_years(value: Any) -> List[str]:
    return sorted(coerce_text_list(value))


# =============================================================================
# Entry point
# =============================================================================


def normalize_input(raw: Any) -> PricingInput:
    """Normalize a quote form snapshot into a PricingInput.

    Args:
        raw: Any mapping (form state, DB row, already-normalized dict) or a
             PricingInput, which is returned as-is

    Returns:
        PricingInput with every field validated or defaulted

    Raises:
        TypeError: If raw is not a mapping at all (a programming error)
    """
    if isinstance(raw, PricingInput):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"Quote input must be a mapping, got {type(raw).__name__}")

    values: Dict[str, Any] = {
        field: resolve_flag(raw, names) for field, names in FLAG_ALIASES.items()
    }

    for field in (
        "monthly_revenue_range", "monthly_transactions", "industry", "entity_type",
        "service_tier", "bookkeeping_quality", "cleanup_complexity", "override_reason",
        "ap_vendor_bills_band", "ar_customer_invoices_band", "cfo_advisory_type",
    ):
        values[field] = first_text(raw, VALUE_ALIASES[field])

    # Cleanup periods are the source of truth for the month count
    cleanup_periods = coerce_text_list(first_present(raw, VALUE_ALIASES["cleanup_periods"]))
    values["cleanup_periods"] = cleanup_periods
    values["cleanup_months"] = len(cleanup_periods) if cleanup_periods else _count(raw, "cleanup_months", 0)

    custom_setup_fee = first_number(raw, VALUE_ALIASES["custom_setup_fee"])
    values["custom_setup_fee"] = custom_setup_fee if custom_setup_fee is not None and custom_setup_fee >= 0 else None

    values["num_entities"] = _count(raw, "num_entities", 1)
    values["states_filed"] = _count(raw, "states_filed", 1)
    values["num_business_owners"] = _count(raw, "num_business_owners", 1)
    values["prior_years_unfiled"] = _count(raw, "prior_years_unfiled", 0)
    values["prior_year_filings"] = _prior_years(first_present(raw, VALUE_ALIASES["prior_year_filings"]))

    values["payroll_employee_count"] = _count(raw, "payroll_employee_count", 1)
    values["payroll_state_count"] = _count(raw, "payroll_state_count", 1)

    values["ap_service_tier"] = _tier(raw, "ap")
    values["ap_vendor_count"] = _count(raw, "ap_vendor_count", MIN_PAYEE_SELECTOR)
    values["custom_ap_vendor_count"] = _optional_count(raw, "custom_ap_vendor_count")
    values["ar_service_tier"] = _tier(raw, "ar")
    values["ar_customer_count"] = _count(raw, "ar_customer_count", MIN_PAYEE_SELECTOR)
    values["custom_ar_customer_count"] = _optional_count(raw, "custom_ar_customer_count")

    values["agent_of_service_additional_states"] = _count(raw, "agent_of_service_additional_states", 0)
    values["cfo_advisory_bundle_hours"] = _optional_count(raw, "cfo_advisory_bundle_hours")

    return PricingInput(**values)
