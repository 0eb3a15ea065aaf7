"""pricing - Quote pricing engine.

Scope:
- Form normalization (legacy field names, stringly-typed values)
- Per-service fee calculators (bookkeeping, TaaS, payroll, AP/AR, ...)
- Bundle discount, monthly rounding, combined totals
- Billable line items for downstream systems

Constraints:
- Pure calculation - no file or network access, no cached state
- Rates always come from an explicit PricingConfig argument
- Never raises for bad form values; wrong argument shapes raise TypeError

Modules:
- bands: Band lookup tables with lowest-cost fallback
- normalize: Raw form -> PricingInput
- services: One calculator per service
- combined: compute_quote() aggregation
- line_items: FeeBreakdown -> LineItem list

Usage:
    from quotecalc.sdk.pricing import compute_quote
    from quotecalc.sdk.schemas import PricingConfig

    quote = compute_quote({"serviceBookkeeping": True, "monthlyTransactions": "100-300"}, PricingConfig())
    quote.combined.monthly_fee   # rounded up to the monthly step
"""

from .bands import Band, BandMatch, BandTable

from .normalize import (
    FLAG_ALIASES,
    VALUE_ALIASES,
    normalize_input,
)

from .services import (
    SERVICE_CALCULATORS,
    calculate_bookkeeping,
    calculate_cleanup,
    calculate_taas,
    calculate_prior_year_filings,
    calculate_payroll,
    calculate_ap,
    calculate_ar,
    calculate_agent_of_service,
    calculate_cfo_advisory,
    calculate_service_tier,
    calculate_qbo,
    service_includes,
)

from .combined import (
    compute_quote,
    apply_bundle_discount,
    round_up_to_step,
    safe_amount,
)

from .line_items import build_line_items

__all__ = [
    # Bands
    "Band",
    "BandMatch",
    "BandTable",
    # Normalization
    "FLAG_ALIASES",
    "VALUE_ALIASES",
    "normalize_input",
    # Calculators
    "SERVICE_CALCULATORS",
    "calculate_bookkeeping",
    "calculate_cleanup",
    "calculate_taas",
    "calculate_prior_year_filings",
    "calculate_payroll",
    "calculate_ap",
    "calculate_ar",
    "calculate_agent_of_service",
    "calculate_cfo_advisory",
    "calculate_service_tier",
    "calculate_qbo",
    "service_includes",
    # Aggregation
    "compute_quote",
    "apply_bundle_discount",
    "round_up_to_step",
    "safe_amount",
    # Line items
    "build_line_items",
]
