"""Quote aggregation.

compute_quote() is the engine's single entry point:

    raw form -> normalize_input -> SERVICE_CALCULATORS -> bundle discount
             -> safe sums -> rounding -> FeeBreakdown

Failure policy:
    - Bad field values never reach here; the normalizer defaults them.
    - A calculator that raises, or returns NaN / None / non-numeric fees,
      contributes 0 for that service only. Other services are unaffected.
    - An invalid config mapping, or any other unexpected failure, yields
      FeeBreakdown.zero() so callers can always render a quote.
    - Wrong argument shapes (input not a mapping, config not a mapping or
      PricingConfig, including None) are programmer errors and raise TypeError.
"""

import logging
import math
import os
from datetime import date
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from ..schemas import (
    SERVICE_KEYS,
    CombinedFees,
    FeeBreakdown,
    FeeResult,
    PricingConfig,
    PricingInput,
)
from .normalize import normalize_input
from .services import SERVICE_CALCULATORS, service_includes, to_cents

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.WARNING),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)


def round_up_to_step(amount: float, step: float) -> float:
    """Round up to the next multiple of step. Zero stays zero.

    The quotient is rounded to 6 places first so float noise like
    100.00000000001 / 25 does not bump a whole step.
    """
    if amount <= 0:
        return 0.0
    return float(math.ceil(round(amount / step, 6)) * step)


def safe_amount(value: Any, label: str = "") -> float:
    """Coerce a calculator amount to a finite float; anything else is 0."""
    if isinstance(value, bool):
        logger.warning(f"{label}: boolean fee {value!r} treated as 0")
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"{label}: non-numeric fee {value!r} treated as 0")
        return 0.0
    if not math.isfinite(number):
        logger.warning(f"{label}: non-finite fee {value!r} treated as 0")
        return 0.0
    return number


def _sanitize(key: str, result: Any) -> FeeResult:
    """Accept a FeeResult, a dict or any object with fee attributes."""
    if isinstance(result, Mapping):
        monthly = result.get("monthly_fee", result.get("monthlyFee"))
        setup = result.get("setup_fee", result.get("setupFee"))
        breakdown = result.get("breakdown") or {}
    else:
        monthly = getattr(result, "monthly_fee", None)
        setup = getattr(result, "setup_fee", None)
        breakdown = getattr(result, "breakdown", None) or {}

    return FeeResult(
        monthly_fee=safe_amount(monthly, f"{key}.monthly_fee"),
        setup_fee=safe_amount(setup, f"{key}.setup_fee"),
        breakdown=dict(breakdown) if isinstance(breakdown, Mapping) else {},
    )


def _resolve_config(config: Union[PricingConfig, Mapping]) -> PricingConfig:
    if isinstance(config, PricingConfig):
        return config
    if isinstance(config, Mapping):
        return PricingConfig.model_validate(dict(config))
    raise TypeError(f"Pricing config must be a PricingConfig or mapping, got {type(config).__name__}")


def bundle_applies(inp: PricingInput, config: PricingConfig) -> bool:
    """Bookkeeping and TaaS monthly are both selected and both switched on."""
    return (
        inp.include_bookkeeping and config.services.bookkeeping
        and inp.include_taas and config.services.taas
    )


def apply_bundle_discount(
    fees: Dict[str, FeeResult], inp: PricingInput, config: PricingConfig
) -> Dict[str, FeeResult]:
    """Discount bookkeeping monthly when bookkeeping and TaaS are both included.

    Only bookkeeping is discounted. Its setup fee is unaffected (it was
    computed from the pre-discount monthly fee).
    """
    bookkeeping = fees["bookkeeping"]
    if not bundle_applies(inp, config) or bookkeeping.monthly_fee <= 0:
        return fees

    percentage = config.discounts.bundle_percentage
    before = bookkeeping.monthly_fee
    discounted = to_cents(before * (1 - percentage))

    breakdown = dict(bookkeeping.breakdown)
    breakdown.update({
        "monthly_fee_before_discount": before,
        "discount_percentage": percentage,
        "discount_applied": to_cents(before - discounted),
    })

    updated = dict(fees)
    updated["bookkeeping"] = bookkeeping.model_copy(
        update={"monthly_fee": discounted, "breakdown": breakdown}
    )
    return updated


def _run_calculators(inp: PricingInput, config: PricingConfig, as_of: date) -> Dict[str, FeeResult]:
    fees = {}
    for key in SERVICE_KEYS:
        calculator = SERVICE_CALCULATORS[key]
        try:
            result = calculator(inp, config, as_of)
        except Exception:
            logger.exception(f"{key}: calculation failed, pricing service at 0")
            result = FeeResult.zero()
        fees[key] = _sanitize(key, result)
    return fees


def compute_quote(
    raw_input: Union[Mapping, PricingInput],
    config: Union[PricingConfig, Mapping],
    as_of: Optional[date] = None,
) -> FeeBreakdown:
    """Price a quote form.

    Args:
        raw_input: Form snapshot (any field names the normalizer knows) or
                   a PricingInput
        config: PricingConfig, or a mapping to validate as one. Pass
                PricingConfig() for the standard rates.
        as_of: Date for calendar-dependent rules (setup fee month, cleanup
               year exclusion). Defaults to today.

    Returns:
        FeeBreakdown. Never raises for bad values; returns the zero
        breakdown if the quote cannot be computed.

    Raises:
        TypeError: If raw_input or config has the wrong shape entirely
    """
    if not isinstance(raw_input, (Mapping, PricingInput)):
        raise TypeError(f"Quote input must be a mapping, got {type(raw_input).__name__}")
    as_of = as_of or date.today()

    try:
        pricing = _resolve_config(config)
    except ValidationError as e:
        logger.warning(f"Invalid pricing config, returning zero quote: {e}")
        return FeeBreakdown.zero(as_of)

    try:
        inp = normalize_input(raw_input)
        fees = apply_bundle_discount(_run_calculators(inp, pricing, as_of), inp, pricing)

        monthly = sum(fee.monthly_fee for fee in fees.values())
        setup = sum(fee.setup_fee for fee in fees.values())
        combined = CombinedFees(
            monthly_fee=round_up_to_step(monthly, pricing.rounding.monthly_step),
            setup_fee=to_cents(setup),
            monthly_fee_before_rounding=to_cents(monthly),
        )

        includes = service_includes(inp)
        logger.debug(
            f"quote: monthly {combined.monthly_fee} (before rounding {combined.monthly_fee_before_rounding}), "
            f"setup {combined.setup_fee}"
        )
        return FeeBreakdown(
            **fees,
            combined=combined,
            includes_bookkeeping=includes["bookkeeping"] or includes["cleanup"],
            includes_taas=includes["taas"] or includes["prior_year_filings"],
            includes=includes,
            as_of=as_of,
        )
    except Exception:
        logger.exception("Quote calculation failed, returning zero quote")
        return FeeBreakdown.zero(as_of)
