"""Billable line items for a computed quote.

Downstream systems (CRM deals, invoices) bill in line items rather than per
service. Each non-zero fee becomes one LineItem; bookkeeping yields two (the
monthly fee and the setup fee). Product ids come from PricingConfig.products,
keyed by line item key.
"""

import logging
from typing import List, Optional

from ..schemas import FeeBreakdown, LineItem, PricingConfig

logger = logging.getLogger(__name__)

# (line item key, display name, service, fee field, recurring)
LINE_ITEM_SPECS = (
    ("monthly_bookkeeping", "Monthly Bookkeeping", "bookkeeping", "monthly_fee", True),
    ("taas", "TaaS Monthly", "taas", "monthly_fee", True),
    ("monthly_bookkeeping_setup", "Monthly Bookkeeping Setup Fee", "bookkeeping", "setup_fee", False),
    ("cleanup_project", "Clean-Up / Catch-Up Project", "cleanup", "setup_fee", False),
    ("prior_year_filings", "Prior Year Filings", "prior_year_filings", "setup_fee", False),
    ("payroll_service", "Payroll Service", "payroll", "monthly_fee", True),
    ("agent_of_service", "Agent of Service", "agent_of_service", "setup_fee", False),
    ("cfo_advisory_deposit", "CFO Advisory Deposit", "cfo_advisory", "setup_fee", False),
    ("managed_qbo_subscription", "Managed QBO Subscription", "qbo", "monthly_fee", True),
)


def _payables_item(breakdown: FeeBreakdown, service: str) -> Optional[LineItem]:
    fee = breakdown.service(service)
    if fee.monthly_fee <= 0:
        return None
    tier = "advanced" if fee.breakdown.get("tier") == "advanced" else "lite"
    return LineItem(
        key=f"{service}_{tier}_service",
        name=f"{service.upper()} {tier.title()} Service",
        price=fee.monthly_fee,
        recurring=True,
    )


def _service_tier_item(breakdown: FeeBreakdown) -> Optional[LineItem]:
    fee = breakdown.service_tier
    if fee.monthly_fee <= 0:
        return None
    tier = fee.breakdown.get("tier") or "Service"
    return LineItem(key="service_tier", name=f"{tier} Service Tier", price=fee.monthly_fee, recurring=True)


def build_line_items(breakdown: FeeBreakdown, config: Optional[PricingConfig] = None) -> List[LineItem]:
    """Map a FeeBreakdown to billable line items.

    Args:
        breakdown: Result of compute_quote()
        config: Source of product ids; defaults leave product_id None

    Returns:
        Line items with price > 0, monthly items first
    """
    config = config or PricingConfig()
    items: List[LineItem] = []

    for key, name, service, field, recurring in LINE_ITEM_SPECS:
        price = getattr(breakdown.service(service), field)
        if price > 0:
            items.append(LineItem(key=key, name=name, price=price, recurring=recurring))

    for extra in (
        _payables_item(breakdown, "ap"),
        _payables_item(breakdown, "ar"),
        _service_tier_item(breakdown),
    ):
        if extra is not None:
            items.append(extra)

    items = [item.model_copy(update={"product_id": config.products.get(item.key)}) for item in items]
    missing = [item.key for item in items if item.product_id is None]
    if config.products and missing:
        logger.warning(f"No product id configured for: {', '.join(missing)}")

    # Stable sort keeps table order within each group
    return sorted(items, key=lambda item: not item.recurring)
