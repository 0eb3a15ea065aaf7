"""Rich renderer for computed quotes.

Transforms SDK output (FeeBreakdown.to_dict(by_alias=False)) into formatted
Rich tables. Formulas are rebuilt from breakdown values only; nothing here
recomputes a fee.
"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

SERVICE_LABELS = {
    "bookkeeping": "Monthly Bookkeeping",
    "cleanup": "Cleanup Project",
    "taas": "Tax as a Service",
    "prior_year_filings": "Prior Year Filings",
    "payroll": "Payroll",
    "ap": "Accounts Payable",
    "ar": "Accounts Receivable",
    "agent_of_service": "Agent of Service",
    "cfo_advisory": "CFO Advisory",
    "service_tier": "Service Tier",
    "qbo": "Managed QBO",
}


def render_quote(console: Console, data: dict, line_items: Optional[List[dict]] = None) -> None:
    """Render a quote as Rich tables.

    Args:
        console: Rich Console instance
        data: FeeBreakdown.to_dict(by_alias=False)
        line_items: Optional LineItem dicts to list below the quote
    """
    if "error" in data:
        console.print(Panel(f"[red]{data['error']}[/red]", title="Error", border_style="red"))
        return

    combined = data.get("combined", {})
    as_of = data.get("as_of") or "?"

    table = Table(title=f"Quote (as of {as_of})", box=box.ROUNDED)
    table.add_column("Service", style="bold", min_width=22)
    table.add_column("Monthly", justify="right", min_width=10)
    table.add_column("One-time", justify="right", min_width=10)
    table.add_column("Formula", style="dim")

    for key, label in SERVICE_LABELS.items():
        fee = data.get(key) or {}
        if not fee.get("monthly_fee") and not fee.get("setup_fee"):
            continue
        table.add_row(label, _fmt(fee.get("monthly_fee")), _fmt(fee.get("setup_fee")), describe_formula(key, fee))

    table.add_row("", "", "", "")
    before = combined.get("monthly_fee_before_rounding", 0)
    table.add_row(
        "[bold green]TOTAL[/bold green]",
        f"[bold green]{_fmt(combined.get('monthly_fee'))}[/bold green]",
        f"[bold green]{_fmt(combined.get('setup_fee'))}[/bold green]",
        f"monthly rounded up from {_fmt(before)}" if before != combined.get("monthly_fee") else "",
    )
    console.print(table)

    if not combined.get("monthly_fee") and not combined.get("setup_fee"):
        console.print(Panel(
            "[yellow]No services priced. Check the service flags in the input.[/yellow]",
            title="Note",
            border_style="yellow",
        ))

    if line_items:
        _render_line_items(console, line_items)


def _render_line_items(console: Console, line_items: List[dict]) -> None:
    table = Table(title="Line Items", box=box.SIMPLE)
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Billing")
    table.add_column("Product", style="dim")

    for item in line_items:
        table.add_row(
            item["key"],
            item["name"],
            _fmt(item["price"]),
            "monthly" if item["recurring"] else "one-time",
            item.get("product_id") or "-",
        )
    console.print(table)


def describe_formula(service: str, fee: dict) -> str:
    """Show-your-work text for one service, built from its breakdown.

    Args:
        service: Service key (e.g. "bookkeeping")
        fee: FeeResult as a snake_case dict

    Returns:
        Formula string, or "" when the service was not priced
    """
    b = fee.get("breakdown") or {}
    if not b:
        return ""

    if service == "bookkeeping":
        text = (
            f"({_fmt(b['base_fee'])} + {_fmt(b['transaction_surcharge'])} transactions)"
            f" x {b['revenue_multiplier']} revenue{_fallback(b['revenue'])}"
            f" x {b['industry_multiplier']} industry{_fallback(b['industry'])}"
        )
        if "discount_percentage" in b:
            text += f" - {b['discount_percentage']:.0%} bundle discount"
        if b.get("setup_source") == "calculated":
            text += f"; setup = {_fmt(b['monthly_fee_before_discount'])} x {b['current_month']} months x {b['setup_multiplier']}"
        elif b.get("setup_source") == "custom":
            reason = b.get("override_reason")
            text += f"; custom setup fee{f' ({reason})' if reason else ''}"
        elif b.get("setup_source") == "waived":
            text += "; setup waived (already on bookkeeping)"
        return text

    if service == "cleanup":
        text = f"{b['billable_months']} months x {_fmt(b['per_period'])}"
        if b.get("excluded_periods"):
            text += f" ({len(b['excluded_periods'])} current-year months covered by setup)"
        return text

    if service == "taas":
        upcharges = (
            b["entity_upcharge"] + b["state_upcharge"] + b["international_upcharge"]
            + b["owner_upcharge"] + b["quality_upcharge"] + b["personal_1040_upcharge"]
        )
        return (
            f"({_fmt(b['base_fee'])} + {_fmt(upcharges)} upcharges)"
            f" x {b['industry_multiplier']} industry x {b['revenue_multiplier']} revenue"
        )

    if service == "prior_year_filings":
        return f"{len(b['years'])} years x {_fmt(b['per_year'])}"

    if service == "payroll":
        return (
            f"{_fmt(b['base_fee'])} + {_fmt(b['employee_fee'])} for {b['additional_employees']} extra employees"
            f" + {_fmt(b['state_fee'])} for {b['additional_states']} extra states"
        )

    if service in ("ap", "ar"):
        return (
            f"({_fmt(b['base_fee'])} + {_fmt(b['volume_surcharge'])} volume"
            f" + {_fmt(b['count_surcharge'])} for {b['count']} payees)"
            f" x {b['tier_multiplier']} {b['tier']}{'' if b['tier_matched'] else ' (fallback)'}"
        )

    if service == "agent_of_service":
        return (
            f"{_fmt(b['base_fee'])} + {_fmt(b['state_fee'])} for {b['additional_states']} additional states"
            f" + {_fmt(b['complex_case_fee'])} complex case"
        )

    if service == "cfo_advisory":
        if not b.get("matched"):
            return "no matching advisory option"
        return f"{b['hours']} hours x {_fmt(b['hourly_rate'])}"

    if service == "service_tier":
        return f"{b['tier']} tier"

    if service == "qbo":
        return "flat monthly subscription"

    return ""


def _fallback(band: dict) -> str:
    return "" if band.get("matched") else " (fallback)"


def _fmt(amount: Optional[float]) -> str:
    """Format currency amount."""
    if amount is None:
        return "-"
    return f"${amount:,.2f}"
