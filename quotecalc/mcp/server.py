"""Quote Calc MCP Server - FastMCP implementation for quote pricing tools."""

import logging
from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from quotecalc.sdk import build_line_items, compute_quote, load_pricing_config

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("quote-calc")


def _parse_date(as_of: str | None) -> date | None:
    return date.fromisoformat(as_of) if as_of else None


# --- Tools ---

@mcp.tool(name="compute_quote")
async def compute_quote_tool(
    form: dict[str, Any] = Field(description="Quote form fields, e.g. {'serviceBookkeeping': true, 'monthlyTransactions': '100-300'}. camelCase, legacy and snake_case names are accepted."),
    as_of: str | None = Field(default=None, description="Quote date YYYY-MM-DD for setup fee and cleanup rules (default: today)"),
) -> dict[str, Any]:
    """Price a quote form with the configured rates. Returns per-service fees with their breakdowns and the combined monthly and one-time totals."""
    try:
        pricing = load_pricing_config()
        breakdown = compute_quote(form, pricing, as_of=_parse_date(as_of))
        return breakdown.to_dict()

    except Exception as e:
        logger.error(f"Error computing quote: {e}")
        return {"error": str(e)}


@mcp.tool()
async def get_pricing_config() -> dict[str, Any]:
    """Get the effective rate table (standard rates plus any pricing.yaml overrides)."""
    try:
        return load_pricing_config().model_dump(mode="json")

    except Exception as e:
        logger.error(f"Error loading pricing config: {e}")
        return {"error": str(e)}


@mcp.tool()
async def quote_line_items(
    form: dict[str, Any] = Field(description="Quote form fields (same as compute_quote)"),
    as_of: str | None = Field(default=None, description="Quote date YYYY-MM-DD (default: today)"),
) -> dict[str, Any]:
    """Price a quote form and return its billable line items (monthly first) with totals."""
    try:
        pricing = load_pricing_config()
        breakdown = compute_quote(form, pricing, as_of=_parse_date(as_of))
        items = build_line_items(breakdown, pricing)
        return {
            "lineItems": [item.model_dump(mode="json", by_alias=True) for item in items],
            "count": len(items),
            "combined": breakdown.combined.model_dump(mode="json", by_alias=True),
        }

    except Exception as e:
        logger.error(f"Error building line items: {e}")
        return {"error": str(e), "lineItems": [], "count": 0}


def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
