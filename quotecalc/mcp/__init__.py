"""Quote Calc MCP server."""
