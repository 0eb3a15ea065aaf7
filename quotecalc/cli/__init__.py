"""Quote Calc CLI."""
