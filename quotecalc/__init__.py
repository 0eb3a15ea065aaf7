"""Quote Calc - combined service-fee pricing for accounting service quotes."""

__version__ = "0.1.0"
