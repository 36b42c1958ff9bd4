"""QueryPilot: natural-language query plans compiled to PostgreSQL."""

__version__ = "0.1.0"
