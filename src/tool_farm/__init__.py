"""Tool Farm - farm automation with a self-updating launcher."""

__version__ = "1.0.0"
