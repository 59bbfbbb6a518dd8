"""Mission Control: integration health tracking for an agent fleet."""

__version__ = "0.1.0"
