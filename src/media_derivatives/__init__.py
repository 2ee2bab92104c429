"""Event-triggered media derivative generator."""

__version__ = "0.1.0"
