"""Health gate for the analytics dashboard service stack."""

__version__ = "0.1.0"
