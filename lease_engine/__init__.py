"""IFRS 16 lease calculation engine."""

__version__ = "0.1.0"
