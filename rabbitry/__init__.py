"""Record keeping for a rabbit farm."""

__version__ = "0.1.0"
