"""Meeting intelligence worker: paste notes, get a structured report."""

__version__ = "1.2.0"
