"""Fractal - break huge goals into tiny first steps."""

__version__ = "0.1.0"
