"""Adaptive h- and p-cubature of vector-valued integrands over boxes."""

__version__ = "1.0.3"