"""Physiological signal simulation engine and its HTTP surface."""

__version__ = "0.1.0"
