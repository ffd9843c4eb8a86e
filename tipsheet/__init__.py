"""Tipsheet: consensus betting strategies from profitable actors' histories."""

__version__ = "0.1.0"
