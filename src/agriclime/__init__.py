"""Atmospheric analytics engine for the AgriClime dashboard."""

__version__ = "0.1.0"
