"""Prometheus exporter for Sense energy monitors."""

__version__ = "0.1.0"
