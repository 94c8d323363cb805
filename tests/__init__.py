"""Test package for sense_exporter."""
