"""Gauge registry and Prometheus rendering."""
