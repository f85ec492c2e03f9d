"""Adapters binding domain ports to external systems."""
