"""Eco Monitor alerting backend."""
