"""Tenant control plane service."""

__version__ = "0.1.0"
