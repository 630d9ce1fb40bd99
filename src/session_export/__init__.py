"""Tenant gameplay-session export pipeline."""

__version__ = "0.1.0"
