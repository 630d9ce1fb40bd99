"""Reusable export libraries."""
