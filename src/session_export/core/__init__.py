"""Core configuration, logging, security, queueing, and wiring."""
