"""HTTP API for the analytics engine."""
