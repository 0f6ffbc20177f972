"""Upstream data acquisition and synthetic fallback generators."""
