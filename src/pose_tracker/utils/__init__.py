"""Shared utilities: compute device detection."""
