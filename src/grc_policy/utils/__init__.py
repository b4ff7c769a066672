"""Shared utilities for grc-policy."""
