"""Shared utilities for Church Admin."""
