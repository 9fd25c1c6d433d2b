"""Shared helpers for Daybook."""
