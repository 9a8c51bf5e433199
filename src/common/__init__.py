"""Helpers shared across the converter."""
