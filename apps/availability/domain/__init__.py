"""Availability domain types and pure conflict rules."""
