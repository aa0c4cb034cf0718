"""Logging and audit helpers."""
