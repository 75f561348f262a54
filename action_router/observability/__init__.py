"""Structured router events."""
