"""Shared contracts and errors."""
