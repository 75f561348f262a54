"""Entry adapters."""
