"""Chat completion client."""
