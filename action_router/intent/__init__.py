"""Intent resolution: prompt construction and envelope parsing."""
