"""Quest script interpreter package."""
