"""Per-instrument factor computation."""
