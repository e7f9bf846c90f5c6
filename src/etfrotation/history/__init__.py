"""Rolling price history."""
