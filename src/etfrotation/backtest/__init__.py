"""Historical replay of the rotation engine."""
