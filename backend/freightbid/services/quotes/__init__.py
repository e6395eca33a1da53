"""Quote services."""
