"""Quote selection."""
