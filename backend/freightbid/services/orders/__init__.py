"""Order services."""
