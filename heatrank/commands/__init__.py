"""Command implementations behind the heatrank CLI."""
