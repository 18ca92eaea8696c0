"""Infrastructure layer: constants and cluster access."""
