"""I/O layer: connectors to external services."""
