"""Connectors to remote services."""
