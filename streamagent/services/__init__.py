"""Agent services."""
