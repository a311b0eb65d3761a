"""ricesync API routes."""
