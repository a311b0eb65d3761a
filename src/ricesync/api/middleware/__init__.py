"""ricesync API middleware."""
