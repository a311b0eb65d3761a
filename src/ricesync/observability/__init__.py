"""ricesync observability helpers."""
