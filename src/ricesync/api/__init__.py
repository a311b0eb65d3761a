"""ricesync HTTP surface: application factory, health and error handling."""
