"""Configuration, dependencies and error types."""
