"""Service layer for alert lifecycle, queries and maintenance jobs."""
