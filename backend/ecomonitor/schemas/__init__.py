"""Pydantic schemas exchanged with the HTTP layer and service callers."""
