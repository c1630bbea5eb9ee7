"""Route modules for the Eco Monitor API."""
from . import alerts

__all__ = ["alerts"]
