"""REST endpoint routers exposed by the API."""
from . import companies, grni

__all__ = [
    "companies",
    "grni",
]
