"""Database package exposing the declarative base and ledger ORM models."""

from .base import Base, TimestampMixin, utcnow
from . import models

__all__ = ["Base", "TimestampMixin", "utcnow", "models"]
