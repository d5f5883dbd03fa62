"""Repository for the notification outbox."""
from __future__ import annotations

from app.db.models import NotificationOutbox

from .base import CompanyScopedRepository


class NotificationRepository(CompanyScopedRepository[NotificationOutbox]):
    """Outbox writes."""

    model = NotificationOutbox
