"""Socket.IO push channel and notifications."""

from .gateway import RealtimeGateway
from .notifications import NotificationService, PendingPush

__all__ = ["NotificationService", "PendingPush", "RealtimeGateway"]
