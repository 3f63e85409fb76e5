from src.notifications.dispatcher import NotificationDispatcher

__all__ = ["NotificationDispatcher"]
