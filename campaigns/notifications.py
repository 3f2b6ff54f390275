# campaigns/notifications.py
"""
User-facing notifications (toasts) raised by the campaign wizard.
"""

import logging

from django.contrib import messages

logger = logging.getLogger(__name__)


class Notifier:
    """Collects notifications in memory; subclasses forward them somewhere"""

    def __init__(self):
        self.notifications = []

    def notify(self, level, message):
        self.notifications.append((level, message))

    def info(self, message):
        self.notify('info', message)

    def success(self, message):
        self.notify('success', message)

    def warning(self, message):
        self.notify('warning', message)

    def error(self, message):
        self.notify('error', message)


class MessagesNotifier(Notifier):
    """Forwards notifications to django.contrib.messages for the request"""

    LEVELS = {
        'info': messages.INFO,
        'success': messages.SUCCESS,
        'warning': messages.WARNING,
        'error': messages.ERROR,
    }

    def __init__(self, request):
        super().__init__()
        self.request = request

    def notify(self, level, message):
        super().notify(level, message)
        try:
            messages.add_message(self.request, self.LEVELS[level], message)
        except messages.MessageFailure as e:
            logger.warning(f"Could not queue message '{message}': {e}")
