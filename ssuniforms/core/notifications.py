"""
User-visible notifications raised by the stores.

Stores collect notifications while they work; API views hand them back to
the client alongside the result so the UI can show them as toasts.
"""

DEFAULT = 'default'
DESTRUCTIVE = 'destructive'


class Notifier:
    """Collects toast-style notifications for one unit of work"""

    def __init__(self):
        self.notifications = []

    def notify(self, title, description, variant=DEFAULT):
        self.notifications.append({
            'title': title,
            'description': description,
            'variant': variant,
        })

    def success(self, title, description):
        self.notify(title, description)

    def error(self, title, description):
        self.notify(title, description, variant=DESTRUCTIVE)

    def drain(self):
        """Return and forget everything collected so far"""
        notifications, self.notifications = self.notifications, []
        return notifications

    @property
    def has_errors(self):
        return any(n['variant'] == DESTRUCTIVE for n in self.notifications)
