"""Domain errors raised by services and translated to HTTP responses by the routes."""


class ProgressError(Exception):
    """A progress action violates a domain rule (e.g. completing a draft quest)."""


class QuestNotFound(LookupError):
    pass


class NotificationNotFound(LookupError):
    pass
