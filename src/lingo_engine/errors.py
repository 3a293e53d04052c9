"""Exception types raised by the engine."""


class LingoEngineError(Exception):
    """Base class for engine errors."""


class ContentNotFound(LingoEngineError):
    """A language, skill or vocabulary key could not be resolved.

    Always recovered inside the content layer by falling back to default
    content; callers never see it.
    """


class PersistenceError(LingoEngineError):
    """A store failed to read or write a record."""


class ProgressUpdateFailed(LingoEngineError):
    """The primary progress record could not be read or written.

    Args:
        reason: Human-readable description of what went wrong.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
