"""Error types raised by the retrieval engine."""


class RetrievalError(Exception):
    """Base error for knowledge-pack retrieval."""


class LoadError(RetrievalError):
    """Knowledge pack could not be loaded (missing or unreadable facts file)."""


class NotReadyError(RetrievalError):
    """Retrieval attempted before a successful load."""

    def __init__(self, message: str = "Knowledge pack not loaded; call load() first"):
        super().__init__(message)


class BudgetError(RetrievalError, ValueError):
    """Caps are too small to hold even an empty facts pack."""
