"""Business errors raised by the tracker."""


class TrackerError(Exception):
    """Base class for tracker business errors."""


class NotAuthenticatedError(TrackerError):
    """Raised when data is changed without a guest or signed-in session."""

    def __init__(self, message: str = "Sign in or continue as guest first") -> None:
        super().__init__(message)


class NotFoundError(TrackerError):
    """Raised when an edit targets a record that does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id
