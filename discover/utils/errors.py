"""Custom exception types for consistent error handling."""


class FirestoreUnavailableError(Exception):
    """Raised when Firestore queries fail or are unavailable."""


class InvalidInputError(Exception):
    """Raised when request input validation fails.

    ``code`` is the machine-readable error code returned to API clients.
    """

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code)
        self.code = code


class DeadlineExceededError(TimeoutError):
    """Raised when a browse request runs past its deadline."""
