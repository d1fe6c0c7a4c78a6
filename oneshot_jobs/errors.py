"""Exception types for the one-shot jobs library."""


class OneShotJobsError(Exception):
    """Base exception for all one-shot jobs errors."""

    pass


class SchedulerUnavailableError(OneShotJobsError):
    """Raised when the recurring scheduler or its job store cannot be reached."""

    pass


class DuplicateIdentifierError(OneShotJobsError):
    """Raised when a descriptor with the same identifier already exists."""

    def __init__(self, identifier: str, message: str = None):
        self.identifier = identifier
        if message is None:
            message = f"Job {identifier} is already scheduled"
        super().__init__(message)


class IdentifierNotFoundError(OneShotJobsError):
    """Raised when no descriptor exists for an identifier."""

    def __init__(self, identifier: str, message: str = None):
        self.identifier = identifier
        if message is None:
            message = f"Job {identifier} not found"
        super().__init__(message)
