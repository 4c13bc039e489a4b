"""
Exceptions raised by the review engine
"""


class ReviewError(Exception):
    """Base exception for the review engine."""
    pass


class UnauthenticatedError(ReviewError):
    """Raised when a mutation is attempted without a resolvable learner."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(ReviewError):
    """Raised when a session, item or card is missing or owned by someone else."""

    def __init__(self, resource: str, resource_id):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found or unauthorized")


class InvalidStateError(ReviewError):
    """Raised when a session or item is not in a state that allows the operation."""
    pass


class InvalidQualityError(ReviewError, ValueError):
    """Raised when a recall grade is not an integer between 0 and 5."""
    pass


class SessionLockedError(ReviewError):
    """Raised when another session start holds the learner/language lock."""
    pass
