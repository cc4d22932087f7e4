from __future__ import annotations


class WorkflowError(RuntimeError):
    """Base error for ticket workflow failures."""


class NotFoundError(WorkflowError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str | None = None, *, message: str | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} {entity_id} not found")


class InvalidActorError(WorkflowError):
    """Raised when a referenced user exists but is not active."""

    def __init__(self, role: str, user_id: str) -> None:
        self.role = role
        self.user_id = user_id
        super().__init__(f"{role} {user_id} is not an active user")


class ConflictError(WorkflowError):
    """Raised when a write would violate a uniqueness rule.

    `existing_id` identifies the record already holding the slot, when known.
    """

    def __init__(self, message: str, *, existing_id: str | None = None) -> None:
        self.existing_id = existing_id
        super().__init__(message)


class InvalidTransitionError(ConflictError):
    """Raised when the ticket's status does not allow the requested transition."""


class ValidationError(WorkflowError):
    """Raised when a command is missing a required field."""


class TransactionFailure(WorkflowError):
    """Raised when the datastore fails while the transaction is open or committing."""


class NotificationFailure(WorkflowError):
    """Raised by dispatchers; logged by the engine and never surfaced to callers."""
