"""Domain Exceptions

Rule violations subclass ``ValueError`` so callers can keep treating them as
bad input (HTTP 400). Lookup, concurrency and storage failures do not, and are
mapped to their own status codes by the API layer.
"""


class DomainError(Exception):
    """Base class for all booking domain errors"""


class BusinessRuleViolation(DomainError, ValueError):
    """A request broke a domain rule; nothing was written"""


class InvalidDateRangeError(BusinessRuleViolation):
    def __init__(self, message: str = "Check-out date must be after check-in date"):
        super().__init__(message)


class RoomUnavailableError(BusinessRuleViolation):
    def __init__(self, message: str = "Room is not available for the selected dates"):
        super().__init__(message)


class InvalidAmountError(BusinessRuleViolation):
    def __init__(self, message: str = "Payment amount must be greater than 0"):
        super().__init__(message)


class ExceedsBalanceError(BusinessRuleViolation):
    def __init__(self, message: str = "Payment amount exceeds outstanding balance"):
        super().__init__(message)


class InvalidTransitionError(BusinessRuleViolation):
    """Disallowed state transition (e.g. deleting a checked-in booking)"""


class DuplicateEntityError(BusinessRuleViolation):
    """Unique field already taken"""


class EntityNotFoundError(DomainError):
    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ConcurrentModificationError(DomainError):
    """Stored version changed between read and write"""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} was modified by another request, reload and retry")


class StorageUnavailableError(DomainError):
    """Transient storage failure; the caller may retry"""
