"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class NestingLimitExceededError(DomainError):
    """Raised when a reply would nest deeper than the configured maximum."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(f"Maximum nesting depth of {max_depth} reached")


class ConflictError(DomainError):
    """Raised by storage when a write violates a uniqueness constraint."""

    pass


class StorageError(DomainError):
    """Raised when a storage transaction fails and nothing was applied."""

    pass
