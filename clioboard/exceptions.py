class NotFoundError(Exception):
    """Raised when a referenced task, list item, note or routine does not exist."""


class InvalidTransitionError(Exception):
    """Raised when a mutation is not allowed from the entity's current state."""


class ValidationFailedError(Exception):
    """Raised when a payload is well-formed JSON but not an acceptable change."""


class StoreError(Exception):
    """Raised when a store transaction could not commit. The transaction is rolled back."""


class AuthenticationError(Exception):
    """Raised when an agent key is presented but does not match."""
