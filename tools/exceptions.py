"""
Custom exceptions for the School Gradebook.

Authorization refusals inside the core are silent no-ops, so only the HTTP
layer raises the authorization errors below.
"""


class AuthorizationError(Exception):
    """Raised by the API when a request cannot be attributed to a permitted user."""

    def __init__(self, message: str, user_id: str = None, action: str = None):
        self.message = message
        self.user_id = user_id
        self.action = action
        super().__init__(self.message)


class NotAuthenticatedError(AuthorizationError):
    """Raised when an operation needs a logged-in user and there is none."""

    def __init__(self, action: str = None):
        super().__init__("Not logged in", action=action)


class EntityNotFoundError(Exception):
    """Raised when a referenced entity does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} with id {entity_id} not found")


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class ClassInUseError(Exception):
    """Raised when deleting a class that students, lessons or homework still reference."""

    def __init__(self, class_id: str, references: dict):
        self.class_id = class_id
        self.references = references
        details = ", ".join(f"{count} {kind}" for kind, count in references.items() if count)
        super().__init__(f"Class {class_id} is still referenced by {details}")


class FeatureNotAvailableError(Exception):
    """Raised when attempting to use a feature that doesn't exist."""

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"Feature not available: {feature}")


def require_text(value, field: str, label: str) -> str:
    """
    Presence check for a required text field.

    Returns:
        The value with surrounding whitespace stripped

    Raises:
        ValidationError: If the value is missing or blank
    """
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required", field)
    return str(value).strip()
