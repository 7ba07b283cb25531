"""
Domain Exceptions

Every exception raised by the service layer carries the HTTP status it maps
to. The FastAPI handlers in ``foodhub.main`` turn them into ``{"error": ...}``
responses.
"""

__all__ = [
    "FoodHubError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ConflictError",
    "InvalidTransitionError",
]


class FoodHubError(Exception):
    """Base class for all handled application errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FoodHubError):
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id) -> "NotFoundError":
        return cls(f"{entity} #{entity_id} not found")


class ValidationError(FoodHubError):
    status_code = 400


class AuthenticationError(FoodHubError):
    status_code = 401


class PermissionDeniedError(FoodHubError):
    status_code = 403


class ConflictError(FoodHubError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    """Requested status change is not in the transition table."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move order from '{current}' to '{target}'")
        self.current = current
        self.target = target
