"""
SwingEats — Error taxonomy

ValidationError    → rejected before any write (HTTP 400)
NotFound           → id does not resolve (HTTP 404)
InvalidTransition  → row exists but its status forbids the move (HTTP 409)
TransientStoreError → database connectivity failure, the only retried class (HTTP 503)
"""


class SwingEatsError(Exception):
    """Base class for errors raised by the order engine and its store."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SwingEatsError):
    status_code = 400


class NotFound(SwingEatsError):
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found.")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransition(SwingEatsError):
    status_code = 409

    def __init__(self, entity: str, entity_id, current: str | None, target: str):
        super().__init__(
            f"Cannot move {entity} {entity_id} from '{current}' to '{target}'."
        )
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.target = target


class TransientStoreError(SwingEatsError):
    status_code = 503
