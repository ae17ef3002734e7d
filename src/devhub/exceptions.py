"""Exception hierarchy for device and connection management."""

from __future__ import annotations


class DevhubError(Exception):
    """Base exception for all devhub errors."""


class NotFoundError(DevhubError):
    """An operation referenced an unknown device or endpoint id."""

    def __init__(self, kind: str, entity_id: int) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class ValidationError(DevhubError):
    """Malformed name, host, port or field value."""


class InvalidNameError(ValidationError):
    """A display name was empty after trimming."""


class InvalidStateError(DevhubError):
    """The operation is not allowed in the entity's current state."""


class TransportError(DevhubError):
    """The device driver or software transport failed."""
