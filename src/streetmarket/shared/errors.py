"""Error taxonomy for StreetMarket.

Domain errors extend Protean's exception hierarchy so that handlers which
already deal with ``ValidationError`` and ``ObjectNotFoundError`` keep
working. Each error carries a Protean-style messages dict,
``{"field": ["message", ...]}``.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class NotLoggedInError(ValidationError):
    """An action needs an active (customer) session and there is none."""


class EmptyCartError(ValidationError):
    """Checkout was attempted on a cart without lines."""


class NotFoundError(ObjectNotFoundError):
    """A vendor, product, order or user id does not resolve."""


class InvalidTransitionError(ValidationError):
    """An order status change is not allowed from the current status."""


class LocationUnavailableError(ValidationError):
    """A location-based action has no usable coordinate to work with."""


class ForbiddenActionError(ValidationError):
    """The active user is not the one allowed to perform this action."""


class PersistenceError(Exception):
    """The snapshot store could not be read or written."""


def not_found(kind: str, identifier) -> NotFoundError:
    """Build a ``NotFoundError`` for a ``kind`` such as ``"vendor"``."""
    return NotFoundError({f"{kind}_id": [f"{kind.capitalize()} {identifier} not found"]})


def describe(exc: Exception) -> str:
    """Flatten an exception into a one-line, user-facing message."""
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        parts = []
        for value in messages.values():
            if isinstance(value, (list, tuple)):
                parts.extend(str(v) for v in value)
            else:
                parts.append(str(value))
        if parts:
            return "; ".join(parts)
    return str(exc) or exc.__class__.__name__
