"""Quote domain exceptions."""

from freightbid.services.exceptions import ConflictError, ForbiddenError, InvalidStateError, NotFoundError


class QuoteNotFound(NotFoundError):
    """Quote not found."""

    pass


class ProviderNotActive(ForbiddenError):
    """Provider is unknown or not allowed to quote."""

    default_message = "Provider is not active"


class QuoteNotActive(InvalidStateError):
    """Quote was already selected or expired."""

    default_message = "Quote is no longer active"


class QuoteChanged(ConflictError):
    """Quote's provider or price differs from what the caller saw."""

    default_message = "Quote changed since it was read"
