"""Order domain exceptions."""

from freightbid.services.exceptions import ForbiddenError, InvalidStateError, NotFoundError


class OrderNotFound(NotFoundError):
    """Order not found."""

    pass


class NotOrderOwner(ForbiddenError):
    """Caller does not own the order."""

    default_message = "Only the order owner may do this"


class OrderNotActive(InvalidStateError):
    """Order is closed or cancelled."""

    default_message = "Order is no longer open for changes"
