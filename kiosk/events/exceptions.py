class NoSuchEventError(AttributeError):
    """Raised when an event is not part of any of the hub's event lists."""


class NoSuchListenerError(ValueError):
    """Raised when unsubscribing a handler that was never subscribed."""


class InvalidHandlerError(TypeError):
    """Raised when a handler cannot accept the arguments of the event it subscribes to."""
