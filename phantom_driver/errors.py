"""
Phantom Driver Exceptions

Every failure raised by the route store, discovery and the joystick engine
derives from PhantomRouteError so callers (the console in particular) can
report them uniformly.
"""


class PhantomRouteError(Exception):
    """Base exception for phantom route errors."""
    pass


class RouteNotFoundError(PhantomRouteError):
    """Route name is not registered, or the route file does not exist."""
    pass


class RouteDecodeError(PhantomRouteError):
    """Route file content does not match the route document shape."""
    pass


class RouteIOError(PhantomRouteError):
    """Reading, writing or deleting a route file failed."""
    pass


class InvalidStateError(PhantomRouteError):
    """Operation is not allowed in the current engine or route state."""
    pass


class InvalidArgumentError(PhantomRouteError, ValueError):
    """Argument is outside the accepted domain."""
    pass


class ChannelIndexError(InvalidArgumentError, IndexError):
    """Analog or digital channel index out of range."""
    pass


class DuplicateRouteError(InvalidArgumentError):
    """Canonical route name is already registered."""
    pass
