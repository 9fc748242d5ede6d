"""Exceptions raised by the firefighter arena."""


class FirefighterError(Exception):
    """Base class for arena errors."""


class FireStateError(FirefighterError, RuntimeError):
    """A fire was used in a state that does not support the operation."""


class FireLookupError(FirefighterError, KeyError):
    """A collider id was never registered with the fire field."""


class SceneError(FirefighterError, ValueError):
    """Invalid edit of the scene hierarchy."""
