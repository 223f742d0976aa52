"""Exception types raised by the anchor engine."""


class AnchorsError(Exception):
    """Base class for anchor engine errors."""


class ConfigError(AnchorsError):
    """Configuration cannot produce a usable matcher."""


class ParseError(AnchorsError):
    """A document could not be turned into an anchor index."""
