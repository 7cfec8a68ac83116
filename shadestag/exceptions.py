"""Exception classes for ShadeStag."""


class ShadeStagError(Exception):
    """Base exception for ShadeStag errors."""

    pass


class ImageDecodeError(ShadeStagError):
    """Raised when source bytes cannot be decoded into a pixel buffer."""

    pass


class ImageEncodeError(ShadeStagError):
    """Raised when a pixel buffer cannot be encoded for the cache."""

    pass


class DirectiveSyntaxError(ShadeStagError):
    """Raised for a malformed directive, the parser skips the directive."""

    pass
