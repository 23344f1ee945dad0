"""Custom exceptions for world generation."""


class WorldGenError(Exception):
    """Base exception for world generation errors."""

    pass


class InvalidInputError(WorldGenError):
    """Raised when world dimensions are not positive integers."""

    pass
