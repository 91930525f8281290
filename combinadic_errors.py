"""
Exceptions raised by the combinadic encoder and decoder.

Every exception also derives from the matching builtin, so callers that only
know about ``ValueError`` or ``OverflowError`` keep working.
"""


class CombinadicError(Exception):
    """Base class for exceptions in the combinadic ranking."""
    pass


class InvalidInputError(CombinadicError, ValueError):
    """Raised when a tuple is not a strictly increasing sequence of naturals,
    or when a width is not an integer dtype.
    """
    pass


class DimensionMismatchError(InvalidInputError):
    """Raised when the dimension k is zero (or not an integer),
    or when a tuple does not have the expected length.
    """
    pass


class InvalidRankError(CombinadicError, ValueError):
    """Raised when no tuple of the requested dimension encodes to the rank."""
    pass


class CombinadicOverflowError(CombinadicError, OverflowError):
    """Raised when an intermediate value or the result does not fit the chosen width."""

    def __init__(self, value, limit):
        self.value = value
        self.limit = limit
        super().__init__(f'{value} exceeds the integer width limit {limit}')
