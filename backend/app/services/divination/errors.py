"""Divination calculation errors."""


class DivinationInputError(ValueError):
    """Input to a divination calculation is malformed or out of range."""
