"""
Fourier Series Lab - Exceptions

Parse errors are recoverable: callers keep the last good value
(see ``expression.commit_or_keep``).
"""


class FourierLabError(Exception):
    """Base class for all errors raised by the engine."""


class ParseError(FourierLabError, ValueError):
    """Text could not be turned into a value."""

    def __init__(self, text, reason=""):
        self.text = text
        self.reason = reason
        message = f"cannot parse {text!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ExpressionParseError(ParseError):
    """Malformed function expression."""


class BoundParseError(ParseError):
    """Malformed coefficient bound."""
