"""Errors raised by restgrid.

Every error derives from :class:`RestGridException` and keeps the keyword
context it was raised with, so handlers can report which option or argument
was at fault.
"""

from __future__ import annotations

from typing import Any


class RestGridException(Exception):
    """Root of the restgrid error hierarchy."""

    def __init__(self, message: str, **context: Any) -> None:
        """Create the error.

        Parameters
        ----------
        message : str
            What went wrong.
        **context : Any
            Details such as the offending attribute, argument or value.
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{name}={value!r}" for name, value in self.context.items())
        return f"{self.message} ({details})"


class InvalidConfigError(RestGridException):
    """A grid, column, formatter or data provider is misconfigured.

    Raised during initialization when the formatter does not resolve to a
    Formatter, a column entry does not resolve to a DataColumn, or a compact
    column specification does not match ``attribute[:format[:label]]``.
    """

    def __init__(self, message: str, attribute: str | None = None, **context: Any) -> None:
        super().__init__(message, attribute=attribute, **context)
        #: Name of the option (or column attribute) that was rejected.
        self.attribute = attribute


class InvalidArgumentError(RestGridException):
    """A renderer action or formatter received an argument it cannot use.

    Raised when the renderer is not handed a Grid, when an unknown render
    action is requested, or when a value cannot be formatted as asked.
    """

    def __init__(self, message: str, argument: str | None = None, **context: Any) -> None:
        super().__init__(message, argument=argument, **context)
        #: Name of the rejected argument.
        self.argument = argument
