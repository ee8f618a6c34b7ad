"""Define the exceptions raised when PDDL text cannot be turned into a valid structure."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pddl_syntax.pddl_scanner import PDDLToken


class PDDLError(Exception):
    """Base class for all errors raised while scanning, parsing, or validating PDDL."""

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize the error with a description and an optional source location.

        :param message: Human-readable description of the failure
        :param offset: Character offset into the source text (None if unknown)
        :param line: One-based line number of the failure (None if unknown)
        :param column: Zero-based column of the failure (None if unknown)
        """
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        """Return the message, prefixed by the source location when it is known."""
        if self.line is None:
            return self.message
        return f"line {self.line}, column {self.column}: {self.message}"


class LexError(PDDLError):
    """An unrecognized character sequence was found while scanning."""


class ParseError(PDDLError):
    """The token stream did not match the PDDL grammar."""

    def __init__(
        self,
        expected: str,
        found: PDDLToken | None,
        offset: int | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize the error from the expected construct and the offending token.

        :param expected: Description of the construct the parser expected
        :param found: Token found instead (None once the input is exhausted)
        :param offset: Offset used when no token is available (e.g., end of input)
        :param message: Optional message overriding the default "expected ... found ..."
        """
        self.expected = expected
        self.found = found
        found_str = "end of input" if found is None else f"'{found.value}'"
        if message is None:
            message = f"Expected {expected} but found {found_str}."

        if found is None:
            super().__init__(message, offset=offset)
        else:
            super().__init__(message, offset=found.offset, line=found.line, column=found.column)


class ValidationError(PDDLError):
    """A syntactically valid document broke a within-document consistency rule."""
