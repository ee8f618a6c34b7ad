"""Implement a scanner for the Planning Domain Definition Language (PDDL).

Reference: PDDL - The Planning Domain Definition Language (Version 1.2) (Ghallab et al., 1998)
"""

import sys

if sys.version_info < (3, 11):
    raise RuntimeError("This module requires Python 3.11 or higher.")

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Generator

from pddl_syntax.errors import LexError
from pddl_syntax.requirements import is_known_requirement

PDDL_NAME_REGEX = r"[a-zA-Z]{1}[a-zA-Z0-9\-_]*"
"""Names in PDDL begin with a letter and contain only letters, digits, hyphens, and underscores."""


class PDDLTokenType(StrEnum):
    """Enumeration of token types when parsing PDDL."""

    NAME = PDDL_NAME_REGEX
    """Name of a PDDL domain, type, predicate, operator, etc."""

    VARIABLE = r"\?" + PDDL_NAME_REGEX
    """Name of a PDDL variable."""

    KEYWORD = r":" + PDDL_NAME_REGEX
    """A PDDL keyword starts with a colon."""

    REQUIREMENT = r"(?!x)x"
    """A recognized requirement flag; scanned as a keyword and then reclassified."""

    NUMBER = r"-?\d+(?:\.\d+)?"
    """An integer or decimal number, with a sign only if it directly precedes the digits."""

    MINUS = r"-"
    """Separates PDDL entities from their types in typed lists (or denotes subtraction)."""

    OPERATOR = r"<=|>=|<|>|=|\+|\*|/"
    """A comparison or arithmetic operator other than the minus sign."""

    COLON = r":"
    """Separates a timestamp from the action that follows it in a plan."""

    OPEN_PAREN = r"\("
    """An open parenthesis."""

    CLOSE_PAREN = r"\)"
    """A close parenthesis."""

    OPEN_BRACKET = r"\["
    """Opens the duration of a timed plan step."""

    CLOSE_BRACKET = r"\]"
    """Closes the duration of a timed plan step."""

    COMMENT = r";[^\n]*"
    """Comments in PDDL begin with a semicolon and end with the next newline."""

    NEWLINE = r"\n"

    SKIP = r"[ \t\r\f]+"
    """Whitespace to be ignored."""

    MISMATCH = r"."
    """Any other character is a mismatch."""

    NONE = r"(?!)"
    """Marks the end of the token stream; never matched by the scanner."""

    @property
    def named_group_regex(self) -> str:
        """Retrieve the named group regular expression for the token type."""
        return f"(?P<{self.name}>{self.value})"


@dataclass(frozen=True)
class PDDLToken:
    """A token scanned from a string of PDDL.

    Reference: https://docs.python.org/3/library/re.html#writing-a-tokenizer
    """

    type_: PDDLTokenType
    value: str
    line: int
    column: int
    offset: int
    """Offset of the token's first character in the scanned string."""

    @property
    def key(self) -> str:
        """Retrieve the case-folded value used to compare keywords and names."""
        return self.value.lower()


class PDDLScanner:
    """A scanner for a subset of the Planning Domain Definition Language (PDDL)."""

    def __init__(self) -> None:
        """Initialize regular expressions for scanning tokens of PDDL.

        Reference: https://docs.python.org/3/library/re.html#writing-a-tokenizer
        """
        self.token_regex = re.compile("|".join(tt.named_group_regex for tt in PDDLTokenType))

    def tokenize(self, string: str) -> Generator[PDDLToken, None, None]:
        """Tokenize a string of PDDL into an iterator over tokens.

        :param string: String containing PDDL to be tokenized
        :yield: Iterator over PDDL tokens in the string
        :raises LexError: If the string contains a character sequence that isn't valid PDDL
        """
        line_num = 1
        line_start = 0
        for mo in self.token_regex.finditer(string):
            token_type = PDDLTokenType[mo.lastgroup or "MISMATCH"]
            value = mo.group()
            column = mo.start() - line_start

            match token_type:
                case PDDLTokenType.KEYWORD:
                    if is_known_requirement(value):
                        token_type = PDDLTokenType.REQUIREMENT

                case PDDLTokenType.MISMATCH:
                    reason = "a variable needs a name after '?'" if value == "?" else "unknown"
                    raise LexError(
                        f"Cannot tokenize '{value}' ({reason}).",
                        offset=mo.start(),
                        line=line_num,
                        column=column,
                    )

                case PDDLTokenType.COMMENT | PDDLTokenType.SKIP:
                    continue  # Skip comments and whitespace

                case PDDLTokenType.NEWLINE:
                    line_start = mo.end()
                    line_num += 1
                    continue

                case _:
                    pass

            yield PDDLToken(token_type, value, line_num, column, mo.start())
