"""Define the abstract syntax of PDDL conditions, effects, and numeric expressions.

Every PDDL expression is one of a closed set of frozen dataclasses, so consumers can dispatch
over the `Expression` union exhaustively using `match` statements.

Reference: Fox & Long, "PDDL2.1: An Extension to PDDL for Expressing Temporal Planning Domains"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Iterator, Union

from pddl_syntax.parameters import TypedName, is_variable


class TimeSpecifier(StrEnum):
    """Temporal qualifiers of conditions and effects within durative actions."""

    AT_START = "at start"
    AT_END = "at end"
    OVER_ALL = "over all"


class ComparisonOperator(StrEnum):
    """Binary comparisons between numeric expressions."""

    EQ = "="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


class ArithmeticOperator(StrEnum):
    """Arithmetic operators usable within numeric expressions."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


class UpdateOperator(StrEnum):
    """Operators of numeric effects, which update the value of a fluent."""

    ASSIGN = "assign"
    INCREASE = "increase"
    DECREASE = "decrease"
    SCALE_UP = "scale-up"
    SCALE_DOWN = "scale-down"


class Quantifier(StrEnum):
    """First-order quantifiers over typed variables."""

    FORALL = "forall"
    EXISTS = "exists"


@dataclass(frozen=True)
class Atom:
    """An atomic formula: a predicate (or fluent) name applied to variables and/or objects."""

    name: str
    arguments: tuple[str, ...] = ()

    def __str__(self) -> str:
        """Return a readable string representation of the atom."""
        return f"{self.name}({', '.join(self.arguments)})"

    @property
    def is_ground(self) -> bool:
        """Check whether none of the atom's arguments are variables."""
        return not any(is_variable(arg) for arg in self.arguments)


@dataclass(frozen=True)
class Name:
    """A variable (e.g., `?duration`) or object name used as a term in a comparison."""

    value: str

    def __str__(self) -> str:
        """Return the term's PDDL text."""
        return self.value

    @property
    def is_variable(self) -> bool:
        """Check whether the term is a variable."""
        return is_variable(self.value)


@dataclass(frozen=True)
class Number:
    """A numeric literal."""

    value: int | float

    def __str__(self) -> str:
        """Return the literal's PDDL text."""
        return str(self.value)


@dataclass(frozen=True)
class Not:
    """The negation of a single sub-expression."""

    operand: Expression


@dataclass(frozen=True)
class And:
    """A conjunction; the empty conjunction is trivially satisfied."""

    operands: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Or:
    """A disjunction of sub-expressions."""

    operands: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Temporal:
    """A sub-expression qualified by when it holds within a durative action."""

    qualifier: TimeSpecifier
    operand: Expression


@dataclass(frozen=True)
class Comparison:
    """A binary comparison between two numeric terms."""

    operator: ComparisonOperator
    left: NumericTerm
    right: NumericTerm


@dataclass(frozen=True)
class Arithmetic:
    """An arithmetic operation; subtraction with a single operand denotes negation."""

    operator: ArithmeticOperator
    operands: tuple[NumericTerm, ...]


@dataclass(frozen=True)
class NumericUpdate:
    """A numeric effect that updates a fluent using a numeric term."""

    operator: UpdateOperator
    fluent: Atom
    value: NumericTerm


@dataclass(frozen=True)
class Quantified:
    """A universally or existentially quantified sub-expression."""

    quantifier: Quantifier
    variables: tuple[TypedName, ...]
    operand: Expression


@dataclass(frozen=True)
class When:
    """A conditional effect, applied only if its condition holds."""

    condition: Expression
    effect: Expression


NumericTerm = Union[Number, Name, Atom, Arithmetic]
"""Expressions that may appear where a numeric value is expected."""

Expression = Union[
    Atom,
    Name,
    Number,
    Not,
    And,
    Or,
    Temporal,
    Comparison,
    Arithmetic,
    NumericUpdate,
    Quantified,
    When,
]
"""Union of every PDDL expression variant."""


def children(expression: Expression) -> tuple[Expression, ...]:
    """Retrieve the direct sub-expressions of the given expression, in source order."""
    match expression:
        case Atom() | Name() | Number():
            return ()
        case Not(operand) | Temporal(_, operand) | Quantified(_, _, operand):
            return (operand,)
        case And(operands) | Or(operands) | Arithmetic(_, operands):
            return operands
        case Comparison(_, left, right):
            return (left, right)
        case NumericUpdate(_, fluent, value):
            return (fluent, value)
        case When(condition, effect):
            return (condition, effect)

    raise TypeError(f"Unexpected PDDL expression: {expression!r}")


def walk(expression: Expression) -> Iterator[Expression]:
    """Iterate over the given expression and all of its sub-expressions in pre-order."""
    stack = [expression]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))
