"""Implement a parser for the Planning Domain Definition Language (PDDL).

This module holds the grammar shared by domains, problems, and plans: token matching, the
primitive parsers (names, numbers, typed lists, requirement flags), and the recursive-descent
parsers for conditions, effects, and numeric expressions. The document-level parsers extend
`PDDLParser` with their section assemblers.

Reference: PDDL - The Planning Domain Definition Language (Version 1.2) (Ghallab et al., 1998)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from pddl_syntax.config import DEFAULT_CONFIG, ParserConfig
from pddl_syntax.errors import ParseError
from pddl_syntax.expressions import (
    And,
    Arithmetic,
    ArithmeticOperator,
    Atom,
    Comparison,
    ComparisonOperator,
    Expression,
    Name,
    Not,
    Number,
    NumericTerm,
    NumericUpdate,
    Or,
    Quantified,
    Quantifier,
    Temporal,
    TimeSpecifier,
    UpdateOperator,
    When,
)
from pddl_syntax.parameters import TypedName
from pddl_syntax.pddl_scanner import PDDLScanner, PDDLToken, PDDLTokenType
from pddl_syntax.requirements import expand_requirements

logger = logging.getLogger(__name__)

TOKEN_DESCRIPTIONS = {
    PDDLTokenType.NAME: "a name",
    PDDLTokenType.VARIABLE: "a variable",
    PDDLTokenType.KEYWORD: "a keyword",
    PDDLTokenType.REQUIREMENT: "a requirement flag",
    PDDLTokenType.NUMBER: "a number",
    PDDLTokenType.MINUS: "'-'",
    PDDLTokenType.OPERATOR: "an operator",
    PDDLTokenType.COLON: "':'",
    PDDLTokenType.OPEN_PAREN: "'('",
    PDDLTokenType.CLOSE_PAREN: "')'",
    PDDLTokenType.OPEN_BRACKET: "'['",
    PDDLTokenType.CLOSE_BRACKET: "']'",
    PDDLTokenType.NONE: "end of input",
}
"""Human-readable descriptions of each token type, used in error messages."""

TIME_SPECIFIERS = {("at", "start"), ("at", "end"), ("over", "all")}
"""Pairs of names that open a temporally qualified expression."""

UPDATE_KEYS = frozenset(op.value for op in UpdateOperator)
COMPARISON_KEYS = frozenset(op.value for op in ComparisonOperator)


class PDDLParser:
    """A parser for a subset of the Planning Domain Definition Language (PDDL)."""

    governs_requirements = False
    """Whether features used without their requirement flag are reported (domains only)."""

    def __init__(self, string: str, config: ParserConfig | None = None) -> None:
        """Initialize the PDDL parser for the given string.

        :param string: PDDL text to be parsed
        :param config: Options controlling parser strictness (defaults to lenient parsing)
        """
        self.config = config or DEFAULT_CONFIG
        self.scanner = PDDLScanner()
        self.remaining_tokens = self.scanner.tokenize(string)
        self.end_offset = len(string)

        self.requirements: frozenset[str] = frozenset()
        """Requirement flags declared so far, expanded with the flags they imply."""

        self.depth = 0
        """Current nesting depth of parenthesized expressions."""

        self._lookahead: PDDLToken | None = None
        self.input_token: PDDLToken = self._next_token()
        """Once the input token type is `PDDLTokenType.NONE`, all tokens have been consumed."""

    def _next_token(self) -> PDDLToken:
        """Pull the next token from the scanner, or an end-of-input token once it's exhausted."""
        try:
            return next(self.remaining_tokens)
        except StopIteration:
            return PDDLToken(PDDLTokenType.NONE, value="", line=-1, column=-1, offset=self.end_offset)

    @property
    def at_end(self) -> bool:
        """Check whether every token has been consumed."""
        return self.input_token.type_ == PDDLTokenType.NONE

    @property
    def arithmetic_allowed(self) -> bool:
        """Check whether nested arithmetic may appear in numeric expressions."""
        return not self.governs_requirements or ":numeric-fluents" in self.requirements

    def peek(self) -> PDDLToken:
        """Look at the token following the input token without consuming anything."""
        if self._lookahead is None:
            self._lookahead = self._next_token()
        return self._lookahead

    def advance(self) -> PDDLToken:
        """Consume and return the input token, whatever its type."""
        consumed = self.input_token
        if self._lookahead is not None:
            self.input_token, self._lookahead = self._lookahead, None
        elif not self.at_end:
            self.input_token = self._next_token()
        return consumed

    def error(self, expected: str, message: str | None = None) -> ParseError:
        """Create an error reporting that the input token doesn't match the expected construct."""
        found = None if self.at_end else self.input_token
        return ParseError(expected, found, offset=self.input_token.offset, message=message)

    def match(
        self,
        token_type: PDDLTokenType,
        value: str | None = None,
        expected: str | None = None,
    ) -> PDDLToken:
        """Consume a token of the given type from the scanner.

        :param token_type: Expected type of the next PDDL token
        :param value: Expected (case-insensitive) value of the next token (optional)
        :param expected: Description of the expected construct used in errors (optional)
        :return: PDDL token consumed from the scanner
        :raises ParseError: If the next token doesn't match; the token is then not consumed
        """
        if expected is None:
            expected = f"'{value}'" if value is not None else TOKEN_DESCRIPTIONS[token_type]

        token = self.input_token
        if token.type_ != token_type or (value is not None and token.key != value.lower()):
            raise self.error(expected)

        return self.advance()

    def check_keyword(self, value: str | None = None) -> bool:
        """Check whether the input token is a keyword (optionally, with the given value)."""
        if self.input_token.type_ not in {PDDLTokenType.KEYWORD, PDDLTokenType.REQUIREMENT}:
            return False
        return value is None or self.input_token.key == value.lower()

    def keyword(self, value: str) -> PDDLToken:
        """Consume the given keyword from the scanner.

        :raises ParseError: If the next token is not the keyword
        """
        if not self.check_keyword(value):
            raise self.error(f"'{value}'")
        return self.advance()

    def close(self, opener: PDDLToken, reason: str) -> None:
        """Match the closing parenthesis of a fixed-arity form opened by the given token.

        :param opener: Token naming the form being closed (used in the error message)
        :param reason: Explanation appended to the error message (e.g., the form's arity)
        """
        if self.input_token.type_ != PDDLTokenType.CLOSE_PAREN:
            found = "end of input" if self.at_end else f"'{self.input_token.value}'"
            raise self.error(
                "')'",
                message=f"Expected ')' closing `{opener.value}` but found {found}: {reason}.",
            )
        self.advance()

    @contextmanager
    def nested(self) -> Iterator[None]:
        """Track one more level of expression nesting, enforcing the configured depth limit."""
        self.depth += 1
        try:
            max_depth = self.config.max_nesting_depth
            if max_depth is not None and self.depth > max_depth:
                raise self.error(
                    "a shallower expression",
                    message=f"Expressions are nested more than {max_depth} levels deep.",
                )
            yield
        finally:
            self.depth -= 1

    @contextmanager
    def stack_guard(self) -> Iterator[None]:
        """Report input nested too deeply for the interpreter's call stack as a ParseError."""
        try:
            yield
        except RecursionError:
            raise self.error(
                "a shallower expression",
                message="Expressions are nested too deeply to be parsed.",
            ) from None

    def require(self, token: PDDLToken, feature: str, *flags: str) -> None:
        """Report a grammar feature used without declaring any of its requirement flags.

        Parsing continues after a logged warning unless strict requirements are configured.

        :param token: Token at which the feature was used
        :param feature: Description of the grammar feature
        :param flags: Requirement flags, any of which permits the feature
        :raises ParseError: If requirements are strict and none of the flags were declared
        """
        if not self.governs_requirements or any(flag in self.requirements for flag in flags):
            return

        message = f"{feature} used without declaring {' or '.join(flags)}."
        if self.config.strict_requirements:
            raise ParseError(f"the {flags[0]} requirement", token, message=message)

        logger.warning("Line %d: %s", token.line, message)

    def end_of_document(self) -> None:
        """Handle the input (if any) that follows a document's closing parenthesis.

        Trailing input is skipped unless the configuration requires the end of input, but an
        unmatched ')' anywhere in it is always an error.

        :raises ParseError: If an unmatched ')' follows, or if trailing input is disallowed
        """
        if self.at_end:
            return

        if self.config.require_end_of_input and self.input_token.type_ != PDDLTokenType.CLOSE_PAREN:
            raise self.error("end of input")

        logger.debug("Ignoring trailing input starting on line %d.", self.input_token.line)

        # Trailing groups are skipped, but a ')' closing nothing means the document ended early
        depth = 0
        while not self.at_end:
            if self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
                depth += 1
            elif self.input_token.type_ == PDDLTokenType.CLOSE_PAREN:
                if depth == 0:
                    raise self.error(
                        "end of input",
                        message="Unmatched ')': the document was closed before this parenthesis.",
                    )
                depth -= 1
            self.advance()

    def name(self, expected: str = "a name") -> str:
        """Parse a PDDL name from the input stream of tokens."""
        return self.match(PDDLTokenType.NAME, expected=expected).value

    def number(self) -> int | float:
        """Parse a PDDL number, as an integer unless it has a fractional part."""
        value = self.match(PDDLTokenType.NUMBER).value
        return float(value) if "." in value else int(value)

    def type_spec(self, allow_either: bool = True) -> str | tuple[str, ...]:
        """Parse the type following a '-' in a typed list: a name or an `(either ...)` type.

        :param allow_either: Whether `(either t1 t2 ...)` types are permitted (default: True)
        :return: Name of the type, or the tuple of alternatives of an `either` type
        """
        if self.input_token.type_ == PDDLTokenType.NAME:
            return self.advance().value

        if not allow_either or self.input_token.type_ != PDDLTokenType.OPEN_PAREN:
            raise self.error("a type name")

        self.match(PDDLTokenType.OPEN_PAREN)
        self.match(PDDLTokenType.NAME, value="either")
        options = [self.name("a type name")]
        while self.input_token.type_ == PDDLTokenType.NAME:
            options.append(self.advance().value)
        self.match(PDDLTokenType.CLOSE_PAREN, expected="a type name or ')'")
        return tuple(options)

    def typed_list(
        self,
        token_type: PDDLTokenType,
        allow_either: bool = True,
    ) -> tuple[TypedName, ...]:
        """Parse a PDDL-typed list of the given token type.

        Untyped names preceding a '-' take the type that follows it, and any names left untyped
        at the end of the list take the root type `object`. This method does not match a
        following closing parenthesis, if present.

        :param token_type: Type of PDDL token (e.g., `VARIABLE`) being assigned PDDL types
        :param allow_either: Whether `(either ...)` types are permitted (default: True)
        :return: Tuple of the parsed names, each paired with its PDDL type
        """
        typed: list[TypedName] = []
        awaiting_types: list[str] = []
        description = TOKEN_DESCRIPTIONS[token_type]

        while self.input_token.type_ not in {PDDLTokenType.CLOSE_PAREN, PDDLTokenType.NONE}:
            if self.input_token.type_ == token_type:
                awaiting_types.append(self.advance().value)
                continue

            if self.input_token.type_ == PDDLTokenType.MINUS:  # Match "-" and the following type
                if not awaiting_types:
                    raise self.error(description, message="Unexpected '-' in a typed list.")

                minus = self.advance()
                self.require(minus, "Typed lists", ":typing")
                type_ = self.type_spec(allow_either)
                typed.extend(TypedName(name, type_) for name in awaiting_types)
                awaiting_types.clear()
                continue

            raise self.error(f"{description}, '-', or ')'")

        typed.extend(TypedName(name) for name in awaiting_types)  # Default parent type in PDDL
        return tuple(typed)

    def require_def(self) -> frozenset[str]:
        """Parse the requirement flags of a `:requirements` section, through its ')'.

        Unknown flags are kept (and logged) so that newer PDDL dialects still parse, unless
        strict requirements are configured.

        :return: Set of parsed (case-folded) PDDL requirement flags
        """
        self.keyword(":requirements")

        reqs: set[str] = set()
        while self.check_keyword():
            flag = self.advance()
            if flag.type_ == PDDLTokenType.KEYWORD:
                if self.config.strict_requirements:
                    raise ParseError(
                        "a recognized requirement flag",
                        flag,
                        message=f"Unknown requirement flag '{flag.value}'.",
                    )
                logger.warning("Line %d: Unknown requirement flag '%s'.", flag.line, flag.value)
            reqs.add(flag.key)

        self.match(PDDLTokenType.CLOSE_PAREN, expected="a requirement flag or ')'")
        self.requirements = self.requirements | expand_requirements(reqs)
        logger.debug("Parsed requirements: %s", sorted(reqs))
        return frozenset(reqs)

    def atomic_formula(self, match_open_paren: bool = False, ground: bool = False) -> Atom:
        """Parse a PDDL atomic formula from the input stream of tokens.

        Default behavior: Parse the formula's predicate name through its closing parenthesis.

        :param match_open_paren: Whether to match the formula's open parenthesis (default: False)
        :param ground: Whether the arguments must be object names rather than variables
        :return: Parsed PDDL atomic formula
        """
        if match_open_paren:
            self.match(PDDLTokenType.OPEN_PAREN)

        name = self.name("a predicate name")

        term_types = {PDDLTokenType.NAME} if ground else {PDDLTokenType.NAME, PDDLTokenType.VARIABLE}
        arguments: list[str] = []
        while self.input_token.type_ in term_types:
            arguments.append(self.advance().value)

        if ground and self.input_token.type_ == PDDLTokenType.VARIABLE:
            raise self.error("an object name", message="Ground atoms cannot contain variables.")

        expected = "an object name or ')'" if ground else "a variable, an object name, or ')'"
        self.match(PDDLTokenType.CLOSE_PAREN, expected=expected)
        return Atom(name, tuple(arguments))

    def _is_time_specifier(self) -> bool:
        """Check whether the input token and its successor form `at start`, `at end`, or `over all`."""
        following = self.peek()
        return (
            following.type_ == PDDLTokenType.NAME
            and (self.input_token.key, following.key) in TIME_SPECIFIERS
        )

    def _temporal(
        self,
        parse_operand: Callable[[], Expression],
        allowed: bool,
        in_effect: bool = False,
    ) -> Temporal:
        """Parse a temporally qualified expression, from its time specifier through its ')'."""
        if not allowed:
            raise self.error(
                "an untimed expression",
                message="Temporal qualifiers may only appear in durative actions.",
            )

        opener = self.advance()
        qualifier = TimeSpecifier(f"{opener.key} {self.advance().key}")
        if in_effect and qualifier == TimeSpecifier.OVER_ALL:
            raise ParseError(
                "`at start` or `at end`",
                opener,
                message="Effects cannot be qualified by `over all`.",
            )

        self.require(opener, "Temporal qualifiers", ":durative-actions")
        operand = parse_operand()
        self.close(opener, f"`{qualifier}` takes exactly one argument")
        return Temporal(qualifier, operand)

    def _quantified_variables(self) -> tuple[TypedName, ...]:
        """Parse the parenthesized typed variable list of a quantifier."""
        self.match(PDDLTokenType.OPEN_PAREN, expected="'(' opening the quantified variables")
        variables = self.typed_list(PDDLTokenType.VARIABLE)
        self.match(PDDLTokenType.CLOSE_PAREN)
        return variables

    def condition(self, temporal: bool = False) -> Expression:
        """Parse a PDDL goal description (e.g., a precondition) from the input stream of tokens.

        Reference: Section 6 (pg. 8-9) of Ghallab et al., 1998.

        :param temporal: Whether `at start`, `at end`, and `over all` are permitted
        :return: Parsed PDDL goal description
        """
        with self.nested():
            self.match(PDDLTokenType.OPEN_PAREN, expected="'(' opening a condition")
            token = self.input_token

            if token.type_ == PDDLTokenType.CLOSE_PAREN:  # `()` is an empty condition
                self.advance()
                return And()

            if token.type_ == PDDLTokenType.OPERATOR:
                return self._comparison()

            if token.type_ != PDDLTokenType.NAME:
                raise self.error("a predicate name or logical operator")

            match token.key:
                case "and" | "or":
                    self.advance()
                    if token.key == "or":
                        self.require(token, "Disjunctions", ":disjunctive-preconditions")
                    operands: list[Expression] = []
                    while self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
                        operands.append(self.condition(temporal))
                    self.match(PDDLTokenType.CLOSE_PAREN, expected="'(' or ')'")
                    return And(tuple(operands)) if token.key == "and" else Or(tuple(operands))

                case "not":
                    self.advance()
                    negated = self.condition(temporal)
                    self.close(token, "`not` takes exactly one argument")
                    return Not(negated)

                case "forall" | "exists":
                    self.advance()
                    quantifier = Quantifier(token.key)
                    if quantifier == Quantifier.FORALL:
                        self.require(token, "Universal conditions", ":universal-preconditions")
                    else:
                        self.require(token, "Existential conditions", ":existential-preconditions")
                    variables = self._quantified_variables()
                    quantified = self.condition(temporal)
                    self.close(token, f"`{quantifier}` takes exactly one condition")
                    return Quantified(quantifier, variables, quantified)

                case "at" | "over" if self._is_time_specifier():
                    return self._temporal(self.condition, allowed=temporal)

                case key if key == "when" or key in UPDATE_KEYS:
                    raise self.error(
                        "a condition",
                        message=f"`{token.value}` may only appear in effects.",
                    )

                case _:
                    return self.atomic_formula()

    def effect(self, temporal: bool = False) -> Expression:
        """Parse PDDL action effects from the input stream of tokens.

        :param temporal: Whether `at start` and `at end` are permitted
        :return: Parsed PDDL action effects
        """
        with self.nested():
            self.match(PDDLTokenType.OPEN_PAREN, expected="'(' opening an effect")
            token = self.input_token

            if token.type_ == PDDLTokenType.CLOSE_PAREN:  # `()` is an empty effect
                self.advance()
                return And()

            if token.type_ != PDDLTokenType.NAME:
                raise self.error("a predicate name or effect operator")

            match token.key:
                case "and":
                    self.advance()
                    effects: list[Expression] = []
                    while self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
                        effects.append(self.effect(temporal))
                    self.match(PDDLTokenType.CLOSE_PAREN, expected="'(' or ')'")
                    return And(tuple(effects))

                case "not":
                    self.advance()
                    with self.nested():
                        deleted = self.atomic_formula(match_open_paren=True)
                    self.close(token, "`not` takes exactly one argument")
                    return Not(deleted)

                case "forall":  # For the :conditional-effects requirement flag
                    self.advance()
                    self.require(token, "Universal effects", ":conditional-effects")
                    variables = self._quantified_variables()
                    quantified_eff = self.effect(temporal)
                    self.close(token, "`forall` takes exactly one effect")
                    return Quantified(Quantifier.FORALL, variables, quantified_eff)

                case "when":  # For the :conditional-effects requirement flag
                    self.advance()
                    self.require(token, "Conditional effects", ":conditional-effects")
                    condition = self.condition(temporal)
                    conditional_eff = self.effect(temporal)
                    self.close(token, "`when` takes a condition and an effect")
                    return When(condition, conditional_eff)

                case "at" | "over" if self._is_time_specifier():
                    return self._temporal(self.effect, allowed=temporal, in_effect=True)

                case key if key in UPDATE_KEYS:
                    return self._numeric_update()

                case "or" | "exists":
                    raise self.error(
                        "an effect",
                        message=f"`{token.value}` may only appear in conditions.",
                    )

                case _:
                    return self.atomic_formula()

    def _numeric_update(self) -> NumericUpdate:
        """Parse a numeric effect, from its update operator through its closing parenthesis."""
        token = self.advance()
        operator = UpdateOperator(token.key)
        self.require(token, "Numeric effects", ":numeric-fluents", ":action-costs")

        fluent = self.fluent()
        value = self.numeric_term()
        self.close(token, f"`{operator}` takes a fluent and a numeric expression")
        return NumericUpdate(operator, fluent, value)

    def _comparison(self, governed: bool = True) -> Comparison:
        """Parse a binary comparison, from its operator through its closing parenthesis.

        :param governed: Whether the comparison requires a numeric (or equality) requirement flag
        """
        token = self.input_token
        if token.value not in COMPARISON_KEYS:
            raise self.error("a comparison operator")
        self.advance()

        left = self.numeric_term()
        right = self.numeric_term()
        if governed:
            if isinstance(left, Name) and isinstance(right, Name):
                self.require(token, "Equality between terms", ":equality")
            else:
                self.require(token, "Numeric comparisons", ":numeric-fluents")

        self.close(token, "comparisons take exactly two arguments")
        return Comparison(ComparisonOperator(token.value), left, right)

    def fluent(self) -> Atom:
        """Parse a reference to a numeric fluent: `(name args...)`, or a bare name if nullary."""
        if self.input_token.type_ == PDDLTokenType.NAME:
            return Atom(self.advance().value)

        with self.nested():
            self.match(PDDLTokenType.OPEN_PAREN, expected="a fluent")
            return self.atomic_formula()

    def numeric_term(self) -> NumericTerm:
        """Parse a numeric expression: a number, a term, a fluent, or nested arithmetic."""
        token = self.input_token
        match token.type_:
            case PDDLTokenType.NUMBER:
                return Number(self.number())
            case PDDLTokenType.VARIABLE | PDDLTokenType.NAME:
                return Name(self.advance().value)
            case PDDLTokenType.OPEN_PAREN:
                pass
            case _:
                raise self.error("a numeric expression")

        with self.nested():
            self.advance()
            if self.input_token.type_ in {PDDLTokenType.MINUS, PDDLTokenType.OPERATOR}:
                return self._arithmetic()
            if self.input_token.type_ == PDDLTokenType.NAME:
                return self.atomic_formula()
            raise self.error("a fluent or an arithmetic operator")

    def _arithmetic(self) -> Arithmetic:
        """Parse nested arithmetic, from its operator through its closing parenthesis."""
        token = self.input_token
        if token.value not in {op.value for op in ArithmeticOperator}:
            raise self.error("an arithmetic operator")
        if not self.arithmetic_allowed:
            raise self.error(
                "a fluent or a number",
                message="Nested arithmetic requires the :numeric-fluents requirement.",
            )
        self.advance()
        operator = ArithmeticOperator(token.value)

        operands: list[NumericTerm] = []
        while self.input_token.type_ != PDDLTokenType.CLOSE_PAREN:
            operands.append(self.numeric_term())

        match operator:
            case ArithmeticOperator.SUBTRACT:
                valid, arity = len(operands) in (1, 2), "one or two arguments"
            case ArithmeticOperator.DIVIDE:
                valid, arity = len(operands) == 2, "exactly two arguments"
            case _:
                valid, arity = len(operands) >= 2, "at least two arguments"

        if not valid:
            raise ParseError(
                arity,
                token,
                message=f"`{operator}` takes {arity} but received {len(operands)}.",
            )

        self.advance()  # Match the closing parenthesis
        return Arithmetic(operator, tuple(operands))

    def duration_constraint(self) -> Expression:
        """Parse the `:duration` constraint of a durative action, e.g. `(= ?duration 5)`."""
        with self.nested():
            self.match(PDDLTokenType.OPEN_PAREN, expected="'(' opening a duration constraint")
            token = self.input_token

            if token.type_ == PDDLTokenType.CLOSE_PAREN:
                self.advance()
                return And()

            if token.type_ == PDDLTokenType.OPERATOR:
                return self._comparison(governed=False)

            if token.type_ == PDDLTokenType.NAME and token.key == "and":
                self.advance()
                self.require(token, "Conjunctive duration constraints", ":durative-inequalities")
                constraints: list[Expression] = []
                while self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
                    constraints.append(self.duration_constraint())
                self.match(PDDLTokenType.CLOSE_PAREN, expected="'(' or ')'")
                return And(tuple(constraints))

            if token.type_ == PDDLTokenType.NAME and self._is_time_specifier():
                return self._temporal(self.duration_constraint, allowed=True, in_effect=True)

            raise self.error("a duration constraint")
