"""Define dataclasses to represent PDDL problems and a parser that assembles them from text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from pddl_syntax.config import ParserConfig
from pddl_syntax.errors import ParseError
from pddl_syntax.expressions import Comparison, ComparisonOperator, Expression, Not, NumericTerm
from pddl_syntax.parameters import TypedName
from pddl_syntax.pddl_parser import PDDLParser
from pddl_syntax.pddl_scanner import PDDLTokenType

logger = logging.getLogger(__name__)

PROBLEM_SECTIONS = (":domain", ":requirements", ":objects", ":init", ":goal", ":metric")
"""Section keywords permitted in the body of a PDDL problem."""


class OptimizationDirection(StrEnum):
    """Whether a problem's metric should be minimized or maximized."""

    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


@dataclass(frozen=True)
class Metric:
    """The plan metric of a PDDL problem, e.g. `(:metric minimize (total-time))`."""

    direction: OptimizationDirection
    expression: NumericTerm


@dataclass(frozen=True)
class PDDLProblem:
    """A PDDL problem defines an initial environment state and a goal condition.

    Reference: https://planning.wiki/ref/pddl/problem
    """

    name: str
    domain_name: str

    requirements: frozenset[str]
    """PDDL requirement flags declared by the problem (case-folded, as written)."""

    objects: tuple[TypedName, ...]
    """Typed objects declared by the problem."""

    init: tuple[Expression, ...]
    """Initial state: ground atoms, negated ground atoms, and `(= fluent number)` assignments."""

    goal: Expression
    """Condition that must hold in a goal state."""

    metric: Metric | None = None

    @classmethod
    def parse(cls, string: str, config: ParserConfig | None = None) -> PDDLProblem:
        """Parse a PDDL problem from the given string.

        :param string: Text of a PDDL problem definition
        :param config: Options controlling parser strictness (optional)
        :return: Parsed PDDL problem
        :raises PDDLError: If the text cannot be scanned or parsed
        """
        parser = ProblemParser(string, config)
        with parser.stack_guard():
            return parser.problem()


class ProblemParser(PDDLParser):
    """A parser that assembles the sections of a PDDL problem, in any order.

    Problems inherit their requirements from their domain, so features are never reported as
    undeclared and numeric expressions may always use arithmetic.
    """

    def problem(self) -> PDDLProblem:
        """Parse a PDDL problem from the stream of input tokens.

        Reference: Section 13 (pg. 18) of Ghallab et al., 1998.
        """
        self.match(PDDLTokenType.OPEN_PAREN)
        self.match(PDDLTokenType.NAME, value="define")
        self.match(PDDLTokenType.OPEN_PAREN)
        self.match(PDDLTokenType.NAME, value="problem")
        problem_name = self.name("a problem name")
        self.match(PDDLTokenType.CLOSE_PAREN)
        logger.debug("Parsing problem '%s'.", problem_name)

        domain_name: str | None = None
        reqs: set[str] = set()  # The :requirements field is optional in a PDDL problem
        objects: list[TypedName] = []  # The :objects field is optional in a PDDL problem
        initial_state: list[Expression] = []
        goal: Expression | None = None  # A PDDL problem must define a :goal
        metric: Metric | None = None

        while self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
            self.match(PDDLTokenType.OPEN_PAREN)
            if not self.check_keyword():
                raise self.error("a problem section keyword")

            match self.input_token.key:
                case ":domain":
                    self.advance()
                    domain_name = self.name("a domain name")
                    self.match(PDDLTokenType.CLOSE_PAREN)

                case ":requirements":
                    reqs |= self.require_def()

                case ":objects":
                    self.advance()
                    objects.extend(self.typed_list(PDDLTokenType.NAME))
                    self.match(PDDLTokenType.CLOSE_PAREN)

                case ":init":
                    self.advance()
                    while self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
                        initial_state.append(self.init_element())
                    self.match(PDDLTokenType.CLOSE_PAREN, expected="'(' or ')'")

                case ":goal":
                    self.advance()
                    goal = self.condition()
                    self.match(PDDLTokenType.CLOSE_PAREN)

                case ":metric":
                    self.advance()
                    metric = self.metric()
                    self.match(PDDLTokenType.CLOSE_PAREN)

                case _:
                    raise self.error(f"a problem section keyword ({', '.join(PROBLEM_SECTIONS)})")

        if domain_name is None:
            raise self.error("'(:domain'", message=f"Problem '{problem_name}' does not name its domain.")
        if goal is None:
            raise self.error("'(:goal'", message=f"Problem '{problem_name}' does not define a goal.")

        self.match(PDDLTokenType.CLOSE_PAREN, expected="'(' opening a section or ')'")
        self.end_of_document()

        return PDDLProblem(
            name=problem_name,
            domain_name=domain_name,
            requirements=frozenset(reqs),
            objects=tuple(objects),
            init=tuple(initial_state),
            goal=goal,
            metric=metric,
        )

    def init_element(self) -> Expression:
        """Parse one element of an initial state: a ground literal or a fluent assignment."""
        with self.nested():
            self.match(PDDLTokenType.OPEN_PAREN)
            token = self.input_token

            if token.type_ == PDDLTokenType.OPERATOR and token.value == ComparisonOperator.EQ:
                self.advance()
                fluent = self.fluent()
                value = self.numeric_term()
                self.close(token, "fluent assignments take a fluent and a value")
                return Comparison(ComparisonOperator.EQ, fluent, value)

            if token.type_ == PDDLTokenType.NAME and token.key == "not":
                self.advance()
                with self.nested():
                    atom = self.atomic_formula(match_open_paren=True, ground=True)
                self.close(token, "`not` takes exactly one argument")
                return Not(atom)

            return self.atomic_formula(ground=True)

    def metric(self) -> Metric:
        """Parse the optimization direction and numeric expression of a `:metric` section."""
        token = self.match(PDDLTokenType.NAME, expected="'minimize' or 'maximize'")
        if token.key not in {d.value for d in OptimizationDirection}:
            raise ParseError("'minimize' or 'maximize'", token)
        return Metric(OptimizationDirection(token.key), self.numeric_term())
