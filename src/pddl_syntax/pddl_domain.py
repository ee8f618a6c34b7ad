"""Define dataclasses to represent PDDL domains and a parser that assembles them from text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TypeVar

from pddl_syntax.config import ParserConfig
from pddl_syntax.errors import ValidationError
from pddl_syntax.expressions import And, Expression
from pddl_syntax.parameters import NUMBER_TYPE, TypedName
from pddl_syntax.pddl_parser import PDDLParser
from pddl_syntax.pddl_scanner import PDDLToken, PDDLTokenType
from pddl_syntax.type_hierarchy import TypeHierarchy
from pddl_syntax.validation import check_action_references, check_domain_types

logger = logging.getLogger(__name__)

DOMAIN_SECTIONS = (
    ":requirements",
    ":types",
    ":constants",
    ":predicates",
    ":functions",
    ":action",
    ":durative-action",
)
"""Section keywords permitted in the body of a PDDL domain."""

DeclarationT = TypeVar("DeclarationT", "PredicateDeclaration", "FunctionDeclaration")


@dataclass(frozen=True)
class PredicateDeclaration:
    """A predicate declared by a PDDL domain, e.g. `(on-pile ?g - garment ?p - pile)`."""

    name: str
    parameters: tuple[TypedName, ...] = ()

    def __str__(self) -> str:
        """Return a readable string representation of the predicate declaration."""
        return f"{self.name}({', '.join(map(str, self.parameters))})"

    @property
    def arity(self) -> int:
        """Retrieve the number of parameters of the predicate."""
        return len(self.parameters)


@dataclass(frozen=True)
class FunctionDeclaration:
    """A numeric fluent declared in the `:functions` section of a PDDL domain."""

    name: str
    parameters: tuple[TypedName, ...] = ()
    return_type: str = NUMBER_TYPE

    def __str__(self) -> str:
        """Return a readable string representation of the function declaration."""
        return f"{self.name}({', '.join(map(str, self.parameters))}) - {self.return_type}"

    @property
    def arity(self) -> int:
        """Retrieve the number of parameters of the function."""
        return len(self.parameters)


@dataclass(frozen=True)
class Action:
    """An action schema: an instantaneous or durative operator of a PDDL domain.

    Instantaneous actions have no duration. A missing precondition or effect is represented by
    the empty conjunction `And()`.
    """

    name: str
    parameters: tuple[TypedName, ...] = ()

    duration: Expression | None = None
    """Duration constraint of a durative action, e.g. `(= ?duration (grasp-time ?a))`."""

    condition: Expression = And()
    """Precondition of the action (`:condition` for durative actions)."""

    effect: Expression = And()

    @property
    def is_durative(self) -> bool:
        """Check whether the action was declared using `:durative-action`."""
        return self.duration is not None


@dataclass(frozen=True)
class PDDLDomain:
    """A PDDL domain defining the 'universal' aspects of a class of planning problems.

    Reference: https://planning.wiki/ref/pddl/domain
    """

    name: str

    requirements: frozenset[str]
    """PDDL requirement flags declared by the domain (case-folded, as written)."""

    types: TypeHierarchy
    """Hierarchy of the object types used in the domain."""

    constants: tuple[TypedName, ...]
    """Objects shared by every problem of the domain."""

    predicates: tuple[PredicateDeclaration, ...]
    functions: tuple[FunctionDeclaration, ...]

    actions: tuple[Action, ...]
    """Actions of the domain, in declaration order."""

    @classmethod
    def parse(cls, string: str, config: ParserConfig | None = None) -> PDDLDomain:
        """Parse a PDDL domain from the given string.

        :param string: Text of a PDDL domain definition
        :param config: Options controlling parser strictness (optional)
        :return: Parsed and validated PDDL domain
        :raises PDDLError: If the text cannot be scanned, parsed, or validated
        """
        parser = DomainParser(string, config)
        with parser.stack_guard():
            return parser.domain()

    def get_action(self, action_name: str) -> Action:
        """Retrieve the action with the given (case-insensitive) name.

        :raises KeyError: If the domain has no such action
        """
        for action in self.actions:
            if action.name.lower() == action_name.lower():
                return action
        raise KeyError(f"Domain '{self.name}' has no action named '{action_name}'.")


class DomainParser(PDDLParser):
    """A parser that assembles the sections of a PDDL domain, in any order."""

    governs_requirements = True

    def __init__(self, string: str, config: ParserConfig | None = None) -> None:
        """Initialize the parser and the declarations collected from the domain's sections."""
        super().__init__(string, config)
        self.requirements = frozenset({":strips"})  # Implied when no requirements are declared

        self.declared_requirements: set[str] = set()
        self.type_declarations: list[TypedName] = []
        self.types = TypeHierarchy()
        self.constants: list[TypedName] = []
        self.predicates: dict[str, PredicateDeclaration] = {}
        self.functions: dict[str, FunctionDeclaration] = {}
        self.actions: list[Action] = []

    def domain(self) -> PDDLDomain:
        """Parse a PDDL domain from the stream of input tokens."""
        self.match(PDDLTokenType.OPEN_PAREN)
        self.match(PDDLTokenType.NAME, value="define")
        self.match(PDDLTokenType.OPEN_PAREN)
        self.match(PDDLTokenType.NAME, value="domain")
        domain_name = self.name("a domain name")
        self.match(PDDLTokenType.CLOSE_PAREN)
        logger.debug("Parsing domain '%s'.", domain_name)

        # Permit the domain's sections in any order; repeated sections are concatenated
        while self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
            self.match(PDDLTokenType.OPEN_PAREN)
            self.section()

        self.match(PDDLTokenType.CLOSE_PAREN, expected="'(' opening a section or ')'")
        self.end_of_document()
        self.types = TypeHierarchy.from_typed_names(self.type_declarations)

        domain = PDDLDomain(
            name=domain_name,
            requirements=frozenset(self.declared_requirements),
            types=self.types,
            constants=tuple(self.constants),
            predicates=tuple(self.predicates.values()),
            functions=tuple(self.functions.values()),
            actions=tuple(self.actions),
        )
        check_domain_types(domain)
        logger.debug("Parsed domain '%s' with %d action(s).", domain_name, len(domain.actions))
        return domain

    def section(self) -> None:
        """Parse one section of the domain, starting from its keyword and through its ')'."""
        if not self.check_keyword():
            raise self.error("a domain section keyword")

        match self.input_token.key:
            case ":requirements":
                self.declared_requirements |= self.require_def()

            case ":types":
                self.advance()
                self.type_declarations.extend(self.typed_list(PDDLTokenType.NAME, allow_either=False))
                self.types = TypeHierarchy.from_typed_names(self.type_declarations, validate=False)
                self.match(PDDLTokenType.CLOSE_PAREN)

            case ":constants":
                self.advance()
                self.constants.extend(self.typed_list(PDDLTokenType.NAME))
                self.match(PDDLTokenType.CLOSE_PAREN)

            case ":predicates":
                self.advance()
                while self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
                    token, parameters = self.atomic_formula_skeleton()
                    self._declare(self.predicates, PredicateDeclaration(token.value, parameters), token)
                self.match(PDDLTokenType.CLOSE_PAREN, expected="'(' or ')'")

            case ":functions":
                self.require(self.advance(), "Functions", ":numeric-fluents", ":action-costs")
                self.function_typed_list()
                self.match(PDDLTokenType.CLOSE_PAREN, expected="'(', '-', or ')'")

            case ":action":
                self.add_action(self.action())

            case ":durative-action":
                self.add_action(self.durative_action())

            case _:
                raise self.error(f"a domain section keyword ({', '.join(DOMAIN_SECTIONS)})")

    def _declare(
        self,
        registry: dict[str, DeclarationT],
        declaration: DeclarationT,
        token: PDDLToken,
    ) -> None:
        """Add a predicate or function declaration, rejecting duplicate (case-insensitive) names.

        :raises ValidationError: If a declaration of the same kind already uses the name
        """
        key = declaration.name.lower()
        if key in registry:
            kind = "predicate" if isinstance(declaration, PredicateDeclaration) else "function"
            raise ValidationError(
                f"Duplicate {kind} declaration '{declaration.name}'.",
                offset=token.offset,
                line=token.line,
                column=token.column,
            )
        registry[key] = declaration

    def atomic_formula_skeleton(self) -> tuple[PDDLToken, tuple[TypedName, ...]]:
        """Parse a predicate or function skeleton, e.g. `(free ?a - arm)`.

        :return: Token of the declared name and the declaration's typed parameters
        """
        self.match(PDDLTokenType.OPEN_PAREN)
        name = self.match(PDDLTokenType.NAME, expected="a predicate or function name")
        parameters = self.typed_list(PDDLTokenType.VARIABLE)
        self.match(PDDLTokenType.CLOSE_PAREN)
        return name, parameters

    def function_typed_list(self) -> None:
        """Parse the function skeletons of a `:functions` section, each optionally typed.

        Skeletons preceding `- number` (or another type) take that return type; any left untyped
        at the end of the section default to `number`.
        """
        awaiting_types: list[tuple[PDDLToken, tuple[TypedName, ...]]] = []

        while self.input_token.type_ in {PDDLTokenType.OPEN_PAREN, PDDLTokenType.MINUS}:
            if self.input_token.type_ == PDDLTokenType.OPEN_PAREN:
                awaiting_types.append(self.atomic_formula_skeleton())
                continue

            if not awaiting_types:
                raise self.error("'('", message="Unexpected '-' in the :functions section.")
            self.advance()
            return_type = self.name("a function type")
            for token, parameters in awaiting_types:
                self._declare(self.functions, FunctionDeclaration(token.value, parameters, return_type), token)
            awaiting_types.clear()

        for token, parameters in awaiting_types:
            self._declare(self.functions, FunctionDeclaration(token.value, parameters), token)

    def add_action(self, action: Action) -> None:
        """Add a parsed action after checking it against the declarations made before it."""
        check_action_references(action, self.types, self.predicates, self.functions)
        self.actions.append(action)
        logger.debug("Parsed action '%s'.", action.name)

    def parameters(self) -> tuple[TypedName, ...]:
        """Parse the parenthesized typed parameter list following `:parameters`."""
        self.keyword(":parameters")
        self.match(PDDLTokenType.OPEN_PAREN, expected="'(' opening the parameter list")
        parameters = self.typed_list(PDDLTokenType.VARIABLE)
        self.match(PDDLTokenType.CLOSE_PAREN)
        return parameters

    def action(self) -> Action:
        """Parse a PDDL action definition from the stream of input tokens.

        Reference: Section 5 (pg. 7) of Ghallab et al., 1998.
        """
        self.keyword(":action")
        name = self.name("an action name")

        parameters: tuple[TypedName, ...] = ()
        precondition: Expression = And()
        effect: Expression = And()

        while self.check_keyword():
            match self.input_token.key:
                case ":parameters":
                    parameters = self.parameters()
                case ":precondition":
                    self.advance()
                    precondition = self.condition()
                case ":effect":
                    self.advance()
                    effect = self.effect()
                case _:
                    raise self.error("an action field (:parameters, :precondition, or :effect)")

        self.match(PDDLTokenType.CLOSE_PAREN, expected="an action field or ')'")
        return Action(name, parameters, condition=precondition, effect=effect)

    def durative_action(self) -> Action:
        """Parse a PDDL durative action definition from the stream of input tokens.

        Reference: Section 8 of Fox & Long, "PDDL2.1" (2003).
        """
        opener = self.keyword(":durative-action")
        self.require(opener, "Durative actions", ":durative-actions")
        name = self.name("an action name")

        parameters: tuple[TypedName, ...] = ()
        duration: Expression | None = None
        condition: Expression = And()
        effect: Expression = And()

        while self.check_keyword():
            match self.input_token.key:
                case ":parameters":
                    parameters = self.parameters()
                case ":duration":
                    self.advance()
                    duration = self.duration_constraint()
                case ":condition":
                    self.advance()
                    condition = self.condition(temporal=True)
                case ":effect":
                    self.advance()
                    effect = self.effect(temporal=True)
                case _:
                    raise self.error(
                        "a durative action field (:parameters, :duration, :condition, or :effect)",
                    )

        if duration is None:
            raise self.error(
                "':duration'",
                message=f"Durative action '{name}' does not define a :duration.",
            )

        self.match(PDDLTokenType.CLOSE_PAREN, expected="a durative action field or ')'")
        return Action(name, parameters, duration, condition, effect)
