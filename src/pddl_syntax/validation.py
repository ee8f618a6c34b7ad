"""Define consistency checks between the declarations and uses within PDDL documents.

The checks on action bodies and declared types run while a domain is assembled. The arity
checks and the problem-against-domain checks are optional second passes that callers may run
on fully parsed documents.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator, Mapping

from pddl_syntax.errors import ValidationError
from pddl_syntax.expressions import (
    Arithmetic,
    Atom,
    Comparison,
    Expression,
    NumericUpdate,
    Quantified,
    children,
    walk,
)
from pddl_syntax.parameters import NUMBER_TYPE, ROOT_TYPE, TypedName
from pddl_syntax.type_hierarchy import TypeHierarchy

if TYPE_CHECKING:
    from pddl_syntax.pddl_domain import Action, FunctionDeclaration, PDDLDomain, PredicateDeclaration
    from pddl_syntax.pddl_problem import PDDLProblem

BUILTIN_FLUENTS = frozenset({"total-time"})
"""Fluents that problems may reference (e.g., in metrics) without the domain declaring them."""


def atom_references(expression: Expression, numeric: bool = False) -> Iterator[tuple[Atom, bool]]:
    """Iterate over the atoms within an expression, noting whether each is in numeric context.

    Atoms inside comparisons, arithmetic, and numeric updates refer to functions; all other
    atoms refer to predicates.

    :param expression: PDDL expression to be searched
    :param numeric: Whether the expression itself appears in numeric context
    :yield: Pairs of each atom and whether it refers to a function
    """
    match expression:
        case Atom():
            yield expression, numeric
        case Comparison(_, left, right):
            yield from atom_references(left, numeric=True)
            yield from atom_references(right, numeric=True)
        case Arithmetic(_, operands):
            for operand in operands:
                yield from atom_references(operand, numeric=True)
        case NumericUpdate(_, fluent, value):
            yield fluent, True
            yield from atom_references(value, numeric=True)
        case _:
            for child in children(expression):
                yield from atom_references(child, numeric)


def check_declared_types(entities: Iterable[TypedName], types: TypeHierarchy, context: str) -> None:
    """Verify that every type used by the given typed entities is declared.

    :param entities: Typed variables, constants, or objects
    :param types: Type hierarchy declared by the domain
    :param context: Description of where the entities appear (used in error messages)
    :raises ValidationError: If any entity's type is not declared
    """
    for entity in entities:
        for type_name in entity.type_options:
            if type_name not in types:
                raise ValidationError(f"Undeclared type '{type_name}' of {entity.name} in {context}.")


def check_action_references(
    action: Action,
    types: TypeHierarchy,
    predicates: Mapping[str, PredicateDeclaration],
    functions: Mapping[str, FunctionDeclaration],
) -> None:
    """Verify that an action only references types, predicates, and functions declared so far.

    :param action: Action whose parameters and body are checked
    :param types: Types declared before the action
    :param predicates: Predicates declared before the action, keyed by case-folded name
    :param functions: Functions declared before the action, keyed by case-folded name
    :raises ValidationError: If the action references an undeclared name
    """
    context = f"action '{action.name}'"
    check_declared_types(action.parameters, types, context)

    bodies = [action.condition, action.effect]
    if action.duration is not None:
        bodies.append(action.duration)

    for body in bodies:
        for expression in walk(body):
            if isinstance(expression, Quantified):
                check_declared_types(expression.variables, types, context)

        for atom, numeric in atom_references(body):
            if numeric and atom.name.lower() not in functions:
                raise ValidationError(f"Undeclared function '{atom.name}' used in {context}.")
            if not numeric and atom.name.lower() not in predicates:
                raise ValidationError(f"Undeclared predicate '{atom.name}' used in {context}.")


def _check_arity(atom: Atom, expected: int, kind: str, context: str) -> None:
    """Verify that an atom has as many arguments as its declaration has parameters."""
    if len(atom.arguments) != expected:
        raise ValidationError(
            f"{kind.capitalize()} '{atom.name}' takes {expected} argument(s) "
            f"but is given {len(atom.arguments)} in {context}: {atom}.",
        )


def _bound_variables(expression: Expression, bound: frozenset[str]) -> Iterator[tuple[str, frozenset[str]]]:
    """Iterate over the variables used in atoms, paired with the variables in scope there."""
    match expression:
        case Atom(_, arguments):
            for argument in arguments:
                if argument.startswith("?"):
                    yield argument.lower(), bound
        case Quantified(_, variables, operand):
            yield from _bound_variables(operand, bound | {v.name.lower() for v in variables})
        case _:
            for child in children(expression):
                yield from _bound_variables(child, bound)


def check_domain_arities(domain: PDDLDomain) -> None:
    """Verify that every atom in the domain's actions matches its declaration's arity.

    Also verifies that every variable used in an action is one of its parameters, a quantified
    variable in scope, or `?duration` within a durative action.

    :param domain: Parsed PDDL domain
    :raises ValidationError: If an atom has the wrong number of arguments or an unbound variable
    """
    predicates = {p.name.lower(): p for p in domain.predicates}
    functions = {f.name.lower(): f for f in domain.functions}

    for action in domain.actions:
        context = f"action '{action.name}'"
        bound = frozenset(p.name.lower() for p in action.parameters)
        if action.is_durative:
            bound |= {"?duration"}

        bodies = [action.condition, action.effect]
        if action.duration is not None:
            bodies.append(action.duration)

        for body in bodies:
            for atom, numeric in atom_references(body):
                declarations = functions if numeric else predicates
                declaration = declarations.get(atom.name.lower())
                if declaration is not None:
                    kind = "function" if numeric else "predicate"
                    _check_arity(atom, len(declaration.parameters), kind, context)

            for variable, in_scope in _bound_variables(body, bound):
                if variable not in in_scope:
                    raise ValidationError(f"Unbound variable '{variable}' used in {context}.")


def check_problem_against_domain(problem: PDDLProblem, domain: PDDLDomain) -> None:
    """Verify that a problem only uses names its domain declares.

    Checks the problem's domain name, the types of its objects, and the predicates, functions,
    arities, and object names used in its initial state, goal, and metric.

    :param problem: Parsed PDDL problem
    :param domain: Parsed PDDL domain that the problem claims to instantiate
    :raises ValidationError: If the problem is inconsistent with the domain
    """
    if problem.domain_name.lower() != domain.name.lower():
        raise ValidationError(
            f"Problem '{problem.name}' is defined for domain '{problem.domain_name}' "
            f"but was checked against domain '{domain.name}'.",
        )

    check_declared_types(problem.objects, domain.types, f"problem '{problem.name}'")

    objects = {o.name.lower() for o in (*domain.constants, *problem.objects)}
    predicates = {p.name.lower(): p for p in domain.predicates}
    functions = {f.name.lower(): f for f in domain.functions}

    sections: list[tuple[str, Expression]] = [("initial state", literal) for literal in problem.init]
    sections.append(("goal", problem.goal))
    if problem.metric is not None:
        sections.append(("metric", problem.metric.expression))

    for section, expression in sections:
        context = f"the {section} of problem '{problem.name}'"
        numeric_context = section == "metric"
        for atom, numeric in atom_references(expression, numeric=numeric_context):
            key = atom.name.lower()
            if numeric:
                if key in BUILTIN_FLUENTS:
                    continue
                if key not in functions:
                    raise ValidationError(f"Undeclared function '{atom.name}' used in {context}.")
                _check_arity(atom, len(functions[key].parameters), "function", context)
            else:
                if key not in predicates:
                    raise ValidationError(f"Undeclared predicate '{atom.name}' used in {context}.")
                _check_arity(atom, len(predicates[key].parameters), "predicate", context)

            for argument in atom.arguments:
                if not argument.startswith("?") and argument.lower() not in objects:
                    raise ValidationError(f"Unknown object '{argument}' used in {context}.")


def check_domain_types(domain: PDDLDomain) -> None:
    """Verify that the domain's constants, predicates, and functions only use declared types.

    :raises ValidationError: If any declaration uses an undeclared type
    """
    check_declared_types(domain.constants, domain.types, f"the constants of domain '{domain.name}'")

    for predicate in domain.predicates:
        check_declared_types(predicate.parameters, domain.types, f"predicate '{predicate.name}'")

    for function in domain.functions:
        check_declared_types(function.parameters, domain.types, f"function '{function.name}'")
        if function.return_type not in (NUMBER_TYPE, ROOT_TYPE) and function.return_type not in domain.types:
            raise ValidationError(
                f"Undeclared return type '{function.return_type}' of function '{function.name}'.",
            )
