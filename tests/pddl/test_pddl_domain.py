"""Unit tests for parsing PDDL domains."""

import logging

import pytest
from hypothesis import given
from strategies.pddl_strategies import strips_domains

from pddl_syntax import ParseError, ParserConfig, PDDLDomain, PDDLError, ValidationError, parse_domain
from pddl_syntax.expressions import (
    And,
    Atom,
    Comparison,
    ComparisonOperator,
    Name,
    Not,
    Number,
    NumericUpdate,
    Temporal,
    TimeSpecifier,
    UpdateOperator,
)
from pddl_syntax.parameters import TypedName


def test_parse_garment_domain(garment_domain: str) -> None:
    """Verify that the `garment-folding` domain's declarations are parsed."""
    # Act - Parse the PDDL domain provided by the test fixture
    domain = PDDLDomain.parse(garment_domain)

    # Assert - Verify the domain's declarations
    assert domain.name == "garment-folding"
    assert domain.requirements == {":strips", ":typing", ":durative-actions", ":numeric-fluents"}
    assert set(domain.types) == {"arm", "garment", "pile"}
    assert [p.name for p in domain.predicates] == ["free", "on-pile", "folded", "grasped"]
    assert [f.name for f in domain.functions] == ["grasp-time", "current-number-of-garments-on-pile"]
    assert all(f.return_type == "number" for f in domain.functions)
    assert [a.name for a in domain.actions] == ["grasp-folded-garment", "place-garment-on-pile"]


def test_parse_durative_action(garment_domain: str) -> None:
    """Verify the structure of the `grasp-folded-garment` durative action."""
    # Act - Parse the domain and retrieve the durative action
    action = PDDLDomain.parse(garment_domain).get_action("grasp-folded-garment")

    # Assert - Verify the action's parameters, duration, condition, and effect
    assert action.is_durative
    assert action.parameters == (
        TypedName("?a", "arm"),
        TypedName("?g", "garment"),
        TypedName("?p", "pile"),
    )
    assert action.duration == Comparison(
        ComparisonOperator.EQ,
        Name("?duration"),
        Atom("grasp-time", ("?a",)),
    )
    assert action.condition == And(
        (
            Temporal(TimeSpecifier.AT_START, Atom("free", ("?a",))),
            Temporal(TimeSpecifier.AT_START, Atom("on-pile", ("?g", "?p"))),
            Temporal(TimeSpecifier.AT_START, Atom("folded", ("?g",))),
        ),
    )
    assert action.effect == And(
        (
            Temporal(TimeSpecifier.AT_START, Not(Atom("free", ("?a",)))),
            Temporal(TimeSpecifier.AT_START, Not(Atom("on-pile", ("?g", "?p")))),
            Temporal(TimeSpecifier.AT_END, Atom("grasped", ("?a", "?g"))),
        ),
    )


def test_parse_numeric_effect(garment_domain: str) -> None:
    """Verify that a temporally qualified `increase` effect is parsed."""
    # Act - Parse the domain and retrieve the action with a numeric effect
    action = PDDLDomain.parse(garment_domain).get_action("place-garment-on-pile")

    # Assert - Verify the last effect and the numeric duration
    assert action.duration == Comparison(ComparisonOperator.EQ, Name("?duration"), Number(1.5))
    assert isinstance(action.effect, And)
    assert action.effect.operands[-1] == Temporal(
        TimeSpecifier.AT_END,
        NumericUpdate(
            UpdateOperator.INCREASE,
            Atom("current-number-of-garments-on-pile", ("?p",)),
            Number(1),
        ),
    )


def test_parse_letseat_domain(letseat_domain: str) -> None:
    """Verify that the `letseat-simple` domain's type hierarchy and actions are parsed."""
    # Act - Parse the PDDL domain provided by the test fixture
    domain = parse_domain(letseat_domain)

    # Assert - Verify the type hierarchy and an instantaneous action
    assert domain.types.parent_of("robot") == "bot"
    assert domain.types.ancestors("robot") == ["bot", "locatable", "object"]
    assert domain.types.is_subtype("cupcake", "locatable")

    move = domain.get_action("MOVE")  # Names are case-insensitive
    assert not move.is_durative
    assert move.duration is None
    assert move.condition == And((Atom("on", ("?arm", "?from")), Atom("path", ("?from", "?to"))))


def test_parse_briefcase_world_domain(briefcase_world_domain: str) -> None:
    """Verify that the `briefcase-world` domain with conditional effects is parsed."""
    # Act - Parse the PDDL domain provided by the test fixture
    domain = parse_domain(briefcase_world_domain)

    # Assert - Verify the domain's constants and actions
    assert domain.constants == (TypedName("B", "physob"),)
    assert [a.name for a in domain.actions] == ["mov-b", "put-in", "take-out"]
    assert domain.get_action("take-out").effect == Not(Atom("in", ("?x", "B")))


def test_parse_domain_is_deterministic(garment_domain: str) -> None:
    """Verify that parsing the same domain twice yields equal results."""
    # Act - Parse the domain twice
    first = PDDLDomain.parse(garment_domain)
    second = PDDLDomain.parse(garment_domain)

    # Assert - Verify that the results are equal
    assert first == second


def test_parse_empty_effect() -> None:
    """Verify that an action with `(and)` as its effect has the empty conjunction as its effect."""
    # Arrange - Create a domain whose only action has an empty effect and no precondition
    text = "(define (domain noop) (:action wait :parameters () :effect (and)))"

    # Act - Parse the domain
    domain = parse_domain(text)

    # Assert - Verify the action's condition and effect
    assert domain.actions[0].condition == And()
    assert domain.actions[0].effect == And()


def test_parse_domain_with_type_cycle() -> None:
    """Verify that a cyclic type hierarchy is rejected."""
    # Arrange - Create a domain whose types form a cycle
    text = "(define (domain d) (:requirements :typing) (:types a - b b - a))"

    # Act/Assert - Expect a validation error naming the cycle
    with pytest.raises(ValidationError, match="cycle"):
        parse_domain(text)


def test_parse_domain_with_duplicate_predicate() -> None:
    """Verify that declaring the same predicate twice is rejected."""
    # Arrange - Create a domain declaring `(free ?a)` twice, in different cases
    text = "(define (domain d) (:predicates (free ?a) (FREE ?b)))"

    # Act/Assert - Expect a validation error locating the duplicate
    with pytest.raises(ValidationError) as exc_info:
        parse_domain(text)

    assert exc_info.value.offset == text.index("FREE")


def test_parse_domain_with_undeclared_predicate() -> None:
    """Verify that an action referencing an undeclared predicate is rejected."""
    # Arrange - Create a domain whose action uses an undeclared predicate
    text = "(define (domain d) (:predicates (p)) (:action a :precondition (q) :effect (p)))"

    # Act/Assert - Expect a validation error naming the predicate
    with pytest.raises(ValidationError, match="'q'"):
        parse_domain(text)


def test_parse_domain_with_undeclared_parameter_type() -> None:
    """Verify that an action parameter with an undeclared type is rejected."""
    # Arrange - Create a domain whose action parameter uses an undeclared type
    text = "(define (domain d) (:requirements :typing) (:types block) (:action a :parameters (?x - table)))"

    # Act/Assert - Expect a validation error naming the type
    with pytest.raises(ValidationError, match="'table'"):
        parse_domain(text)


def test_parse_domain_concatenates_repeated_sections() -> None:
    """Verify that repeated sections are concatenated in order."""
    # Arrange - Create a domain with two :predicates sections
    text = "(define (domain d) (:predicates (p)) (:predicates (q ?x)))"

    # Act - Parse the domain
    domain = parse_domain(text)

    # Assert - Verify that both sections' predicates were kept
    assert [p.name for p in domain.predicates] == ["p", "q"]


@pytest.mark.parametrize(
    "text",
    [
        "(define (domain d) (:predicates (p)) (:bogus))",
        "(define (domain d) (:action a :parameters (?x) :cost 1))",
        "(define (domain d) (:action a :effect (and (p) (or (q) (r)))))",
        "(define (domain d) (:predicates (p))",
    ],
)
def test_parse_malformed_domains(text: str) -> None:
    """Verify that malformed domains raise a ParseError located within the text."""
    # Act/Assert - Expect a parse error with an offset inside (or at the end of) the text
    with pytest.raises(ParseError) as exc_info:
        parse_domain(text)

    assert exc_info.value.offset is not None
    assert 0 <= exc_info.value.offset <= len(text)


def test_parse_domain_rejects_unmatched_close_paren() -> None:
    """Verify that a ')' following the domain's closing parenthesis is an error."""
    # Arrange - Create a domain followed by an unmatched parenthesis
    text = "(define (domain d)))"

    # Act/Assert - Expect a parse error at the unmatched parenthesis
    with pytest.raises(ParseError) as exc_info:
        parse_domain(text)

    assert exc_info.value.offset == len(text) - 1


def test_parse_domain_trailing_input() -> None:
    """Verify that other trailing input is ignored unless the end of input is required."""
    # Arrange - Create a domain followed by a stray name
    text = "(define (domain d)) extra"

    # Act - Parse the domain leniently
    domain = parse_domain(text)

    # Assert - Verify that the strict configuration rejects the trailing input
    assert domain.name == "d"
    with pytest.raises(ParseError):
        parse_domain(text, ParserConfig(require_end_of_input=True))


def test_parse_domain_undeclared_requirement(caplog: pytest.LogCaptureFixture) -> None:
    """Verify that features used without their requirement flag warn, or fail when strict."""
    # Arrange - Create a domain using typed parameters without declaring :typing
    text = "(define (domain d) (:types block) (:action a :parameters (?x - block)))"

    # Act - Parse the domain leniently, capturing log records
    with caplog.at_level(logging.WARNING, logger="pddl_syntax"):
        domain = parse_domain(text)

    # Assert - Verify the warning, and that strict parsing raises instead
    assert domain.actions[0].parameters == (TypedName("?x", "block"),)
    assert ":typing" in caplog.text
    with pytest.raises(ParseError) as exc_info:
        parse_domain(text, ParserConfig(strict_requirements=True))
    assert exc_info.value.offset == text.index("-")


def test_parse_domain_unknown_requirement(caplog: pytest.LogCaptureFixture) -> None:
    """Verify that unknown requirement flags are kept leniently and rejected when strict."""
    # Arrange - Create a domain declaring a requirement flag that doesn't exist
    text = "(define (domain d) (:requirements :strips :teleportation))"

    # Act - Parse the domain leniently, capturing log records
    with caplog.at_level(logging.WARNING, logger="pddl_syntax"):
        domain = parse_domain(text)

    # Assert - Verify the kept flag and the warning, and that strict parsing raises
    assert domain.requirements == {":strips", ":teleportation"}
    assert ":teleportation" in caplog.text
    with pytest.raises(ParseError, match=":teleportation"):
        parse_domain(text, ParserConfig(strict_requirements=True))


def test_parse_domain_nested_arithmetic_requires_numeric_fluents() -> None:
    """Verify that nested arithmetic is only accepted with :numeric-fluents (or :fluents)."""
    # Arrange - Create a domain using nested arithmetic, with and without :fluents
    body = (
        "(:functions (fuel) (cost)) "
        "(:action a :effect (decrease (fuel) (+ (cost) 1))))"
    )
    without_flag = f"(define (domain d) (:requirements :action-costs) {body}"
    with_flag = f"(define (domain d) (:requirements :fluents) {body}"

    # Act/Assert - Expect a parse error only when the flag is missing
    with pytest.raises(ParseError, match="numeric-fluents"):
        parse_domain(without_flag)
    assert len(parse_domain(with_flag).actions) == 1


def test_parse_durative_action_requires_duration() -> None:
    """Verify that a durative action without a :duration is rejected."""
    # Arrange - Create a durative action without a duration
    text = "(define (domain d) (:requirements :durative-actions) (:durative-action a :parameters ()))"

    # Act/Assert - Expect a parse error naming the action
    with pytest.raises(ParseError, match="'a'"):
        parse_domain(text)


@given(strips_domains())
def test_parse_generated_domains(example: tuple[str, list[str], list[str]]) -> None:
    """Verify that generated STRIPS domains parse, and that truncating them raises a located error."""
    # Arrange - Unpack the generated domain text and its expected contents
    text, predicates, actions = example

    # Act - Parse the full domain and a truncated copy of it
    domain = parse_domain(text)
    truncated = text[: len(text) // 2]

    # Assert - Verify the parsed names and that the truncated text fails within its bounds
    assert [p.name for p in domain.predicates] == predicates
    assert [a.name for a in domain.actions] == actions
    with pytest.raises(PDDLError) as exc_info:
        parse_domain(truncated)
    assert exc_info.value.offset is not None
    assert 0 <= exc_info.value.offset <= len(truncated)


def test_parse_domain_rejects_close_paren_after_trailing_groups() -> None:
    """Verify that an unmatched ')' is found even when other groups follow the document."""
    # Arrange - Close the domain early, leaving an action and a stray ')' after it
    text = "(define (domain d) (:predicates (p))) (:action x :precondition (q)) )"

    # Act/Assert - Expect a parse error at the final parenthesis, even when parsing leniently
    with pytest.raises(ParseError) as exc_info:
        parse_domain(text)

    assert exc_info.value.offset == len(text) - 1


@pytest.mark.parametrize(
    ("text", "match"),
    [
        ("(define (domain d) (:action x :precondition (q)) (:predicates (q)))", "predicate 'q'"),
        (
            "(define (domain d) (:requirements :numeric-fluents) "
            "(:action x :effect (increase (fuel) 1)) (:functions (fuel)))",
            "function 'fuel'",
        ),
        (
            "(define (domain d) (:requirements :typing) (:action x :parameters (?b - block)) (:types block))",
            "type 'block'",
        ),
    ],
)
def test_parse_domain_rejects_forward_references(text: str, match: str) -> None:
    """Verify that actions may only reference names declared before them."""
    # Act/Assert - Expect a validation error naming the later declaration
    with pytest.raises(ValidationError, match=match):
        parse_domain(text)


def test_parse_domain_with_duplicate_function() -> None:
    """Verify that declaring the same function twice is rejected."""
    # Arrange - Create a domain declaring `(fuel)` twice, in different cases
    text = "(define (domain d) (:requirements :numeric-fluents) (:functions (fuel ?t) (FUEL)))"

    # Act/Assert - Expect a validation error locating the duplicate
    with pytest.raises(ValidationError, match="Duplicate function") as exc_info:
        parse_domain(text)

    assert exc_info.value.offset == text.index("FUEL")


def test_parsed_domain_types_are_immutable(garment_domain: str) -> None:
    """Verify that a parsed domain's type hierarchy cannot be changed after parsing."""
    # Arrange - Parse the domain and record its hash
    domain = PDDLDomain.parse(garment_domain)
    original_hash = hash(domain)

    # Act - Attempt to modify the hierarchy through its public interface
    domain.types.parents["robot"] = "arm"
    domain.types.children_of("arm").add("robot")

    # Assert - Verify that the hierarchy offers no way to declare types and is unchanged
    assert not hasattr(domain.types, "add")
    assert "robot" not in domain.types
    assert hash(domain) == original_hash


def test_parse_domain_with_untyped_type_repeat() -> None:
    """Verify that a later untyped repeat of a type keeps its declared parent."""
    # Arrange - Declare `a` under `b`, then repeat `a` in a second :types section
    text = "(define (domain d) (:requirements :typing) (:types a - b b) (:types a))"

    # Act - Parse the domain
    domain = parse_domain(text)

    # Assert - Verify that `a` is still a subtype of `b`
    assert domain.types.parent_of("a") == "b"
