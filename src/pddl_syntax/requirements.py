"""Define the PDDL requirement flags recognized by the parser.

Reference: Section 15 ("Current Requirement Flags") of Ghallab et al. (1998), extended with
the flags introduced by PDDL 2.1, 2.2, 3.0, 3.1, and PDDL+.
"""

from __future__ import annotations

from typing import Iterable

PDDL_REQ_FLAGS = {
    # PDDL 1.2
    ":strips": "Basic STRIPS-style adds and deletes",
    ":typing": "Allow type names in declarations of variables",
    ":disjunctive-preconditions": "Allow `or` in goal descriptions",
    ":equality": "Support `=` as built-in predicate",
    ":existential-preconditions": "Allow `exists` in goal descriptions",
    ":universal-preconditions": "Allow `forall` in goal descriptions",
    ":quantified-preconditions": "Allow existential and universal preconditions",
    ":conditional-effects": "Allow `when` in action effects",
    ":action-expansions": "Allow actions to have :expansions",
    ":foreach-expansions": "Allow actions expansions to use `foreach`",
    ":dag-expansions": "Allow labeled subactions",
    ":domain-axioms": "Allow domains to have :axioms",
    ":subgoals-through-axioms": "Given axioms p => q and goal q, generate subgoal p",
    ":safety-constraints": "Allow :safety conditions for a domain",
    ":expression-evaluation": "Support `eval` predicate in axioms",
    ":fluents": "Support numeric and object fluents",
    ":open-world": "Don't make the closed-world assumption for all predicates",
    ":true-negation": "Don't handle `not` using negation as failure",
    ":adl": (
        "Support :strips + :typing + :disjunctive-preconditions + "
        ":equality + :quantified-preconditions + :conditional-effects"
    ),
    ":ucpop": "Support :adl + :domain-axioms + :safety-constraints",
    # PDDL 2.1
    ":numeric-fluents": "Allow numeric functions, comparisons, and updates",
    ":durative-actions": "Allow durative actions with temporally qualified conditions",
    ":durative-inequalities": "Allow inequalities in duration constraints",
    ":continuous-effects": "Allow effects that change fluents continuously over time",
    ":negative-preconditions": "Allow `not` in goal descriptions",
    # PDDL 2.2
    ":derived-predicates": "Allow predicates defined by :derived rules",
    ":timed-initial-literals": "Allow literals to become true at given times",
    # PDDL 3.0
    ":preferences": "Allow soft goals and preconditions",
    ":constraints": "Allow state-trajectory constraints",
    # PDDL 3.1
    ":action-costs": "Allow the `total-cost` fluent in metrics",
    ":goal-utilities": "Allow utilities to be attached to goals",
    # PDDL+
    ":time": "Allow processes and events over continuous time",
}
"""Definitions for the PDDL requirement flags recognized by this parser."""

SUPPORTED_REQ_FLAGS = frozenset({":strips", ":typing", ":durative-actions", ":numeric-fluents"})
"""Requirement flags whose grammar extensions are guaranteed to be implemented."""

IMPLIED_REQ_FLAGS: dict[str, frozenset[str]] = {
    ":adl": frozenset(
        {
            ":strips",
            ":typing",
            ":disjunctive-preconditions",
            ":equality",
            ":quantified-preconditions",
            ":existential-preconditions",
            ":universal-preconditions",
            ":conditional-effects",
        },
    ),
    ":quantified-preconditions": frozenset(
        {":existential-preconditions", ":universal-preconditions"},
    ),
    ":fluents": frozenset({":numeric-fluents"}),
    ":ucpop": frozenset({":adl", ":domain-axioms", ":safety-constraints"}),
    ":timed-initial-literals": frozenset({":durative-actions"}),
    ":durative-inequalities": frozenset({":durative-actions"}),
    ":continuous-effects": frozenset({":durative-actions", ":numeric-fluents"}),
}
"""Maps each compound requirement flag to the flags it implies."""


def is_known_requirement(flag: str) -> bool:
    """Check whether the given requirement flag is recognized (case-insensitive)."""
    return flag.lower() in PDDL_REQ_FLAGS


def expand_requirements(flags: Iterable[str]) -> frozenset[str]:
    """Compute the closure of the given requirement flags under implication.

    :param flags: Requirement flags declared by a domain or problem
    :return: Case-folded set of the declared flags and every flag they imply
    """
    expanded: set[str] = set()
    frontier = [flag.lower() for flag in flags]
    while frontier:
        flag = frontier.pop()
        if flag in expanded:
            continue
        expanded.add(flag)
        frontier.extend(IMPLIED_REQ_FLAGS.get(flag, ()))

    return frozenset(expanded)
