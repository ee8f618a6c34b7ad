"""Unit tests for the PDDL requirement flags recognized by the parser."""

from pddl_syntax.requirements import SUPPORTED_REQ_FLAGS, expand_requirements, is_known_requirement


def test_is_known_requirement() -> None:
    """Verify that requirement flags are recognized case-insensitively."""
    # Act/Assert - Check known and unknown flags
    assert is_known_requirement(":Typing")
    assert is_known_requirement(":durative-actions")
    assert not is_known_requirement(":teleportation")
    assert all(is_known_requirement(flag) for flag in SUPPORTED_REQ_FLAGS)


def test_expand_adl_requirements() -> None:
    """Verify that `:adl` expands to the flags it abbreviates, transitively."""
    # Act - Expand the `:adl` flag
    expanded = expand_requirements([":ADL"])

    # Assert - Verify that implied flags (including those of `:quantified-preconditions`) are present
    assert {":adl", ":strips", ":typing", ":conditional-effects"} <= expanded
    assert {":existential-preconditions", ":universal-preconditions"} <= expanded
    assert ":numeric-fluents" not in expanded


def test_expand_fluents_requirement() -> None:
    """Verify that `:fluents` implies `:numeric-fluents`, and that unrelated flags are unchanged."""
    # Act - Expand a set of flags including `:fluents`
    expanded = expand_requirements({":fluents", ":equality"})

    # Assert - Verify the expanded flags
    assert expanded == {":fluents", ":numeric-fluents", ":equality"}
