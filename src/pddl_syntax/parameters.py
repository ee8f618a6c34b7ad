"""Define classes to represent typed PDDL entities (variables, constants, and objects)."""

from __future__ import annotations

from dataclasses import dataclass

ROOT_TYPE = "object"
"""Implicit root of every PDDL type hierarchy; untyped entities default to this type."""

NUMBER_TYPE = "number"
"""Built-in return type of numeric fluents."""


def is_variable(name: str) -> bool:
    """Check whether the given PDDL term is a variable (i.e., begins with '?')."""
    return name.startswith("?")


@dataclass(frozen=True)
class TypedName:
    """A variable or object name paired with its PDDL type."""

    name: str  # Variables keep their leading '?'
    type_: str | tuple[str, ...] = ROOT_TYPE
    """Name of the entity's type, or the alternatives of an `(either ...)` type."""

    def __str__(self) -> str:
        """Create a readable string representation of the typed name."""
        return f"{self.name} - {self.type_str}"

    @property
    def type_options(self) -> tuple[str, ...]:
        """Retrieve the type names the entity may take (one unless the type is `either`)."""
        return self.type_ if isinstance(self.type_, tuple) else (self.type_,)

    @property
    def type_str(self) -> str:
        """Retrieve the PDDL text of the entity's type."""
        if isinstance(self.type_, tuple):
            return f"(either {' '.join(self.type_)})"
        return self.type_

    @property
    def is_variable(self) -> bool:
        """Check whether the typed entity is a variable (rather than an object or constant)."""
        return is_variable(self.name)
