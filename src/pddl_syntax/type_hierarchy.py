"""Define a class to represent hierarchies of object types."""

from __future__ import annotations

from collections import defaultdict
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from pddl_syntax.errors import ValidationError
from pddl_syntax.parameters import ROOT_TYPE, TypedName


def _declare_type(parents: dict[str, str], names: dict[str, str], type_name: str, parent: str) -> None:
    """Record a type as a subtype of the given parent type, within maps under construction.

    Redeclaring a type is allowed when it repeats the same parent, refines an implicit `object`
    parent, or omits the parent it was given before; any other redeclaration is a conflict.

    :param parents: Map from each case-folded declared type to its case-folded parent type
    :param names: Map from each case-folded type name to its name as first declared
    :param type_name: Name of the declared type
    :param parent: Name of the type's parent (the root type `object` if declared untyped)
    :raises ValidationError: If the type was already declared with a different parent
    """
    child_key = type_name.lower()
    parent_key = parent.lower()

    if child_key == ROOT_TYPE:
        if parent_key != ROOT_TYPE:
            raise ValidationError(f"The root type '{ROOT_TYPE}' cannot have a parent type.")
        return

    names.setdefault(child_key, type_name)
    existing = parents.get(child_key)
    if existing is not None and parent_key == ROOT_TYPE:
        return  # An untyped repeat keeps the parent declared before
    if existing is not None and existing not in (parent_key, ROOT_TYPE):
        raise ValidationError(
            f"Type '{type_name}' is declared with parent '{names[existing]}' and with parent '{parent}'.",
        )

    names.setdefault(parent_key, parent)
    parents[child_key] = parent_key


class TypeHierarchy:
    """An immutable hierarchy of object types, permitting types to have subtypes.

    Type names are compared case-insensitively but reported using their declared casing. The
    root type `object` is always implicitly present and has no parent.
    """

    def __init__(self, parents: Mapping[str, str] | None = None, names: Mapping[str, str] | None = None) -> None:
        """Initialize a type hierarchy from its (case-folded) parent relationships.

        :param parents: Map from each case-folded declared type to its case-folded parent type
        :param names: Map from case-folded type names to their declared casing (optional)
        """
        self._to_parent: Mapping[str, str] = MappingProxyType(dict(parents or {}))
        """A map from each (case-folded) declared type to its (case-folded) parent type."""

        to_children: defaultdict[str, set[str]] = defaultdict(set)
        for child, parent in self._to_parent.items():
            to_children[parent].add(child)
        self._to_children: Mapping[str, frozenset[str]] = MappingProxyType(
            {parent: frozenset(children) for parent, children in to_children.items()},
        )
        """A map from each (case-folded) type to the case-folded names of its subtypes."""

        display_names = {key: key for key in [ROOT_TYPE, *self._to_parent, *self._to_parent.values()]}
        display_names.update((key, name) for key, name in (names or {}).items() if key in display_names)
        self._names: Mapping[str, str] = MappingProxyType(display_names)
        """A map from each case-folded type name to its name as first declared."""

    @classmethod
    def from_typed_names(cls, declarations: Iterable[TypedName], validate: bool = True) -> TypeHierarchy:
        """Construct a type hierarchy from the contents of one or more `:types` sections.

        :param declarations: Declared type names, each typed by its parent type
        :param validate: Whether to verify that every parent is declared and no cycle exists
        :return: Constructed TypeHierarchy instance
        :raises ValidationError: If the declarations conflict, form a cycle, or use unknown types
        """
        parents: dict[str, str] = {}
        names: dict[str, str] = {ROOT_TYPE: ROOT_TYPE}
        for declaration in declarations:
            if isinstance(declaration.type_, tuple):
                raise ValidationError(
                    f"Type '{declaration.name}' cannot have an `either` parent type: "
                    f"{declaration.type_str}.",
                )
            _declare_type(parents, names, declaration.name, declaration.type_)

        hierarchy = cls(parents, names)
        if validate:
            hierarchy.validate()
        return hierarchy

    def __contains__(self, type_name: object) -> bool:
        """Check whether the given type name is declared (or is the root type)."""
        return isinstance(type_name, str) and type_name.lower() in self._names

    def __iter__(self) -> Iterator[str]:
        """Iterate over the declared type names (excluding the implicit root), in order."""
        return (self._names[key] for key in self._to_parent)

    def __len__(self) -> int:
        """Count the declared types (excluding the implicit root)."""
        return len(self._to_parent)

    def __eq__(self, other: object) -> bool:
        """Compare two type hierarchies by their parent relationships."""
        if not isinstance(other, TypeHierarchy):
            return NotImplemented
        return self.parents == other.parents

    def __hash__(self) -> int:
        """Hash the type hierarchy using its parent relationships."""
        return hash(frozenset(self.parents.items()))

    def __repr__(self) -> str:
        """Return a string representation of the hierarchy's parent relationships."""
        return f"TypeHierarchy({self.parents!r})"

    @property
    def parents(self) -> dict[str, str]:
        """Retrieve a map from each declared type name to the name of its parent type."""
        return {self._names[child]: self._names[parent] for child, parent in self._to_parent.items()}

    def validate(self) -> None:
        """Verify that the type hierarchy is consistent.

        :raises ValidationError: If a parent type is undeclared or the hierarchy contains a cycle
        """
        for child, parent in self._to_parent.items():
            if parent != ROOT_TYPE and parent not in self._to_parent:
                raise ValidationError(
                    f"Type '{self._names[child]}' has undeclared parent type "
                    f"'{self._names[parent]}'.",
                )

        for start in self._to_parent:
            chain = [start]
            current = start
            while current != ROOT_TYPE:
                current = self._to_parent[current]
                if current in chain:
                    cycle = " -> ".join(self._names[t] for t in [*chain, current])
                    raise ValidationError(f"The type hierarchy contains a cycle: {cycle}.")
                chain.append(current)

    def parent_of(self, type_name: str) -> str | None:
        """Retrieve the parent of the given type (None for the root type).

        :raises KeyError: If the type is not declared
        """
        key = type_name.lower()
        if key == ROOT_TYPE:
            return None
        if key not in self._to_parent:
            raise KeyError(f"Unknown type: '{type_name}'.")
        return self._names[self._to_parent[key]]

    def children_of(self, type_name: str) -> set[str]:
        """Retrieve the names of the direct subtypes of the given type."""
        return {self._names[child] for child in self._to_children.get(type_name.lower(), set())}

    def ancestors(self, type_name: str) -> list[str]:
        """Retrieve the chain of supertypes of the given type, nearest first, ending at the root."""
        chain: list[str] = []
        parent = self.parent_of(type_name)
        while parent is not None:
            chain.append(parent)
            parent = self.parent_of(parent)
        return chain

    def is_subtype(self, type_name: str, ancestor: str) -> bool:
        """Check whether a type equals or descends from the given ancestor type."""
        if type_name.lower() == ancestor.lower():
            return True
        return ancestor.lower() in (t.lower() for t in self.ancestors(type_name))
